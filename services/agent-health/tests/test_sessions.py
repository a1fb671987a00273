"""Tests for session reconstruction."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

from health_contract import HealthEvent, HealthEventStatus

from agent_health.sessions import group_by_session, reconstruct_sessions


class TestReconstructSessions:
    """Per-run summaries rebuilt from raw events."""

    def test_boundaries_independent_of_input_order(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        events = [
            make_event("heartbeat", at=t0 + timedelta(minutes=2), message="mid"),
            make_event("completion", at=t0 + timedelta(minutes=5), message="done"),
            make_event("heartbeat", at=t0, message="start"),
        ]
        now = t0 + timedelta(minutes=10)

        for ordering in (events, list(reversed(events))):
            (session,) = reconstruct_sessions(ordering, now)

            assert session.first_seen_at == t0
            assert session.last_seen_at == t0 + timedelta(minutes=5)
            assert session.last_status is HealthEventStatus.COMPLETION
            assert session.message == "done"
            assert session.uptime_ms == 10 * 60_000
            assert session.since_last_ms == 5 * 60_000

    def test_runs_of_one_agent_are_separate(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        """Two jobs of the same agent must not be conflated."""
        events = [
            make_event("heartbeat", at=t0, run_id="r1"),
            make_event("error", at=t0, run_id="r2"),
            make_event("heartbeat", at=t0, run_id=None),
        ]

        sessions = {s.session_key: s for s in reconstruct_sessions(events, t0)}

        assert set(sessions) == {"agent-a:r1", "agent-a:r2", "agent-a:default"}
        assert sessions["agent-a:r2"].last_status is HealthEventStatus.ERROR
        assert sessions["agent-a:default"].run_id is None

    def test_same_run_id_different_agents(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        events = [
            make_event(at=t0, agent_id="agent-a", run_id="r1"),
            make_event(at=t0, agent_id="agent-b", run_id="r1"),
        ]

        assert len(reconstruct_sessions(events, t0)) == 2

    def test_elapsed_times_clamped_at_zero(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        (session,) = reconstruct_sessions([make_event(at=t0 + timedelta(minutes=1))], t0)

        assert session.uptime_ms == 0
        assert session.since_last_ms == 0

    def test_agent_type_falls_back_to_first_then_unknown(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        typed = [
            make_event(at=t0, agent_type="planner"),
            make_event(at=t0 + timedelta(seconds=1), agent_type=None),
        ]
        untyped = [make_event(at=t0, run_id="r2", agent_type=None)]

        sessions = {s.session_key: s for s in reconstruct_sessions(typed + untyped, t0)}

        assert sessions["agent-a:r1"].agent_type == "planner"
        assert sessions["agent-a:r2"].agent_type == "unknown"

    def test_empty_input(self, t0: datetime) -> None:
        assert reconstruct_sessions([], t0) == []


class TestGroupBySession:
    def test_groups_are_time_ordered(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        late = make_event(at=t0 + timedelta(minutes=1))
        early = make_event(at=t0)

        groups = group_by_session([late, early])

        assert groups == {"agent-a:r1": [early, late]}
