"""Tests for windowed aggregates."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

import pytest
from health_contract import HealthEvent

from agent_health.aggregation import (
    aggregate,
    average_run_durations,
    compute_success_rate,
    resolve_duration_ms,
)
from agent_health.sessions import group_by_session
from agent_health.windows import HealthWindows

SEVEN_DAYS_MS = 7 * 24 * 60 * 60_000


class TestSuccessRate:
    """Test cases for the 24h success rate."""

    def test_rate_is_none_without_terminal_events(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        """No data must not read as 0% success."""
        events = [make_event(at=t0), make_event(at=t0 + timedelta(minutes=1))]

        result = aggregate(events, t0 + timedelta(minutes=2)).success_rate

        assert result.rate is None
        assert (result.success, result.error, result.total) == (0, 0, 0)

    def test_terminal_events_outside_window_ignored(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        events = [make_event("completion", at=t0), make_event("error", at=t0)]

        result = aggregate(events, t0 + timedelta(hours=25)).success_rate

        assert result.rate is None

    def test_rate_is_exact_ratio(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        events = [
            make_event("completion", at=t0, run_id="a"),
            make_event("completion", at=t0, run_id="b"),
            make_event("completion", at=t0, run_id="c"),
            make_event("error", at=t0, run_id="d"),
            make_event("heartbeat", at=t0, run_id="e"),
        ]

        result = compute_success_rate(events)

        assert (result.success, result.error, result.total) == (3, 1, 4)
        assert result.rate == 0.75

    def test_window_edge_is_inclusive(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        events = [make_event("error", at=t0)]

        aggregates = aggregate(events, t0 + timedelta(hours=24))

        assert len(aggregates.failures) == 1
        assert aggregates.success_rate.rate == 0.0


class TestRunDurations:
    """Test cases for duration resolution and per-type averages."""

    def test_explicit_and_inferred_durations_average(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        events = [
            make_event("completion", at=t0, run_id="r1", duration_ms=5000),
            make_event("heartbeat", at=t0 + timedelta(seconds=10), run_id="r2"),
            make_event("completion", at=t0 + timedelta(seconds=13), run_id="r2"),
        ]

        rows = aggregate(events, t0 + timedelta(hours=1)).average_durations

        assert len(rows) == 1
        assert rows[0].agent_type == "worker"
        assert rows[0].runs == 2
        assert rows[0].avg_duration_ms == 4000

    def test_started_at_used_when_no_duration(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        completion = make_event("completion", at=t0, started_at=t0 - timedelta(seconds=2))

        assert resolve_duration_ms(completion, [completion], SEVEN_DAYS_MS) == 2000

    def test_explicit_duration_wins(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        completion = make_event(
            "completion", at=t0, duration_ms=750, started_at=t0 - timedelta(seconds=2)
        )

        assert resolve_duration_ms(completion, [completion], SEVEN_DAYS_MS) == 750

    def test_started_at_after_ts_falls_back_to_session(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        start = make_event("heartbeat", at=t0 - timedelta(seconds=4))
        completion = make_event("completion", at=t0, started_at=t0 + timedelta(seconds=1))

        assert resolve_duration_ms(completion, [start, completion], SEVEN_DAYS_MS) == 4000

    def test_lone_completion_counts_as_instant_run(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        """A completion with nothing before it starts and ends at its own ts."""
        events = [
            make_event("completion", at=t0, run_id="r1", duration_ms=1000),
            make_event("completion", at=t0, run_id="r2"),
        ]

        rows = aggregate(events, t0 + timedelta(minutes=1)).average_durations

        assert [(r.runs, r.avg_duration_ms) for r in rows] == [(2, 500)]

    def test_start_older_than_lookback_is_ignored(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        events = [
            make_event("heartbeat", at=t0 - timedelta(days=8)),
            make_event("completion", at=t0),
        ]

        (row,) = aggregate(events, t0 + timedelta(minutes=1)).average_durations

        assert (row.runs, row.avg_duration_ms) == (1, 0)

    def test_earliest_session_event_in_lookback_is_used(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        events = [
            make_event("heartbeat", at=t0 - timedelta(days=8)),
            make_event("heartbeat", at=t0 - timedelta(days=2)),
            make_event("heartbeat", at=t0 - timedelta(days=1)),
            make_event("completion", at=t0),
        ]

        (row,) = aggregate(events, t0 + timedelta(minutes=1)).average_durations

        assert row.avg_duration_ms == 2 * 24 * 60 * 60_000

    def test_later_events_do_not_count_as_start(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        completion = make_event("completion", at=t0)
        later = make_event("heartbeat", at=t0 + timedelta(seconds=5))

        assert resolve_duration_ms(completion, [completion, later], SEVEN_DAYS_MS) == 0

    def test_sorted_by_runs_then_type(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        completions = [
            make_event("completion", at=t0, run_id="1", agent_type="gamma", duration_ms=10),
            make_event("completion", at=t0, run_id="2", agent_type="beta", duration_ms=10),
            make_event("completion", at=t0, run_id="3", agent_type="beta", duration_ms=30),
            make_event("completion", at=t0, run_id="4", agent_type="alpha", duration_ms=10),
            make_event("completion", at=t0, run_id="5", agent_type=None, duration_ms=10),
        ]

        rows = average_run_durations(completions, group_by_session(completions), SEVEN_DAYS_MS)

        assert [(r.agent_type, r.runs, r.avg_duration_ms) for r in rows] == [
            ("beta", 2, 20),
            ("alpha", 1, 10),
            ("gamma", 1, 10),
            ("unknown", 1, 10),
        ]

    def test_average_rounds_half_up(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        completions = [
            make_event("completion", at=t0, run_id="1", duration_ms=1),
            make_event("completion", at=t0, run_id="2", duration_ms=2),
        ]

        (row,) = average_run_durations(completions, group_by_session(completions), SEVEN_DAYS_MS)

        assert row.avg_duration_ms == 2


class TestRecentFailures:
    def test_newest_first_and_capped(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        events = [
            make_event("error", at=t0 + timedelta(minutes=i), run_id=f"r{i}", message=f"boom {i}")
            for i in range(4)
        ]
        windows = HealthWindows(recent_failures_limit=2)

        aggregates = aggregate(events, t0 + timedelta(hours=1), windows)

        assert [f.message for f in aggregates.recent_failures] == ["boom 3", "boom 2"]
        assert len(aggregates.failures) == 4

    def test_failure_record_fields(
        self, make_event: Callable[..., HealthEvent], t0: datetime
    ) -> None:
        events = [make_event("error", at=t0, agent_type=" ", message="oops")]

        (failure,) = aggregate(events, t0).recent_failures

        assert failure.model_dump(mode="json", by_alias=True) == {
            "ts": "2026-02-08T12:00:00.000Z",
            "agentId": "agent-a",
            "agentType": "unknown",
            "runId": "r1",
            "message": "oops",
        }


@pytest.mark.parametrize("lookback_hours", [1, 24])
def test_empty_input_has_defined_aggregates(t0: datetime, lookback_hours: int) -> None:
    windows = HealthWindows(lookback_ms=lookback_hours * 60 * 60_000)

    aggregates = aggregate([], t0, windows)

    assert aggregates.failures == []
    assert aggregates.completions == []
    assert aggregates.recent_failures == []
    assert aggregates.average_durations == []
    assert aggregates.success_rate.rate is None
