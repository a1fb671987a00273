"""
Session reconstruction for Agent-Health.

A session is one run of one agent, identified by ``agentId:runId`` (``default``
when no run id was reported). Sessions are never stored; they are rebuilt from
the event log on every query.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from health_contract import (
    CamelModel,
    HealthEvent,
    HealthEventStatus,
    agent_type_or_unknown,
    elapsed_ms,
    format_timestamp,
    utc_now,
)
from pydantic import ConfigDict, field_serializer


class SessionSummary(CamelModel):
    """Derived state of one agent run at a given instant."""

    model_config = ConfigDict(frozen=True)

    session_key: str
    agent_id: str
    agent_type: str
    run_id: str | None = None
    first_seen_at: datetime
    last_seen_at: datetime
    last_status: HealthEventStatus
    uptime_ms: int
    since_last_ms: int
    message: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.last_status.is_terminal

    @field_serializer("first_seen_at", "last_seen_at")
    def _serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)


def group_by_session(events: Iterable[HealthEvent]) -> dict[str, list[HealthEvent]]:
    """Group events by session key, each group ordered by ``ts``."""
    groups: dict[str, list[HealthEvent]] = {}
    for event in events:
        groups.setdefault(event.session_key, []).append(event)
    for group in groups.values():
        group.sort(key=lambda e: e.ts)
    return groups


def summarize_session(key: str, events: list[HealthEvent], now: datetime) -> SessionSummary:
    """Summarize one ts-ordered, non-empty session group."""
    first = events[0]
    last = events[-1]
    return SessionSummary(
        session_key=key,
        agent_id=last.agent_id,
        agent_type=agent_type_or_unknown(last.agent_type or first.agent_type),
        run_id=last.run_id,
        first_seen_at=first.ts,
        last_seen_at=last.ts,
        last_status=last.status,
        uptime_ms=max(0, elapsed_ms(first.ts, now)),
        since_last_ms=max(0, elapsed_ms(last.ts, now)),
        message=last.message,
    )


def reconstruct_sessions(
    events: Iterable[HealthEvent],
    now: datetime | None = None,
    *,
    groups: dict[str, list[HealthEvent]] | None = None,
) -> list[SessionSummary]:
    """
    Rebuild per-run session summaries from raw events.

    Args:
        events: Events in any order
        now: Reference instant (defaults to the current time)
        groups: Precomputed ``group_by_session`` result to reuse

    Returns:
        One SessionSummary per session, in first-seen order of the grouping
    """
    now = now or utc_now()
    if groups is None:
        groups = group_by_session(events)
    return [summarize_session(key, group, now) for key, group in groups.items()]
