"""
Snapshot Producer for Agent-Health.

Composes session reconstruction, classification and aggregation into one
immutable HealthSnapshot. The result depends only on ``(events, now, windows)``.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from health_contract import CamelModel, HealthEvent, format_timestamp, utc_now
from pydantic import ConfigDict, Field, field_serializer

from agent_health.aggregation import (
    AgentTypeDuration,
    FailureRecord,
    SuccessRate,
    aggregate,
)
from agent_health.classifier import FlaggedSession, HealthClassifier, OverallStatus
from agent_health.sessions import SessionSummary, group_by_session, reconstruct_sessions
from agent_health.windows import HealthWindows


class SnapshotWindows(CamelModel):
    model_config = ConfigDict(frozen=True)

    stall_ms: int
    stuck_ms: int
    lookback_24h_ms: int = Field(alias="lookback24hMs")


class SnapshotTotals(CamelModel):
    model_config = ConfigDict(frozen=True)

    events: int
    sessions_observed: int
    active_sessions: int
    stalled_sessions: int
    potentially_stuck_sessions: int
    failures_24h: int = Field(alias="failures24h")
    completions_24h: int = Field(alias="completions24h")


class HealthSnapshot(CamelModel):
    """Full health view returned by the query boundary."""

    model_config = ConfigDict(frozen=True)

    status: OverallStatus
    generated_at: datetime
    windows: SnapshotWindows
    totals: SnapshotTotals
    active_sessions: list[SessionSummary]
    stalled_or_stuck_sessions: list[FlaggedSession]
    recent_failures: list[FailureRecord]
    success_rate_24h: SuccessRate = Field(alias="successRate24h")
    average_run_duration_by_agent_type: list[AgentTypeDuration]

    @field_serializer("generated_at")
    def _serialize_generated_at(self, value: datetime) -> str:
        return format_timestamp(value)


def compute_snapshot(
    events: Sequence[HealthEvent],
    now: datetime | None = None,
    windows: HealthWindows | None = None,
) -> HealthSnapshot:
    """
    Build a health snapshot from raw events.

    Args:
        events: Stored events, in any order
        now: Reference instant (defaults to the current time; naive = UTC)
        windows: Thresholds (defaults apply when omitted)

    Returns:
        HealthSnapshot stamped with ``generatedAt = now``
    """
    windows = windows or HealthWindows()
    now = now or utc_now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)

    groups = group_by_session(events)
    sessions = reconstruct_sessions(events, now, groups=groups)

    classifier = HealthClassifier(windows)
    classification = classifier.classify(sessions)
    aggregates = aggregate(events, now, windows, groups=groups)

    return HealthSnapshot(
        status=classifier.overall_status(classification, len(aggregates.failures)),
        generated_at=now,
        windows=SnapshotWindows(
            stall_ms=windows.stall_ms,
            stuck_ms=windows.stuck_ms,
            lookback_24h_ms=windows.lookback_ms,
        ),
        totals=SnapshotTotals(
            events=len(events),
            sessions_observed=len(sessions),
            active_sessions=len(classification.active),
            stalled_sessions=classification.stalled_count,
            potentially_stuck_sessions=classification.stuck_count,
            failures_24h=len(aggregates.failures),
            completions_24h=len(aggregates.completions),
        ),
        active_sessions=classification.active,
        stalled_or_stuck_sessions=classification.stalled_or_stuck,
        recent_failures=aggregates.recent_failures,
        success_rate_24h=aggregates.success_rate,
        average_run_duration_by_agent_type=aggregates.average_durations,
    )
