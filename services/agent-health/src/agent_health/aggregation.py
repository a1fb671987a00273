"""
Aggregation Engine for Agent-Health.

Windowed statistics over raw events:
- success rate over terminal events (completion vs error)
- most recent failures
- average run duration per agent type, from completion events
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from health_contract import (
    CamelModel,
    HealthEvent,
    HealthEventStatus,
    elapsed_ms,
    format_timestamp,
)
from pydantic import ConfigDict, field_serializer

from agent_health.sessions import group_by_session
from agent_health.windows import HealthWindows


class SuccessRate(CamelModel):
    """Completions vs errors. ``rate`` is None when there is no data."""

    model_config = ConfigDict(frozen=True)

    success: int
    error: int
    total: int
    rate: float | None


class AgentTypeDuration(CamelModel):
    model_config = ConfigDict(frozen=True)

    agent_type: str
    runs: int
    avg_duration_ms: int


class FailureRecord(CamelModel):
    model_config = ConfigDict(frozen=True)

    ts: datetime
    agent_id: str
    agent_type: str
    run_id: str | None = None
    message: str | None = None

    @field_serializer("ts")
    def _serialize_ts(self, value: datetime) -> str:
        return format_timestamp(value)


@dataclass
class Aggregates:
    """Everything the snapshot needs from the trailing window."""

    failures: list[HealthEvent]
    completions: list[HealthEvent]
    success_rate: SuccessRate
    recent_failures: list[FailureRecord]
    average_durations: list[AgentTypeDuration]


def in_window(events: Iterable[HealthEvent], now: datetime, lookback_ms: int) -> list[HealthEvent]:
    cutoff = now - timedelta(milliseconds=lookback_ms)
    return [e for e in events if e.ts >= cutoff]


def compute_success_rate(events: Iterable[HealthEvent]) -> SuccessRate:
    success = error = 0
    for event in events:
        if event.status is HealthEventStatus.COMPLETION:
            success += 1
        elif event.status is HealthEventStatus.ERROR:
            error += 1
    total = success + error
    return SuccessRate(
        success=success,
        error=error,
        total=total,
        rate=success / total if total > 0 else None,
    )


def resolve_duration_ms(
    completion: HealthEvent,
    session_events: Sequence[HealthEvent],
    duration_lookback_ms: int,
) -> float | None:
    """
    Duration of the run that ``completion`` closes, or None if unknown.

    Priority:
        1. explicit ``durationMs`` (non-negative)
        2. ``ts - startedAt`` when ``startedAt <= ts``
        3. ``ts`` minus the earliest event of the session that is not after
           the completion and at most ``duration_lookback_ms`` older. The
           completion itself qualifies, so a run with no earlier event lasts 0
    """
    if completion.duration_ms is not None and completion.duration_ms >= 0:
        return completion.duration_ms

    end = completion.ts
    if completion.started_at is not None and completion.started_at <= end:
        return elapsed_ms(completion.started_at, end)

    horizon = timedelta(milliseconds=duration_lookback_ms)
    for event in session_events:  # ascending by ts
        if event.ts <= end and end - event.ts <= horizon:
            return elapsed_ms(event.ts, end)
    return None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def average_run_durations(
    completions: Iterable[HealthEvent],
    groups: dict[str, list[HealthEvent]],
    duration_lookback_ms: int,
) -> list[AgentTypeDuration]:
    """Average resolved durations per agent type, most runs first."""
    durations: dict[str, list[float]] = {}
    for completion in completions:
        duration = resolve_duration_ms(
            completion, groups.get(completion.session_key, []), duration_lookback_ms
        )
        if duration is None or not math.isfinite(duration) or duration < 0:
            continue
        durations.setdefault(completion.resolved_agent_type, []).append(duration)

    rows = [
        AgentTypeDuration(
            agent_type=agent_type,
            runs=len(values),
            avg_duration_ms=_round_half_up(sum(values) / len(values)),
        )
        for agent_type, values in durations.items()
    ]
    rows.sort(key=lambda r: (-r.runs, r.agent_type))
    return rows


def recent_failures(failures: Iterable[HealthEvent], limit: int) -> list[FailureRecord]:
    newest_first = sorted(failures, key=lambda e: e.ts, reverse=True)
    return [
        FailureRecord(
            ts=e.ts,
            agent_id=e.agent_id,
            agent_type=e.resolved_agent_type,
            run_id=e.run_id,
            message=e.message,
        )
        for e in newest_first[:limit]
    ]


def aggregate(
    events: Sequence[HealthEvent],
    now: datetime,
    windows: HealthWindows | None = None,
    *,
    groups: dict[str, list[HealthEvent]] | None = None,
) -> Aggregates:
    """
    Compute all windowed aggregates.

    Args:
        events: All stored events (duration inference looks outside the window)
        now: Reference instant
        windows: Thresholds (defaults apply when omitted)
        groups: Precomputed ``group_by_session`` result to reuse

    Returns:
        Aggregates for the trailing ``windows.lookback_ms``
    """
    windows = windows or HealthWindows()
    if groups is None:
        groups = group_by_session(events)

    recent = in_window(events, now, windows.lookback_ms)
    failures = [e for e in recent if e.status is HealthEventStatus.ERROR]
    completions = [e for e in recent if e.status is HealthEventStatus.COMPLETION]

    return Aggregates(
        failures=failures,
        completions=completions,
        success_rate=compute_success_rate(recent),
        recent_failures=recent_failures(failures, windows.recent_failures_limit),
        average_durations=average_run_durations(
            completions, groups, windows.duration_lookback_ms
        ),
    )
