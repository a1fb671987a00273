"""
Health Classifier for Agent-Health.

Sorts reconstructed sessions into active and stalled/stuck buckets and derives
the overall monitor status.

Rules:
    - only sessions whose last event is a heartbeat are considered
    - active:  since_last_ms <= stuck_ms, soonest-to-go-stale first
    - stalled: since_last_ms >  stall_ms (yellow), > stuck_ms (red), worst first
    - degraded: any red session, or any error inside the lookback window
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal

from agent_health.sessions import SessionSummary
from agent_health.windows import HealthWindows

Severity = Literal["yellow", "red"]
OverallStatus = Literal["ok", "degraded"]


class FlaggedSession(SessionSummary):
    """A non-terminal session that has gone quiet."""

    severity: Severity


@dataclass
class Classification:
    """Output of one classification pass."""

    active: list[SessionSummary] = field(default_factory=list)
    stalled_or_stuck: list[FlaggedSession] = field(default_factory=list)

    @property
    def stalled_count(self) -> int:
        return sum(1 for s in self.stalled_or_stuck if s.severity == "yellow")

    @property
    def stuck_count(self) -> int:
        return sum(1 for s in self.stalled_or_stuck if s.severity == "red")


class HealthClassifier:
    """Applies the stall/stuck thresholds to session summaries."""

    def __init__(self, windows: HealthWindows | None = None) -> None:
        self.windows = windows or HealthWindows()

    def severity(self, session: SessionSummary) -> Severity | None:
        """Severity of a quiet session, or None if it is not flagged."""
        if session.is_terminal or session.since_last_ms <= self.windows.stall_ms:
            return None
        return "red" if session.since_last_ms > self.windows.stuck_ms else "yellow"

    def classify(self, sessions: Iterable[SessionSummary]) -> Classification:
        result = Classification()
        for session in sessions:
            if session.is_terminal:
                continue

            if session.since_last_ms <= self.windows.stuck_ms:
                result.active.append(session)

            severity = self.severity(session)
            if severity is not None:
                result.stalled_or_stuck.append(
                    FlaggedSession(**dict(session), severity=severity)
                )

        result.active.sort(key=lambda s: s.since_last_ms)
        result.stalled_or_stuck.sort(key=lambda s: s.since_last_ms, reverse=True)
        return result

    @staticmethod
    def overall_status(classification: Classification, failures_in_window: int) -> OverallStatus:
        if classification.stuck_count > 0 or failures_in_window > 0:
            return "degraded"
        return "ok"
