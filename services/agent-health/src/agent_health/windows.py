"""Time windows used to evaluate agent health."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from health_contract import (
    DURATION_LOOKBACK_MS,
    LOOKBACK_24H_MS,
    RECENT_FAILURES_LIMIT,
    STALL_MS,
    STUCK_MS,
)

if TYPE_CHECKING:
    from agent_health.config import Settings


@dataclass(frozen=True)
class HealthWindows:
    """Thresholds in milliseconds, plus the failure list size."""

    stall_ms: int = STALL_MS            # silent longer than this: stalled
    stuck_ms: int = STUCK_MS            # silent longer than this: stuck
    lookback_ms: int = LOOKBACK_24H_MS  # success rate / failure window
    duration_lookback_ms: int = DURATION_LOOKBACK_MS
    recent_failures_limit: int = RECENT_FAILURES_LIMIT

    def __post_init__(self) -> None:
        if self.stall_ms <= 0 or self.stuck_ms < self.stall_ms:
            raise ValueError("stuck_ms must be >= stall_ms and both must be positive")
        if self.lookback_ms <= 0 or self.duration_lookback_ms <= 0:
            raise ValueError("Lookback windows must be positive")
        if self.recent_failures_limit < 0:
            raise ValueError("recent_failures_limit must be >= 0")

    @classmethod
    def from_settings(cls, settings: Settings) -> HealthWindows:
        return cls(
            stall_ms=settings.stall_ms,
            stuck_ms=settings.stuck_ms,
            lookback_ms=settings.lookback_ms,
            duration_lookback_ms=settings.duration_lookback_ms,
            recent_failures_limit=settings.recent_failures_limit,
        )
