"""
Configuration settings for the Agent-Health monitor service.
"""

from health_contract import (
    DURATION_LOOKBACK_MS,
    LOOKBACK_24H_MS,
    MAX_EVENTS,
    RECENT_FAILURES_LIMIT,
    STALL_MS,
    STUCK_MS,
)
from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Service configuration loaded from environment variables."""

    # Service settings
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8012
    debug: bool = False
    app_env: str = "dev"
    log_level: str = "INFO"

    # Event log
    health_events_path: str = "data/health-events.json"
    max_events: int = MAX_EVENTS

    # Health windows (milliseconds)
    stall_ms: int = STALL_MS
    stuck_ms: int = STUCK_MS
    lookback_ms: int = LOOKBACK_24H_MS
    duration_lookback_ms: int = DURATION_LOOKBACK_MS
    recent_failures_limit: int = RECENT_FAILURES_LIMIT

    # Ingestion limits
    max_report_bytes: int = 16_000
    rate_limit_window_seconds: float = 60.0
    rate_limit_max_requests: int = 120

    model_config = {"env_prefix": "", "case_sensitive": False}

    @model_validator(mode="after")
    def _validate_windows(self) -> "Settings":
        if self.stall_ms <= 0 or self.stuck_ms < self.stall_ms:
            raise ValueError("STUCK_MS must be >= STALL_MS and both must be positive")
        if self.max_events <= 0:
            raise ValueError("MAX_EVENTS must be positive")
        if self.rate_limit_max_requests <= 0 or self.rate_limit_window_seconds <= 0:
            raise ValueError("Rate limit window and max requests must be positive")
        return self
