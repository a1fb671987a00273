"""
Shared agent health telemetry contract.

Wire models and identifiers used by agents that report health events and by
the monitor that stores and evaluates them.
"""

from __future__ import annotations

from .constants import (
    DEFAULT_RUN_ID,
    DEFAULT_WINDOWS,
    DURATION_LOOKBACK_MS,
    HEALTH_EVENT_STATUSES,
    LOOKBACK_24H_MS,
    MAX_EVENTS,
    RECENT_FAILURES_LIMIT,
    STALL_MS,
    STUCK_MS,
    TERMINAL_STATUSES,
    UNKNOWN_AGENT_TYPE,
    agent_type_or_unknown,
    session_key,
)
from .models import (
    CamelModel,
    HealthEvent,
    HealthEventStatus,
    HealthReport,
    validation_details,
)
from .timestamps import elapsed_ms, format_timestamp, parse_timestamp, utc_now

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_RUN_ID",
    "DEFAULT_WINDOWS",
    "DURATION_LOOKBACK_MS",
    "HEALTH_EVENT_STATUSES",
    "LOOKBACK_24H_MS",
    "MAX_EVENTS",
    "RECENT_FAILURES_LIMIT",
    "STALL_MS",
    "STUCK_MS",
    "TERMINAL_STATUSES",
    "UNKNOWN_AGENT_TYPE",
    "CamelModel",
    "HealthEvent",
    "HealthEventStatus",
    "HealthReport",
    "agent_type_or_unknown",
    "elapsed_ms",
    "format_timestamp",
    "parse_timestamp",
    "session_key",
    "utc_now",
    "validation_details",
]
