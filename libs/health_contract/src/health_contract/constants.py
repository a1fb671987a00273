"""Identifiers and default windows of the agent health contract."""

from __future__ import annotations

from typing import Any

HEALTH_EVENT_STATUSES = ("heartbeat", "error", "completion")
TERMINAL_STATUSES = frozenset({"error", "completion"})

DEFAULT_RUN_ID = "default"
UNKNOWN_AGENT_TYPE = "unknown"

MAX_EVENTS = 1000
STALL_MS = 10 * 60_000
STUCK_MS = 15 * 60_000
LOOKBACK_24H_MS = 24 * 60 * 60_000
DURATION_LOOKBACK_MS = 7 * 24 * 60 * 60_000
RECENT_FAILURES_LIMIT = 25

DEFAULT_WINDOWS = {
    "stallMs": STALL_MS,
    "stuckMs": STUCK_MS,
    "lookback24hMs": LOOKBACK_24H_MS,
}


def session_key(agent_id: str, run_id: str | None) -> str:
    """Identity of one run: ``<agentId>:<runId or "default">``."""
    return f"{agent_id}:{run_id if run_id is not None else DEFAULT_RUN_ID}"


def agent_type_or_unknown(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return UNKNOWN_AGENT_TYPE
