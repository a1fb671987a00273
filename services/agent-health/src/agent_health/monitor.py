"""
Agent health monitor.

Binds the event log to the snapshot computation. Ingestion only writes the
log; every snapshot re-reads it, so there is no cached state to invalidate.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from health_contract import HealthEvent, HealthReport

from agent_health.event_store import EventLogStore
from agent_health.snapshot import HealthSnapshot, compute_snapshot
from agent_health.windows import HealthWindows

logger = logging.getLogger(__name__)


class AgentHealthMonitor:
    """Ingestion and query entry points over one event log."""

    def __init__(self, store: EventLogStore, windows: HealthWindows | None = None) -> None:
        self.store = store
        self.windows = windows or HealthWindows()

    def report(self, event: HealthReport | Mapping[str, Any]) -> HealthEvent:
        """Append one event. Raises EventValidationError or OSError."""
        stored = self.store.append(event)
        if stored.is_terminal:
            logger.info(
                f"Run {stored.session_key} finished with {stored.status.value}"
            )
        return stored

    def events(self) -> list[HealthEvent]:
        return self.store.read()

    def snapshot(self, now: datetime | None = None) -> HealthSnapshot:
        events = self.store.read()
        snapshot = compute_snapshot(events, now=now, windows=self.windows)
        if snapshot.status == "degraded":
            logger.debug(
                f"Agent health degraded: {snapshot.totals.potentially_stuck_sessions} stuck, "
                f"{snapshot.totals.failures_24h} failures in window"
            )
        return snapshot
