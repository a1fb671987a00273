"""Shared fixtures for Agent-Health tests."""

from __future__ import annotations

import itertools
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import pytest
from health_contract import HealthEvent

from agent_health.event_store import EventLogStore

T0 = datetime(2026, 2, 8, 12, 0, tzinfo=UTC)


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def make_event() -> Callable[..., HealthEvent]:
    """Factory for stored events with predictable ids."""
    counter = itertools.count(1)

    def _make(
        status: str = "heartbeat",
        *,
        at: datetime = T0,
        agent_id: str = "agent-a",
        run_id: str | None = "r1",
        agent_type: str | None = "worker",
        **fields: object,
    ) -> HealthEvent:
        return HealthEvent(
            id=f"he_test_{next(counter)}",
            ts=at,
            agent_id=agent_id,
            run_id=run_id,
            agent_type=agent_type,
            status=status,
            **fields,
        )

    return _make


@pytest.fixture
def events_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "health-events.json"


@pytest.fixture
def store(events_path: Path) -> EventLogStore:
    return EventLogStore(events_path)
