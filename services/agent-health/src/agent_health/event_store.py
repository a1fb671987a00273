"""
Event Log Store for Agent-Health.

Keeps the raw health events reported by agents in a single JSON array file.
The log is bounded to the most recent ``max_events`` records and every write
replaces the whole file through a temp file + rename, so a concurrent reader
always sees either the previous or the next complete log.

Reading is permissive: each record is validated on its own and skipped when it
does not conform, and an unreadable file degrades to an empty log.
"""

from __future__ import annotations

import json
import logging
import os
import secrets
import tempfile
import threading
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from health_contract import (
    HEALTH_EVENT_STATUSES,
    MAX_EVENTS,
    HealthEvent,
    HealthReport,
    parse_timestamp,
    utc_now,
    validation_details,
)
from health_contract.timestamps import is_finite_number
from pydantic import ValidationError

logger = logging.getLogger(__name__)


class EventValidationError(ValueError):
    """Submitted event was rejected; nothing was written."""

    def __init__(self, details: list[str]) -> None:
        super().__init__("; ".join(details) or "Validation failed")
        self.details = details


def generate_event_id() -> str:
    return f"he_{int(time.time() * 1000)}_{secrets.token_hex(3)}"


def _string_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def coerce_record(item: Any) -> HealthEvent | None:
    """
    Turn one stored record into a HealthEvent, or None to skip it.

    Required fields must be valid for the record to survive. Optional fields
    of the wrong type are dropped instead of failing the record.
    """
    if not isinstance(item, dict):
        return None

    event_id = item.get("id")
    ts = parse_timestamp(item.get("ts"))
    agent_id = item.get("agentId")
    status = item.get("status")
    if not isinstance(event_id, str) or ts is None:
        return None
    if not isinstance(agent_id, str) or not agent_id.strip():
        return None
    if not isinstance(status, str) or status not in HEALTH_EVENT_STATUSES:
        return None

    progress = item.get("progress")
    duration_ms = item.get("durationMs")
    meta = item.get("meta")
    try:
        return HealthEvent(
            id=event_id,
            ts=ts,
            agent_id=agent_id,
            agent_type=_string_or_none(item.get("agentType")),
            run_id=_string_or_none(item.get("runId")),
            status=status,
            message=_string_or_none(item.get("message")),
            progress=progress if isinstance(progress, str) or is_finite_number(progress) else None,
            duration_ms=duration_ms if is_finite_number(duration_ms) and duration_ms >= 0 else None,
            started_at=parse_timestamp(item.get("startedAt")),
            meta=meta if isinstance(meta, dict) else None,
        )
    except ValidationError:
        return None


class EventLogStore:
    """
    Bounded, append-only health event log backed by one JSON file.

    Appends within one process are serialized by a lock. Across processes the
    last rename wins and the file is never observed half-written.
    """

    def __init__(self, path: str | Path, max_events: int = MAX_EVENTS) -> None:
        if max_events <= 0:
            raise ValueError("max_events must be positive")
        self._path = Path(path)
        self._max_events = max_events
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def max_events(self) -> int:
        return self._max_events

    def read(self) -> list[HealthEvent]:
        """Return stored events, oldest first. Never raises on bad data."""
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as e:
            logger.warning(f"Unable to read health event log {self._path}: {e}")
            return []

        try:
            parsed = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Health event log {self._path} is not valid JSON: {e}")
            return []
        if not isinstance(parsed, list):
            logger.warning(f"Health event log {self._path} is not a JSON array, ignoring")
            return []

        events: list[HealthEvent] = []
        skipped = 0
        for item in parsed:
            event = coerce_record(item)
            if event is None:
                skipped += 1
                continue
            events.append(event)

        if skipped:
            logger.warning(f"Skipped {skipped} malformed record(s) in {self._path}")

        events.sort(key=lambda e: e.ts)
        return events[-self._max_events :]

    def append(self, event: HealthReport | Mapping[str, Any]) -> HealthEvent:
        """
        Stamp, validate and persist one event.

        Args:
            event: A validated HealthReport, or a raw mapping using the wire
                field names. A missing or unparsable ``ts`` on a mapping falls
                back to the submission time.

        Returns:
            The stored HealthEvent

        Raises:
            EventValidationError: required fields are missing or invalid
            OSError: the log could not be written
        """
        stored = self._stamp(event)

        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            current = self.read()
            updated = [*current, stored][-self._max_events :]
            self._write(updated)

        logger.debug(
            f"Stored {stored.status.value} event {stored.id} for {stored.session_key}"
        )
        return stored

    def _stamp(self, event: HealthReport | Mapping[str, Any]) -> HealthEvent:
        event_id: Any = None
        if isinstance(event, HealthReport):
            report = event
            if isinstance(event, HealthEvent):
                event_id = event.id
        else:
            data = dict(event)
            event_id = data.pop("id", None)
            if data.get("ts") is not None and parse_timestamp(data["ts"]) is None:
                data.pop("ts")
            try:
                report = HealthReport.model_validate(data)
            except ValidationError as e:
                details = validation_details(e)
                logger.info(f"Rejected health event: {'; '.join(details)}")
                raise EventValidationError(details) from e

        if not isinstance(event_id, str) or not event_id:
            event_id = generate_event_id()

        fields = {name: value for name, value in report if name not in ("id", "ts")}
        return HealthEvent(id=event_id, ts=report.ts or utc_now(), **fields)

    def _write(self, events: list[HealthEvent]) -> None:
        payload = json.dumps([e.to_record() for e in events], indent=2)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except Exception:
            Path(tmp_name).unlink(missing_ok=True)
            raise
