"""Pydantic models for agent health telemetry payloads."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
    ValidationInfo,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .constants import (
    HEALTH_EVENT_STATUSES,
    TERMINAL_STATUSES,
    agent_type_or_unknown,
    session_key,
)
from .timestamps import format_timestamp, is_finite_number, parse_timestamp


class CamelModel(BaseModel):
    """Base model speaking camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthEventStatus(str, Enum):
    """Status reported by an agent. Heartbeats keep a run open."""

    HEARTBEAT = "heartbeat"
    ERROR = "error"
    COMPLETION = "completion"

    @property
    def is_terminal(self) -> bool:
        return self.value in TERMINAL_STATUSES


class HealthReport(CamelModel):
    """Event as submitted by an agent, before it is stamped and stored."""

    model_config = ConfigDict(extra="ignore")

    ts: datetime | None = None
    agent_id: str
    agent_type: str | None = None
    run_id: str | None = None
    status: HealthEventStatus
    message: str | None = None
    progress: str | int | float | None = None
    duration_ms: int | float | None = None
    started_at: datetime | None = None
    meta: dict[str, Any] | None = None

    @field_validator("agent_id", mode="before")
    @classmethod
    def _require_agent_id(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("agentId is required")
        return value.strip()

    @field_validator("status", mode="before")
    @classmethod
    def _known_status(cls, value: Any) -> Any:
        if isinstance(value, HealthEventStatus):
            return value
        if not isinstance(value, str) or value not in HEALTH_EVENT_STATUSES:
            raise ValueError(
                'status must be one of: "heartbeat" | "error" | "completion"'
            )
        return value

    @field_validator("agent_type", "run_id", mode="before")
    @classmethod
    def _trimmed_string(cls, value: Any, info: ValidationInfo) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError(f"{_alias(cls, info)} must be a string")
        return value.strip() or None

    @field_validator("message", mode="before")
    @classmethod
    def _plain_string(cls, value: Any) -> str | None:
        if value is not None and not isinstance(value, str):
            raise ValueError("message must be a string")
        return value

    @field_validator("progress", mode="before")
    @classmethod
    def _string_or_number(cls, value: Any) -> Any:
        if value is None or isinstance(value, str) or is_finite_number(value):
            return value
        raise ValueError("progress must be a string or number")

    @field_validator("duration_ms", mode="before")
    @classmethod
    def _non_negative_duration(cls, value: Any) -> Any:
        if value is None:
            return None
        if not is_finite_number(value) or value < 0:
            raise ValueError("durationMs must be a non-negative number")
        return value

    @field_validator("ts", "started_at", mode="before")
    @classmethod
    def _iso_timestamp(cls, value: Any, info: ValidationInfo) -> datetime | None:
        if value is None:
            return None
        parsed = parse_timestamp(value)
        if parsed is None:
            raise ValueError(f"{_alias(cls, info)} must be an ISO date string")
        return parsed

    @field_validator("meta", mode="before")
    @classmethod
    def _json_object(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, dict):
            raise ValueError("meta must be an object")
        return value

    @field_serializer("ts", "started_at")
    def _serialize_timestamp(self, value: datetime | None) -> str | None:
        return format_timestamp(value) if value is not None else None


class HealthEvent(HealthReport):
    """A stored telemetry event. Immutable once written."""

    model_config = ConfigDict(frozen=True)

    id: str
    ts: datetime

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def session_key(self) -> str:
        return session_key(self.agent_id, self.run_id)

    @property
    def resolved_agent_type(self) -> str:
        return agent_type_or_unknown(self.agent_type)

    def to_record(self) -> dict[str, Any]:
        """JSON-ready dict as persisted in the event log."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _alias(model: type[BaseModel], info: ValidationInfo) -> str:
    field = model.model_fields.get(info.field_name or "")
    if field is not None and field.alias:
        return field.alias
    return to_camel(info.field_name or "")


def validation_details(exc: ValidationError) -> list[str]:
    """Flatten a pydantic ValidationError into caller-facing messages."""
    details: list[str] = []
    for error in exc.errors():
        loc = error.get("loc") or ()
        name = str(loc[0]) if loc else "body"
        if error["type"] == "missing":
            message = f"{name} is required"
        elif error["type"] == "value_error" and "error" in error.get("ctx", {}):
            message = str(error["ctx"]["error"])
        else:
            message = f"{name}: {error['msg']}"
        if message not in details:
            details.append(message)
    return details
