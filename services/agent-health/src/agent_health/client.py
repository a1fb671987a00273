"""
HTTP client for agents reporting to the Agent-Health service.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import httpx
from health_contract import HealthEventStatus, HealthReport


class HealthReportClient:
    """
    Reports health events for one agent run.

    Example:
        client = HealthReportClient("http://localhost:8012", "agent:main", run_id="run_1")
        await client.heartbeat(progress="3/10")
        await client.complete(duration_ms=5000)
        await client.close()
    """

    def __init__(
        self,
        base_url: str,
        agent_id: str,
        *,
        agent_type: str | None = None,
        run_id: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self.agent_id = agent_id
        self.agent_type = agent_type
        self.run_id = run_id
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HealthReportClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def report(
        self,
        status: HealthEventStatus | str,
        *,
        message: str | None = None,
        progress: str | int | float | None = None,
        duration_ms: int | float | None = None,
        started_at: datetime | None = None,
        ts: datetime | None = None,
        meta: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Submit one event and return the stored event.

        Raises:
            pydantic.ValidationError: the event is invalid before sending
            httpx.HTTPStatusError: the service rejected the event
        """
        report = HealthReport(
            ts=ts,
            agent_id=self.agent_id,
            agent_type=self.agent_type,
            run_id=self.run_id,
            status=status,
            message=message,
            progress=progress,
            duration_ms=duration_ms,
            started_at=started_at,
            meta=meta,
        )
        response = await self._client.post(
            f"{self._base_url}/health/report",
            json=report.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        response.raise_for_status()
        return response.json()["event"]

    async def heartbeat(
        self,
        *,
        message: str | None = None,
        progress: str | int | float | None = None,
        meta: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self.report(
            HealthEventStatus.HEARTBEAT, message=message, progress=progress, meta=meta
        )

    async def complete(
        self,
        *,
        duration_ms: int | float | None = None,
        started_at: datetime | None = None,
        message: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self.report(
            HealthEventStatus.COMPLETION,
            duration_ms=duration_ms,
            started_at=started_at,
            message=message,
            meta=meta,
        )

    async def error(
        self, message: str, *, meta: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        return await self.report(HealthEventStatus.ERROR, message=message, meta=meta)

    async def snapshot(self) -> dict[str, Any]:
        """Fetch the current health snapshot."""
        response = await self._client.get(f"{self._base_url}/health/agents")
        response.raise_for_status()
        return response.json()
