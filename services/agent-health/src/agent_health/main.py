"""
Agent-Health: Agent Health Telemetry Monitor

This service implements health monitoring for autonomous agents:
1. Accepts heartbeat / error / completion events self-reported by agents
2. Keeps them in a bounded JSON event log, replaced atomically on each write
3. Rebuilds per-run sessions from the log on every query
4. Flags stalled and stuck runs and aggregates 24h success rate and durations
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from health_contract import (
    HEALTH_EVENT_STATUSES,
    TERMINAL_STATUSES,
    HealthReport,
    validation_details,
)
from health_contract import (
    __version__ as contract_version,
)
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from agent_health.config import Settings
from agent_health.event_store import EventLogStore
from agent_health.monitor import AgentHealthMonitor
from agent_health.rate_limit import FixedWindowRateLimiter
from agent_health.snapshot import HealthSnapshot
from agent_health.windows import HealthWindows

settings = Settings()

# Configure logging
logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

NO_STORE = {"Cache-Control": "no-store"}

router = APIRouter()


# ============================================================================
# FastAPI Application
# ============================================================================


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the service around one event log."""
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan for startup/shutdown."""
        logger.info("Starting Agent-Health service...")

        store = EventLogStore(
            app_settings.health_events_path,
            max_events=app_settings.max_events,
        )
        app.state.monitor = AgentHealthMonitor(
            store, HealthWindows.from_settings(app_settings)
        )
        app.state.rate_limiter = FixedWindowRateLimiter(
            window_seconds=app_settings.rate_limit_window_seconds,
            max_requests=app_settings.rate_limit_max_requests,
        )

        logger.info(f"Agent-Health service started (event log: {store.path})")

        yield

        logger.info("Shutting down Agent-Health service...")

    app = FastAPI(
        title="Agent-Health",
        description="Health telemetry monitor for self-reporting autonomous agents",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.include_router(router)
    return app


# ============================================================================
# API Endpoints
# ============================================================================


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Service health check endpoint."""
    return {"status": "healthy", "service": "agent-health"}


@router.get("/debug/contract")
async def debug_contract(request: Request) -> dict[str, object]:
    """Expose the telemetry contract and active thresholds."""
    monitor: AgentHealthMonitor = request.app.state.monitor
    return {
        "service": "agent-health",
        "contract_version": contract_version,
        "statuses": list(HEALTH_EVENT_STATUSES),
        "terminal_statuses": sorted(TERMINAL_STATUSES),
        "max_events": monitor.store.max_events,
        "windows": {
            "stallMs": monitor.windows.stall_ms,
            "stuckMs": monitor.windows.stuck_ms,
            "lookback24hMs": monitor.windows.lookback_ms,
            "durationLookbackMs": monitor.windows.duration_lookback_ms,
        },
    }


@router.post("/health/report", status_code=201)
async def report_event(request: Request) -> JSONResponse:
    """
    Ingest one health event reported by an agent.

    1. Rate limit per client IP
    2. Enforce the request size limit
    3. Validate the JSON body against the telemetry contract
    4. Append to the event log
    """
    app_settings: Settings = request.app.state.settings
    monitor: AgentHealthMonitor = request.app.state.monitor
    limiter: FixedWindowRateLimiter = request.app.state.rate_limiter

    limit = limiter.check(f"health-report:{_client_ip(request)}")
    if not limit.ok:
        return JSONResponse(
            {"error": "Too many requests"},
            status_code=429,
            headers={"Retry-After": str(limit.retry_after_seconds)},
        )

    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > app_settings.max_report_bytes:
        return _payload_too_large()
    body = await request.body()
    if len(body) > app_settings.max_report_bytes:
        return _payload_too_large()

    try:
        payload = json.loads(body)
    except ValueError:
        return _invalid_body()
    if not isinstance(payload, dict):
        return _invalid_body()

    try:
        report = HealthReport.model_validate(payload)
    except ValidationError as e:
        details = validation_details(e)
        logger.info(f"Rejected health report: {'; '.join(details)}")
        return JSONResponse(
            {"error": "Validation failed", "details": details},
            status_code=400,
        )

    try:
        stored = await run_in_threadpool(monitor.report, report)
    except OSError as e:
        logger.error(f"Failed to store health event: {e}")
        raise HTTPException(status_code=500, detail="Failed to store health event") from e

    return JSONResponse(
        {"success": True, "event": stored.to_record()},
        status_code=201,
        headers=NO_STORE,
    )


@router.get("/health/report")
async def report_usage(request: Request) -> Response:
    """Markdown notes for agent authors."""
    monitor: AgentHealthMonitor = request.app.state.monitor
    return Response(
        content=_usage_markdown(monitor),
        media_type="text/markdown",
        headers={"Cache-Control": "public, max-age=300"},
    )


@router.get("/health/agents", response_model=HealthSnapshot)
async def agent_health(request: Request, response: Response) -> HealthSnapshot:
    """Current health snapshot, recomputed from the event log."""
    monitor: AgentHealthMonitor = request.app.state.monitor
    snapshot = await run_in_threadpool(monitor.snapshot)
    response.headers["Cache-Control"] = NO_STORE["Cache-Control"]
    return snapshot


# ============================================================================
# Helper Functions
# ============================================================================


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client:
        return request.client.host
    return "unknown"


def _payload_too_large() -> JSONResponse:
    return JSONResponse({"error": "Payload too large"}, status_code=413)


def _invalid_body() -> JSONResponse:
    return JSONResponse(
        {"error": "Invalid request body. Expected JSON."}, status_code=400
    )


def _usage_markdown(monitor: AgentHealthMonitor) -> str:
    stall_min = monitor.windows.stall_ms // 60_000
    stuck_min = monitor.windows.stuck_ms // 60_000
    return f"""# Agent Health Reporting

## POST /health/report

Agents self-report status events (append-only).

### Request body (JSON)

```json
{{
  "agentId": "agent:main",
  "agentType": "main",
  "runId": "run_123",
  "status": "heartbeat" | "error" | "completion",
  "message": "optional",
  "progress": "optional string or number",
  "durationMs": 12345,
  "startedAt": "2026-02-08T17:42:00.000Z",
  "meta": {{ "any": "json" }}
}}
```

### Notes

- Runs with no events for >{stall_min} minutes are shown as stalled.
- Runs with no events for >{stuck_min} minutes are marked as potentially stuck.
- Events are stored in `{monitor.store.path.name}` (last {monitor.store.max_events} entries).

## GET /health/agents

Returns the current health snapshot.
"""


app = create_app()


def run() -> None:
    """Entry point for running the service."""
    import uvicorn

    uvicorn.run(
        "agent_health.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
