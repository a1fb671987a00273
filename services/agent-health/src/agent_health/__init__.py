"""
Agent-Health: Health Telemetry Monitor for Autonomous Agents

Import ``agent_health.main`` for the FastAPI service.
"""

from agent_health.aggregation import AgentTypeDuration, FailureRecord, SuccessRate
from agent_health.classifier import Classification, FlaggedSession, HealthClassifier
from agent_health.client import HealthReportClient
from agent_health.config import Settings
from agent_health.event_store import EventLogStore, EventValidationError
from agent_health.monitor import AgentHealthMonitor
from agent_health.sessions import SessionSummary, reconstruct_sessions
from agent_health.snapshot import HealthSnapshot, compute_snapshot
from agent_health.windows import HealthWindows

__all__ = [
    "Settings",
    "EventLogStore",
    "EventValidationError",
    "SessionSummary",
    "reconstruct_sessions",
    "HealthClassifier",
    "Classification",
    "FlaggedSession",
    "SuccessRate",
    "AgentTypeDuration",
    "FailureRecord",
    "HealthSnapshot",
    "compute_snapshot",
    "HealthWindows",
    "AgentHealthMonitor",
    "HealthReportClient",
]

__version__ = "0.1.0"
