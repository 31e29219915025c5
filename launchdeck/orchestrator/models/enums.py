"""Shared enumerations used across the orchestrator."""

from __future__ import annotations

from enum import StrEnum

# -- Workspace ---------------------------------------------------------------


class WorkspaceStatus(StrEnum):
    """Control-plane lifecycle status of a workspace."""

    STOPPED = "STOPPED"
    STARTING = "STARTING"
    RUNNING = "RUNNING"
    STOPPING = "STOPPING"
    ERROR = "ERROR"


# -- Channels ----------------------------------------------------------------


class ChannelKind(StrEnum):
    STATUS = "status"
    OUTPUT = "output"
    AGENT = "agent"


# -- Errors ------------------------------------------------------------------


class ErrorPhase(StrEnum):
    """Where a reported failure originated."""

    START_REQUEST = "start_request"
    RUNTIME = "runtime"
    AGENT = "agent"
    REMOTE = "remote"
    DETAILS = "details"
    CONNECTION = "connection"


# -- Attempts ----------------------------------------------------------------


class ConnectorPhase(StrEnum):
    ATTEMPTING = "attempting"
    CONNECTED = "connected"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


class AttemptOutcome(StrEnum):
    """How a ``start_workspace`` call resolved when it did not raise."""

    STARTED = "started"
    SUPERSEDED = "superseded"


# -- Events ------------------------------------------------------------------


class OrchestrationEventType(StrEnum):
    """Notifications emitted to the presentation layer."""

    RECENT_WORKSPACE_UPDATED = "recent_workspace_updated"
    WORKSPACE_LIST_REFRESH = "workspace_list_refresh"
    ATTEMPT_STARTED = "attempt_started"
    ATTEMPT_FINISHED = "attempt_finished"
    ATTEMPT_FAILED = "attempt_failed"
    STEP_ADVANCED = "step_advanced"
