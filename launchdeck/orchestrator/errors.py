"""Orchestration error types.

Every ``OrchestrationError`` is terminal for the attempt that raised it: the
attempt's subscriptions are torn down and an ``ErrorReport`` goes to the error
sink.  ``AttemptSuperseded`` is control flow only and never reaches a caller.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from launchdeck.orchestrator.models.enums import ErrorPhase


class ErrorReport(BaseModel):
    """Structured payload handed to the error sink."""

    phase: ErrorPhase
    message: str


class OrchestrationError(Exception):
    """Base class for terminal failures of a start attempt."""

    phase: ErrorPhase = ErrorPhase.REMOTE

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_report(self) -> ErrorReport:
        return ErrorReport(phase=self.phase, message=self.message)


class StartRequestFailed(OrchestrationError):
    """The control plane rejected the start request."""

    phase = ErrorPhase.START_REQUEST


class RemoteError(OrchestrationError):
    """The control plane reported the workspace in ERROR status."""

    phase = ErrorPhase.REMOTE

    def __init__(self, message: str, payload: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.payload = payload or {}


class DetailsFetchFailed(OrchestrationError):
    phase = ErrorPhase.DETAILS


class AgentConnectionFailed(OrchestrationError):
    """The agent connection could not be set up."""

    phase = ErrorPhase.CONNECTION


class ConnectionExhausted(AgentConnectionFailed):
    """Every agent connection attempt in the budget failed."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class AttemptSuperseded(Exception):  # noqa: N818
    """A newer start request invalidated this attempt."""


# -- Collaborator errors -----------------------------------------------------


class WorkspaceControlError(RuntimeError):
    """A Workspace Control request failed (transport error or non-2xx)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AgentLinkError(ConnectionError):
    """The agent endpoint could not be reached."""


class DuplicateSubscriptionError(ValueError):
    """Raised when a channel is subscribed twice without a teardown in between."""
