"""Workspace Control interface.

The remote control plane owns the workspace lifecycle.  The orchestrator only
asks it to start a workspace, waits on status transitions, and reads
workspace details.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from launchdeck.orchestrator.models.enums import WorkspaceStatus
from launchdeck.orchestrator.models.workspace import StatusChange, Workspace, WorkspaceStartResult


@runtime_checkable
class WorkspaceControl(Protocol):
    """Async protocol for the Workspace Control service.

    Implementations raise ``WorkspaceControlError`` on any failed request.
    """

    async def request_start(self, workspace_id: str, env_name: str | None) -> WorkspaceStartResult:
        """Ask the control plane to start the workspace in environment ``env_name``."""
        ...

    async def watch_status(self, workspace_id: str, target: WorkspaceStatus) -> StatusChange:
        """Resolve once the workspace reaches ``target``."""
        ...

    async def fetch_details(self, workspace_id: str) -> Workspace:
        """Authoritative read of the workspace, including its runtime."""
        ...

    async def fetch_workspaces(self) -> list[Workspace]:
        """List workspaces visible to the caller."""
        ...

    async def log_activity(self, workspace_id: str) -> None:
        """Record user activity so the workspace is not idled out."""
        ...
