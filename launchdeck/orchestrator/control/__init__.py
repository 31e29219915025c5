"""Workspace Control clients."""

from launchdeck.orchestrator.control.base import WorkspaceControl
from launchdeck.orchestrator.control.http import HttpWorkspaceControl

__all__ = ["HttpWorkspaceControl", "WorkspaceControl"]
