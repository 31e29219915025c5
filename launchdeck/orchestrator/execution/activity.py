"""Workspace activity reporting.

Embedded IDE frames post ``workspace-activity:<id>`` messages while the user
works; each one is forwarded to the control plane so the workspace is not
stopped for inactivity.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from loguru import logger

from launchdeck.orchestrator.errors import WorkspaceControlError

if TYPE_CHECKING:
    from launchdeck.orchestrator.control.base import WorkspaceControl

_ACTIVITY_RE = re.compile(r"workspace-activity:(.*)")


def parse_activity_message(data: object) -> str | None:
    """Return the workspace id carried by an activity message, if any."""
    if not isinstance(data, str):
        return None
    match = _ACTIVITY_RE.search(data)
    if match is None or not match.group(1):
        return None
    return match.group(1)


class ActivityTracker:
    def __init__(self, control: WorkspaceControl) -> None:
        self._control = control

    async def log_activity(self, workspace_id: str) -> bool:
        """Report activity.  Failures are logged, not raised; returns success."""
        try:
            await self._control.log_activity(workspace_id)
        except WorkspaceControlError as exc:
            logger.error("({}) {}", workspace_id, exc)
            return False
        logger.info("Workspace activity for WORKSPACE_ID: {}", workspace_id)
        return True

    async def handle_message(self, data: object) -> bool:
        workspace_id = parse_activity_message(data)
        if workspace_id is None:
            return False
        return await self.log_activity(workspace_id)
