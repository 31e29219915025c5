"""Channel message model.

Bus payloads arrive as JSON text, decoded dicts, or plain log lines.  They are
parsed once, at the subscription boundary, into a ``ChannelMessage``.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

from launchdeck.orchestrator.models.enums import ChannelKind

ERROR_EVENT = "ERROR"


class ChannelMessage(BaseModel):
    """A single message observed on a workspace channel."""

    kind: ChannelKind
    workspace_id: str | None = None
    event_type: str | None = None
    error: str | None = None
    payload: dict[str, Any] | str
    text: str
    """Display form of the message, as appended to step logs."""

    def is_error_for(self, workspace_id: str) -> bool:
        """True when this is an ERROR event about ``workspace_id``."""
        return self.event_type == ERROR_EVENT and self.workspace_id == workspace_id


def _decode(raw: Any) -> dict[str, Any] | str:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str):
        return str(raw)
    stripped = raw.strip()
    if stripped.startswith("{"):
        try:
            decoded = json.loads(stripped)
        except json.JSONDecodeError:
            return raw
        if isinstance(decoded, dict):
            return decoded
    return raw


def render_text(payload: dict[str, Any] | str) -> str:
    """Render a payload the way it is shown in a step's log."""
    if isinstance(payload, str):
        return payload
    if "machineName" in payload and "content" in payload:
        return f"[{payload['machineName']}] {payload['content']}"
    for key in ("content", "text", "line", "error"):
        value = payload.get(key)
        if value:
            return str(value)
    if payload.get("eventType"):
        return str(payload["eventType"])
    return json.dumps(payload, sort_keys=True)


def parse_channel_message(kind: ChannelKind, raw: Any) -> ChannelMessage:
    """Parse a raw bus payload into a ``ChannelMessage``."""
    payload = _decode(raw)
    if isinstance(payload, str):
        return ChannelMessage(kind=kind, payload=payload, text=payload)

    error = payload.get("error")
    return ChannelMessage(
        kind=kind,
        workspace_id=payload.get("workspaceId"),
        event_type=payload.get("eventType"),
        error=str(error) if error is not None else None,
        payload=payload,
        text=render_text(payload),
    )
