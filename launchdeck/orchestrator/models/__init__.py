"""Data models for the orchestrator."""

from launchdeck.orchestrator.models.enums import (
    AttemptOutcome,
    ChannelKind,
    ConnectorPhase,
    ErrorPhase,
    OrchestrationEventType,
    WorkspaceStatus,
)
from launchdeck.orchestrator.models.events import OrchestrationEvent
from launchdeck.orchestrator.models.messages import ChannelMessage, parse_channel_message
from launchdeck.orchestrator.models.workspace import (
    Link,
    LinkParameter,
    Machine,
    MachineRuntime,
    Server,
    StatusChange,
    Workspace,
    WorkspaceConfig,
    WorkspaceRuntime,
    WorkspaceStartResult,
)

__all__ = [
    "AttemptOutcome",
    # Messages
    "ChannelKind",
    "ChannelMessage",
    "ConnectorPhase",
    "ErrorPhase",
    "Link",
    "LinkParameter",
    "Machine",
    "MachineRuntime",
    # Events
    "OrchestrationEvent",
    "OrchestrationEventType",
    "Server",
    "StatusChange",
    # Workspace
    "Workspace",
    "WorkspaceConfig",
    "WorkspaceRuntime",
    "WorkspaceStartResult",
    "WorkspaceStatus",
    "parse_channel_message",
]
