"""Workspace data model as returned by the Workspace Control service.

Wire names are camelCase (``defaultEnv``, ``devMachine``); models accept
either form.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from launchdeck.orchestrator.models.enums import WorkspaceStatus

STATUS_CHANNEL_REL = "environment.status_channel"
OUTPUT_CHANNEL_REL = "environment.output_channel"
AGENT_WEBSOCKET_REL = "wsagent.websocket"
IDE_URL_REL = "ide url"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class LinkParameter(_WireModel):
    name: str = ""
    default_value: str | None = None


class Link(_WireModel):
    rel: str
    href: str = ""
    method: str | None = None
    parameters: list[LinkParameter] = Field(default_factory=list)


def find_link(links: list[Link], rel: str) -> Link | None:
    """Return the first link tagged ``rel``, or None."""
    for link in links:
        if link.rel == rel:
            return link
    return None


def href_for(links: list[Link], rel: str) -> str:
    """Return the href of the link tagged ``rel``, or an empty string."""
    link = find_link(links, rel)
    return link.href if link else ""


def channel_for(links: list[Link], rel: str) -> str | None:
    """Resolve a bus channel name from a link's first parameter.

    Returns None when the link is missing or carries no non-empty default.
    """
    link = find_link(links, rel)
    if link is None or not link.parameters:
        return None
    return link.parameters[0].default_value or None


class Server(_WireModel):
    address: str | None = None
    url: str | None = None
    ref: str | None = None


class MachineRuntime(_WireModel):
    env_variables: dict[str, str] = Field(default_factory=dict)
    servers: dict[str, Server] = Field(default_factory=dict)


class Machine(_WireModel):
    id: str | None = None
    runtime: MachineRuntime = Field(default_factory=MachineRuntime)


class WorkspaceRuntime(_WireModel):
    """Present only once the workspace is RUNNING."""

    links: list[Link] = Field(default_factory=list)
    dev_machine: Machine | None = None
    machines: list[Machine] = Field(default_factory=list)


class WorkspaceConfig(_WireModel):
    name: str | None = None
    default_env: str | None = None


class Workspace(_WireModel):
    id: str
    status: WorkspaceStatus = WorkspaceStatus.STOPPED
    config: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    links: list[Link] = Field(default_factory=list)
    runtime: WorkspaceRuntime | None = None


class WorkspaceStartResult(_WireModel):
    """Acknowledgement of a start request, carrying the channel links."""

    id: str
    status: WorkspaceStatus = WorkspaceStatus.STARTING
    links: list[Link] = Field(default_factory=list)

    @property
    def status_channel(self) -> str | None:
        return channel_for(self.links, STATUS_CHANNEL_REL)

    @property
    def output_channel(self) -> str | None:
        return channel_for(self.links, OUTPUT_CHANNEL_REL)


class StatusChange(BaseModel):
    """A workspace reaching a watched status."""

    workspace_id: str
    status: WorkspaceStatus
    error: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    """Raw workspace body observed at the transition, when the control plane returned one."""


def agent_channel_for(workspace_id: str) -> str:
    """Channel carrying the in-workspace agent's startup output."""
    return f"workspace:{workspace_id}:ext-server:output"
