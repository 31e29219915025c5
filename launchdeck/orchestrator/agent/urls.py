"""Agent and IDE URL resolution from workspace details."""

from __future__ import annotations

import random
from collections.abc import Callable, Mapping
from urllib.parse import urlencode

from launchdeck.orchestrator.models.workspace import (
    AGENT_WEBSOCKET_REL,
    IDE_URL_REL,
    Machine,
    Workspace,
    href_for,
)

AgentUrlResolver = Callable[[Workspace], str]
"""Maps workspace details to the agent URL; empty string when none is exposed."""

RIDE_ENV_VARIABLE = "RIDE"
RIDE_SERVER = "8080/tcp"


def _primary_machine(workspace: Workspace) -> Machine | None:
    runtime = workspace.runtime
    if runtime is None:
        return None
    if runtime.dev_machine is not None:
        return runtime.dev_machine
    return runtime.machines[0] if runtime.machines else None


def resolve_agent_url(workspace: Workspace) -> str:
    """Agent URL published as the runtime link ``wsagent.websocket``."""
    if workspace.runtime is None:
        return ""
    return href_for(workspace.runtime.links, AGENT_WEBSOCKET_REL)


class FixedPortAgentUrlResolver:
    """Builds the agent URL from the host address mapped to a fixed machine port."""

    def __init__(self, port: int = 8080, path: str = "/wsagent/ws") -> None:
        self.port = port
        self.path = path if path.startswith("/") else f"/{path}"

    def __call__(self, workspace: Workspace) -> str:
        machine = _primary_machine(workspace)
        if machine is None:
            return ""
        server = machine.runtime.servers.get(f"{self.port}/tcp")
        if server is None or not server.address:
            return ""
        return f"ws://{server.address}{self.path}"


def _ride_url(workspace: Workspace, origin: str) -> str | None:
    dev_machine = _primary_machine(workspace)
    if dev_machine is None or not dev_machine.runtime.env_variables.get(RIDE_ENV_VARIABLE):
        return None
    machines = workspace.runtime.machines if workspace.runtime else []
    server = machines[0].runtime.servers.get(RIDE_SERVER) if machines else None
    if server is None or not server.address or ":" not in server.address:
        return None
    proxy_port = server.address.split(":")[1]
    origin = origin.rstrip("/")
    if origin.startswith("https:"):
        return f"{origin}/ssl_{proxy_port}/p8080/ride"
    return f"{origin}:{proxy_port}/p8080/ride"


def resolve_ide_url(
    workspace: Workspace,
    *,
    origin: str,
    params: Mapping[str, str] | None = None,
    action: str | None = None,
    uid: int | None = None,
) -> str:
    """IDE URL for a running workspace.

    Workspaces whose dev machine sets ``RIDE`` are served on the proxy port
    mapped to ``8080/tcp``; every other workspace uses its ``ide url`` link
    with a cache-busting ``uid``, the optional ``action`` and any extra
    loading parameters.
    """
    ride = _ride_url(workspace, origin)
    if ride is not None:
        return ride

    query: list[tuple[str, str]] = [("uid", str(uid if uid is not None else random.randint(1, 1_000_000)))]  # noqa: S311
    if action:
        query.append(("action", action))
    if params:
        query.extend(params.items())
    return f"{href_for(workspace.links, IDE_URL_REL)}?{urlencode(query)}"
