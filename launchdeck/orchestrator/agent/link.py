"""Agent endpoint link.

The agent lives inside the running workspace.  Opening a link succeeds once
the agent answers; the connector uses it as a readiness probe and closes the
connection as soon as it opens.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import httpx
from loguru import logger

from launchdeck.orchestrator.errors import AgentLinkError

# Reverse-proxy answers while the agent behind it is still booting.
_NOT_READY_STATUSES = frozenset({502, 503, 504})


@runtime_checkable
class AgentConnection(Protocol):
    async def close(self) -> None: ...


@runtime_checkable
class AgentLink(Protocol):
    """Opens connections to an agent endpoint."""

    async def open(self, url: str) -> AgentConnection:
        """Connect to ``url``.  Raises ``AgentLinkError`` if the agent is not reachable."""
        ...


def to_http_url(url: str) -> httpx.URL:
    """Map a ws/wss agent URL onto the http/https URL serving it."""
    parsed = httpx.URL(url)
    if parsed.scheme == "ws":
        return parsed.copy_with(scheme="http")
    if parsed.scheme == "wss":
        return parsed.copy_with(scheme="https")
    return parsed


class HttpAgentConnection:
    def __init__(self, url: str, status_code: int) -> None:
        self.url = url
        self.status_code = status_code
        self.closed = False

    async def close(self) -> None:
        self.closed = True


class HttpAgentLink:
    """Probes the agent endpoint over HTTP with httpx."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def open(self, url: str) -> HttpAgentConnection:
        if not url:
            msg = "No agent URL"
            raise AgentLinkError(msg)
        try:
            response = await self._client.get(to_http_url(url))
        except httpx.HTTPError as exc:
            msg = f"Agent at {url} unreachable: {exc}"
            raise AgentLinkError(msg) from exc
        if response.status_code in _NOT_READY_STATUSES:
            msg = f"Agent at {url} not ready (HTTP {response.status_code})"
            raise AgentLinkError(msg)
        logger.debug("Agent at {} answered HTTP {}", url, response.status_code)
        return HttpAgentConnection(url, response.status_code)

    async def aclose(self) -> None:
        await self._client.aclose()
