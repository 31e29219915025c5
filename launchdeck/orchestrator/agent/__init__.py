"""Agent endpoint probing and URL resolution."""

from launchdeck.orchestrator.agent.link import AgentConnection, AgentLink, HttpAgentLink
from launchdeck.orchestrator.agent.urls import (
    AgentUrlResolver,
    FixedPortAgentUrlResolver,
    resolve_agent_url,
    resolve_ide_url,
)

__all__ = [
    "AgentConnection",
    "AgentLink",
    "AgentUrlResolver",
    "FixedPortAgentUrlResolver",
    "HttpAgentLink",
    "resolve_agent_url",
    "resolve_ide_url",
]
