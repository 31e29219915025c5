"""Bounded-retry connection to the workspace agent.

State machine::

    ATTEMPTING --open ok--------------------------> CONNECTED
    ATTEMPTING --open failed, budget left--(delay)-> ATTEMPTING
    ATTEMPTING --open failed, budget spent--------> EXHAUSTED
    ATTEMPTING --attempt no longer current--------> CANCELLED

The retry delay is awaited through an injectable ``sleep`` so tests can
observe every tick.  Whether the owning attempt is still current is checked
before every connection attempt, so a pending retry of a superseded attempt
never opens a connection.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from launchdeck.orchestrator.errors import AgentLinkError, AttemptSuperseded, ConnectionExhausted
from launchdeck.orchestrator.models.enums import ConnectorPhase

if TYPE_CHECKING:
    from loguru import Logger

    from launchdeck.orchestrator.agent.link import AgentLink
    from launchdeck.orchestrator.execution.subscriptions import ChannelSubscriptionManager

DEFAULT_RECONNECT_BUDGET = 50
DEFAULT_RETRY_DELAY = 1.0


@dataclass
class ReconnectState:
    target_url: str
    workspace_id: str
    remaining_attempts: int
    phase: ConnectorPhase = ConnectorPhase.ATTEMPTING
    attempts: int = 0
    last_error: Exception | None = None


def _always_current() -> bool:
    return True


class ReconnectingConnector:
    def __init__(
        self,
        link: AgentLink,
        *,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._link = link
        self.retry_delay = retry_delay
        self._sleep = sleep

    async def connect(
        self,
        url: str,
        workspace_id: str,
        budget: int = DEFAULT_RECONNECT_BUDGET,
        *,
        subscriptions: ChannelSubscriptionManager,
        is_current: Callable[[], bool] = _always_current,
        log: Logger = logger,
    ) -> ReconnectState:
        """Connect to the agent at ``url``, retrying up to ``budget`` attempts in total.

        On success or exhaustion the startup channels in ``subscriptions`` are
        torn down.  Raises ``ConnectionExhausted`` (chained to the last link
        error) when the budget is spent and ``AttemptSuperseded`` when
        ``is_current`` turns false between attempts.
        """
        if budget < 1:
            msg = f"Reconnect budget must be positive, got {budget}"
            raise ValueError(msg)

        state = ReconnectState(target_url=url, workspace_id=workspace_id, remaining_attempts=budget)
        while state.phase == ConnectorPhase.ATTEMPTING:
            if not is_current():
                state.phase = ConnectorPhase.CANCELLED
                log.info("Agent connection for workspace {} cancelled after {} attempts", workspace_id, state.attempts)
                raise AttemptSuperseded(workspace_id)
            await self._attempt(state, subscriptions, log)

        if state.phase == ConnectorPhase.EXHAUSTED:
            log.error(
                "Unable to reach agent for workspace {} after {} attempts: {}",
                workspace_id,
                state.attempts,
                state.last_error,
            )
            msg = "Unable to connect to the remote extension server after workspace creation"
            raise ConnectionExhausted(msg, attempts=state.attempts) from state.last_error

        return state

    async def _attempt(self, state: ReconnectState, subscriptions: ChannelSubscriptionManager, log: Logger) -> None:
        state.attempts += 1
        try:
            connection = await self._link.open(state.target_url)
        except AgentLinkError as exc:
            state.last_error = exc
            state.remaining_attempts -= 1
            if state.remaining_attempts > 0:
                log.debug(
                    "Agent for workspace {} not reachable ({}), {} attempts left",
                    state.workspace_id,
                    exc,
                    state.remaining_attempts,
                )
                await self._sleep(self.retry_delay)
                return
            state.phase = ConnectorPhase.EXHAUSTED
            await subscriptions.teardown_all()
            return

        state.phase = ConnectorPhase.CONNECTED
        await connection.close()
        await subscriptions.teardown_all()
        log.info("Agent for workspace {} reachable after {} attempts", state.workspace_id, state.attempts)
