"""In-process message bus.

Delivers published payloads synchronously to the channel's handlers.  Used
when no Redis is configured and throughout the test suite.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from launchdeck.orchestrator.bus.base import MessageHandler


class LocalBus:
    """In-memory implementation of the Bus protocol."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[MessageHandler]] = {}

    async def subscribe(self, channel: str, handler: MessageHandler) -> None:
        self._handlers.setdefault(channel, []).append(handler)

    async def unsubscribe(self, channel: str) -> None:
        self._handlers.pop(channel, None)

    def publish(self, channel: str, data: Any) -> int:
        """Deliver ``data`` to every handler on ``channel``.  Returns the handler count."""
        handlers = list(self._handlers.get(channel, ()))
        for handler in handlers:
            handler(data)
        if not handlers:
            logger.debug("LocalBus: no subscribers on {}", channel)
        return len(handlers)

    def is_subscribed(self, channel: str) -> bool:
        return channel in self._handlers

    @property
    def channels(self) -> list[str]:
        return list(self._handlers)
