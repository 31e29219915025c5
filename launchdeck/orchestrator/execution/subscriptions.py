"""Channel subscriptions owned by one start attempt.

Each attempt gets its own manager over the shared bus, so tearing down a
superseded attempt can never touch channels subscribed by its successor.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from launchdeck.orchestrator.errors import DuplicateSubscriptionError

if TYPE_CHECKING:
    from launchdeck.orchestrator.bus.base import Bus, MessageHandler


class ChannelSubscriptionManager:
    """Tracks the channels one attempt has subscribed and tears them down in bulk."""

    def __init__(self, bus: Bus) -> None:
        self._bus = bus
        self._channels: list[str] = []

    async def subscribe(self, channel: str, handler: MessageHandler) -> None:
        """Subscribe ``handler`` to ``channel``.

        Raises ``DuplicateSubscriptionError`` if ``channel`` is already tracked.
        """
        if channel in self._channels:
            raise DuplicateSubscriptionError(channel)
        self._channels.append(channel)
        await self._bus.subscribe(channel, handler)
        logger.debug("Subscribed channel {}", channel)

    async def teardown_all(self) -> int:
        """Unsubscribe every tracked channel.  Returns how many were dropped.

        Safe to call repeatedly; later calls find nothing to drop.
        """
        channels, self._channels = self._channels, []
        for channel in channels:
            await self._bus.unsubscribe(channel)
        if channels:
            logger.debug("Unsubscribed {} channels: {}", len(channels), ", ".join(channels))
        return len(channels)

    @property
    def channels(self) -> tuple[str, ...]:
        return tuple(self._channels)

    def __contains__(self, channel: object) -> bool:
        return channel in self._channels

    def __len__(self) -> int:
        return len(self._channels)
