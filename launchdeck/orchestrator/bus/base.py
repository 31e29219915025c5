"""Message bus interface.

A bus carries named channels of workspace status and log events.  Handlers
are plain callables invoked on the event loop with the raw payload; parsing
into ``ChannelMessage`` is the subscriber's job.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

MessageHandler = Callable[[Any], None]


@runtime_checkable
class Bus(Protocol):
    """Async protocol for channel subscription on a shared bus connection."""

    async def subscribe(self, channel: str, handler: MessageHandler) -> None:
        """Register ``handler`` for every message published on ``channel``."""
        ...

    async def unsubscribe(self, channel: str) -> None:
        """Drop every handler on ``channel``.  No-op if not subscribed."""
        ...
