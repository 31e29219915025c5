"""Redis pub/sub message bus.

One pubsub connection is shared by every subscription.  A reader task polls
it and dispatches each message to the handlers registered for its channel.
JSON object payloads are decoded to dicts before dispatch.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from typing import Any

import redis.asyncio as aioredis
from loguru import logger
from redis.exceptions import RedisError

from launchdeck.orchestrator.bus.base import MessageHandler


class RedisBus:
    """Redis implementation of the Bus protocol."""

    def __init__(self, client: aioredis.Redis, *, poll_timeout: float = 1.0) -> None:
        self._client = client
        self._pubsub = client.pubsub(ignore_subscribe_messages=True)
        self._handlers: dict[str, list[MessageHandler]] = {}
        self._poll_timeout = poll_timeout
        self._reader: asyncio.Task[None] | None = None

    @classmethod
    def from_url(cls, url: str) -> RedisBus:
        client = aioredis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=5,
            retry_on_timeout=True,
        )
        return cls(client)

    # -- Bus protocol ----------------------------------------------------------

    async def subscribe(self, channel: str, handler: MessageHandler) -> None:
        if channel not in self._handlers:
            await self._pubsub.subscribe(channel)
            logger.debug("RedisBus: subscribed {}", channel)
        self._handlers.setdefault(channel, []).append(handler)
        if self._reader is None or self._reader.done():
            self._reader = asyncio.create_task(self._read_loop(), name="redis-bus-reader")

    async def unsubscribe(self, channel: str) -> None:
        if self._handlers.pop(channel, None) is None:
            return
        await self._pubsub.unsubscribe(channel)
        logger.debug("RedisBus: unsubscribed {}", channel)

    # -- Reader ----------------------------------------------------------------

    async def _read_loop(self) -> None:
        try:
            while self._handlers:
                message = await self._pubsub.get_message(ignore_subscribe_messages=True, timeout=self._poll_timeout)
                if message is None:
                    continue
                self._dispatch(message["channel"], message["data"])
        except RedisError:
            logger.exception("RedisBus: reader stopped, {} channels no longer delivered", len(self._handlers))

    def _dispatch(self, channel: Any, data: Any) -> None:
        if isinstance(channel, bytes):
            channel = channel.decode()
        payload = _decode_payload(data)
        for handler in list(self._handlers.get(channel, ())):
            try:
                handler(payload)
            except Exception:
                logger.exception("RedisBus: handler for {} failed", channel)

    # -- Lifecycle -------------------------------------------------------------

    async def aclose(self) -> None:
        """Stop the reader and close the pubsub connection and client."""
        if self._reader is not None:
            self._reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reader
            self._reader = None
        self._handlers.clear()
        await self._pubsub.aclose()
        await self._client.aclose()


def _decode_payload(data: Any) -> Any:
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")
    if isinstance(data, str) and data.lstrip().startswith("{"):
        try:
            return json.loads(data)
        except json.JSONDecodeError:
            return data
    return data
