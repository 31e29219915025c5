"""Message bus implementations for workspace channels."""

from launchdeck.orchestrator.bus.base import Bus, MessageHandler
from launchdeck.orchestrator.bus.local import LocalBus
from launchdeck.orchestrator.bus.redis_bus import RedisBus

__all__ = ["Bus", "LocalBus", "MessageHandler", "RedisBus"]
