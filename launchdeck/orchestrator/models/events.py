"""Orchestration event envelope delivered to the presentation layer."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from launchdeck.orchestrator.models.enums import OrchestrationEventType


class OrchestrationEvent(BaseModel):
    event_type: OrchestrationEventType
    workspace_id: str
    generation: int
    timestamp: datetime = Field(default_factory=datetime.now)
    payload: dict[str, Any] = Field(default_factory=dict)
