"""Startup execution pipeline.

- **subscriptions**: per-attempt channel subscriptions on the shared bus
- **progress**: ordered startup steps with logs and error flags
- **connector**: bounded-retry agent connection
- **coordinator**: attempt sequencing (start -> wait for RUNNING -> details -> connect)
- **activity**: workspace activity reporting
"""

from launchdeck.orchestrator.execution.connector import ReconnectingConnector, ReconnectState
from launchdeck.orchestrator.execution.coordinator import OrchestrationAttempt, StartupOrchestrator
from launchdeck.orchestrator.execution.progress import ProgressStep, ProgressStepTracker, StepSnapshot
from launchdeck.orchestrator.execution.subscriptions import ChannelSubscriptionManager

__all__ = [
    "ChannelSubscriptionManager",
    "OrchestrationAttempt",
    "ProgressStep",
    "ProgressStepTracker",
    "ReconnectState",
    "ReconnectingConnector",
    "StartupOrchestrator",
    "StepSnapshot",
]
