"""Fixtures for orchestrator unit tests."""

from __future__ import annotations

import pytest
from fakes import FakeAgentLink, FakeWorkspaceControl, RecordingSleep

from launchdeck.orchestrator.bus.local import LocalBus
from launchdeck.orchestrator.errors import ErrorReport
from launchdeck.orchestrator.execution.coordinator import StartupOrchestrator
from launchdeck.orchestrator.models.events import OrchestrationEvent


@pytest.fixture
def control() -> FakeWorkspaceControl:
    return FakeWorkspaceControl()


@pytest.fixture
def bus() -> LocalBus:
    return LocalBus()


@pytest.fixture
def link() -> FakeAgentLink:
    return FakeAgentLink()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def reports() -> list[ErrorReport]:
    return []


@pytest.fixture
def events() -> list[OrchestrationEvent]:
    return []


@pytest.fixture
def orchestrator(
    control: FakeWorkspaceControl,
    bus: LocalBus,
    link: FakeAgentLink,
    sleep: RecordingSleep,
    reports: list[ErrorReport],
    events: list[OrchestrationEvent],
) -> StartupOrchestrator:
    return StartupOrchestrator(
        control,
        bus,
        link,
        reconnect_budget=5,
        retry_delay=1.0,
        sleep=sleep,
        error_sink=reports.append,
        on_event=events.append,
    )
