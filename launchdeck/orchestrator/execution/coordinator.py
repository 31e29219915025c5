"""Startup orchestrator -- drives one workspace from a start request to a reachable agent.

Each ``start_workspace`` call is an *attempt*:

1. **Begin**: bump the generation, reset progress, tear down the previous
   attempt's channels
2. **Start**: ask Workspace Control to start the runtime, subscribe to the
   status / agent / output channels it advertises
3. **Wait**: race the RUNNING and ERROR status watches, then read details
4. **Connect**: hand the agent URL to the reconnecting connector

Only the attempt holding the current generation may touch progress state or
report errors.  A superseded attempt tears down its own channels and returns
``AttemptOutcome.SUPERSEDED`` without notifying anyone; its late callbacks
are dropped.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING, Any

from loguru import logger

from launchdeck.orchestrator.agent.urls import FixedPortAgentUrlResolver, resolve_agent_url
from launchdeck.orchestrator.errors import (
    AgentConnectionFailed,
    AttemptSuperseded,
    DetailsFetchFailed,
    ErrorReport,
    OrchestrationError,
    RemoteError,
    StartRequestFailed,
    WorkspaceControlError,
)
from launchdeck.orchestrator.execution.connector import (
    DEFAULT_RECONNECT_BUDGET,
    DEFAULT_RETRY_DELAY,
    ReconnectingConnector,
)
from launchdeck.orchestrator.execution.progress import (
    AGENT_STEP,
    STARTED_STEP,
    ProgressStepTracker,
    StepSnapshot,
)
from launchdeck.orchestrator.execution.subscriptions import ChannelSubscriptionManager
from launchdeck.orchestrator.log import attempt_logger
from launchdeck.orchestrator.models.enums import (
    AttemptOutcome,
    ChannelKind,
    ErrorPhase,
    OrchestrationEventType,
    WorkspaceStatus,
)
from launchdeck.orchestrator.models.events import OrchestrationEvent
from launchdeck.orchestrator.models.messages import ChannelMessage, parse_channel_message
from launchdeck.orchestrator.models.workspace import StatusChange, Workspace, WorkspaceStartResult, agent_channel_for

if TYPE_CHECKING:
    from loguru import Logger

    from launchdeck.orchestrator.agent.link import AgentLink
    from launchdeck.orchestrator.agent.urls import AgentUrlResolver
    from launchdeck.orchestrator.bus.base import Bus
    from launchdeck.orchestrator.control.base import WorkspaceControl
    from launchdeck.orchestrator.settings import LaunchdeckSettings

ErrorSink = Callable[[ErrorReport], None]
EventCallback = Callable[[OrchestrationEvent], None]


# ---------------------------------------------------------------------------
# Attempt
# ---------------------------------------------------------------------------


@dataclass
class OrchestrationAttempt:
    """One in-flight ``start_workspace`` call."""

    workspace_id: str
    generation: int
    subscriptions: ChannelSubscriptionManager
    reconnect_budget: int = DEFAULT_RECONNECT_BUDGET
    finished: bool = False
    log: Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.log = attempt_logger(self.workspace_id, self.generation)

    @property
    def subscribed_channels(self) -> tuple[str, ...]:
        return self.subscriptions.channels


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class StartupOrchestrator:
    def __init__(
        self,
        control: WorkspaceControl,
        bus: Bus,
        link: AgentLink,
        *,
        url_resolver: AgentUrlResolver = resolve_agent_url,
        reconnect_budget: int = DEFAULT_RECONNECT_BUDGET,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        error_sink: ErrorSink | None = None,
        on_event: EventCallback | None = None,
    ) -> None:
        if reconnect_budget < 1:
            msg = f"Reconnect budget must be positive, got {reconnect_budget}"
            raise ValueError(msg)
        self._control = control
        self._bus = bus
        self._url_resolver = url_resolver
        self._reconnect_budget = reconnect_budget
        self._connector = ReconnectingConnector(link, retry_delay=retry_delay, sleep=sleep)
        self._error_sink = error_sink
        self._on_event = on_event

        self._progress = ProgressStepTracker()
        self._generation = 0
        self._attempt: OrchestrationAttempt | None = None

    @classmethod
    def from_settings(
        cls,
        settings: LaunchdeckSettings,
        *,
        control: WorkspaceControl,
        bus: Bus,
        link: AgentLink,
        **kwargs: Any,
    ) -> StartupOrchestrator:
        """Build an orchestrator using the agent URL strategy and retry policy from settings."""
        resolver: AgentUrlResolver = resolve_agent_url
        if settings.agent_url_strategy == "fixed_port":
            resolver = FixedPortAgentUrlResolver(settings.agent_port, settings.agent_path)
        return cls(
            control,
            bus,
            link,
            url_resolver=resolver,
            reconnect_budget=settings.reconnect_budget,
            retry_delay=settings.retry_delay,
            **kwargs,
        )

    # -- Query -----------------------------------------------------------------

    @property
    def progress(self) -> ProgressStepTracker:
        return self._progress

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def current_attempt(self) -> OrchestrationAttempt | None:
        return self._attempt

    @property
    def is_starting(self) -> bool:
        return self._attempt is not None and not self._attempt.finished

    def get_progress_steps(self) -> list[StepSnapshot]:
        return self._progress.snapshot()

    def get_current_step_index(self) -> int:
        return self._progress.current_index

    # -- Entry point -----------------------------------------------------------

    async def start_workspace(self, workspace: Workspace) -> AttemptOutcome:
        """Start ``workspace`` and wait until its agent is reachable.

        Returns ``AttemptOutcome.STARTED`` on success and
        ``AttemptOutcome.SUPERSEDED`` when a newer call took over.  Raises an
        ``OrchestrationError`` subclass on any terminal failure, after the
        error sink has been notified.
        """
        attempt = await self._begin_attempt(workspace)
        stage = ErrorPhase.START_REQUEST
        try:
            result = await self._request_start(attempt, workspace)
            await self._subscribe_channels(attempt, result)
            stage = ErrorPhase.REMOTE
            details = await self._await_running(attempt)
            self._ensure_current(attempt)
            stage = ErrorPhase.CONNECTION
            await self._connect_agent(attempt, details)
            self._ensure_current(attempt)
        except AttemptSuperseded:
            return await self._abandon(attempt)
        except OrchestrationError as exc:
            if not self._is_current(attempt):
                return await self._abandon(attempt)
            await self._fail(attempt, exc)
            raise
        except asyncio.CancelledError:
            await attempt.subscriptions.teardown_all()
            attempt.finished = True
            raise
        except Exception as exc:
            if not self._is_current(attempt):
                return await self._abandon(attempt)
            failure = _unexpected_failure(stage, attempt.workspace_id, exc)
            attempt.log.opt(exception=exc).error("Unexpected {} while starting", type(exc).__name__)
            await self._fail(attempt, failure)
            raise failure from exc

        self._advance(attempt, STARTED_STEP)
        attempt.finished = True
        attempt.log.info("Workspace {} started", attempt.workspace_id)
        self._emit(OrchestrationEventType.ATTEMPT_FINISHED, attempt)
        return AttemptOutcome.STARTED

    # -- Phases ----------------------------------------------------------------

    async def _begin_attempt(self, workspace: Workspace) -> OrchestrationAttempt:
        previous = self._attempt
        self._generation += 1
        attempt = OrchestrationAttempt(
            workspace_id=workspace.id,
            generation=self._generation,
            subscriptions=ChannelSubscriptionManager(self._bus),
            reconnect_budget=self._reconnect_budget,
        )
        self._attempt = attempt
        self._progress.reset()
        attempt.log.info("Starting workspace {}", workspace.id)

        self._emit(OrchestrationEventType.RECENT_WORKSPACE_UPDATED, attempt)
        self._emit(OrchestrationEventType.WORKSPACE_LIST_REFRESH, attempt)
        self._emit(OrchestrationEventType.ATTEMPT_STARTED, attempt)

        if previous is not None:
            if not previous.finished:
                previous.log.info("Superseded by generation {}", attempt.generation)
            await previous.subscriptions.teardown_all()
        return attempt

    async def _request_start(self, attempt: OrchestrationAttempt, workspace: Workspace) -> WorkspaceStartResult:
        try:
            return await self._control.request_start(attempt.workspace_id, workspace.config.default_env)
        except WorkspaceControlError as exc:
            msg = f"Unable to start this workspace: {exc}"
            raise StartRequestFailed(msg) from exc

    async def _subscribe_channels(self, attempt: OrchestrationAttempt, result: WorkspaceStartResult) -> None:
        channels = (
            (result.status_channel, ChannelKind.STATUS),
            (agent_channel_for(result.id or attempt.workspace_id), ChannelKind.AGENT),
            (result.output_channel, ChannelKind.OUTPUT),
        )
        for channel, kind in channels:
            self._ensure_current(attempt)
            if channel:
                await attempt.subscriptions.subscribe(channel, partial(self._on_message, attempt, kind))

    async def _await_running(self, attempt: OrchestrationAttempt) -> Workspace:
        workspace_id = attempt.workspace_id
        running = asyncio.ensure_future(self._control.watch_status(workspace_id, WorkspaceStatus.RUNNING))
        errored = asyncio.ensure_future(self._control.watch_status(workspace_id, WorkspaceStatus.ERROR))
        watches = (running, errored)
        try:
            done, _ = await asyncio.wait(watches, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for watch in watches:
                if not watch.done():
                    watch.cancel()

        results: dict[asyncio.Future[StatusChange], StatusChange] = {}
        failures: list[Exception] = []
        for watch in done:
            try:
                results[watch] = watch.result()
            except Exception as exc:
                failures.append(exc)

        if errored in results:
            change = results[errored]
            msg = change.error or f"Workspace {workspace_id} failed to start"
            raise RemoteError(msg, payload=change.model_dump(mode="json"))
        if running not in results:
            msg = f"Lost track of workspace {workspace_id} status: {failures[0]}"
            raise RemoteError(msg) from failures[0]

        self._ensure_current(attempt)
        try:
            return await self._control.fetch_details(workspace_id)
        except WorkspaceControlError as exc:
            msg = f"Unable to read details of workspace {workspace_id}: {exc}"
            raise DetailsFetchFailed(msg) from exc

    async def _connect_agent(self, attempt: OrchestrationAttempt, details: Workspace) -> None:
        url = self._url_resolver(details)
        if not url:
            msg = f"Workspace {attempt.workspace_id} does not expose an agent endpoint"
            raise DetailsFetchFailed(msg)
        await self._connector.connect(
            url,
            attempt.workspace_id,
            attempt.reconnect_budget,
            subscriptions=attempt.subscriptions,
            is_current=partial(self._is_current, attempt),
            log=attempt.log,
        )

    # -- Termination -----------------------------------------------------------

    async def _abandon(self, attempt: OrchestrationAttempt) -> AttemptOutcome:
        await attempt.subscriptions.teardown_all()
        attempt.finished = True
        attempt.log.info("Start of workspace {} abandoned", attempt.workspace_id)
        return AttemptOutcome.SUPERSEDED

    async def _fail(self, attempt: OrchestrationAttempt, exc: OrchestrationError) -> None:
        await attempt.subscriptions.teardown_all()
        attempt.finished = True
        step = self._progress.current_index
        self._progress.append_log(step, exc.message)
        self._progress.mark_error(step)
        attempt.log.error("Workspace {} failed to start [{}]: {}", attempt.workspace_id, exc.phase, exc.message)
        self._emit(
            OrchestrationEventType.ATTEMPT_FAILED,
            attempt,
            {"phase": str(exc.phase), "message": exc.message},
        )
        self._report(exc.to_report())

    # -- Channel handlers ------------------------------------------------------

    def _on_message(self, attempt: OrchestrationAttempt, kind: ChannelKind, raw: Any) -> None:
        if not self._is_current(attempt) or attempt.finished:
            attempt.log.debug("Dropping {} message for stale attempt", kind)
            return
        message = parse_channel_message(kind, raw)
        if kind == ChannelKind.STATUS:
            self._on_status(attempt, message)
        elif kind == ChannelKind.AGENT:
            self._on_agent(attempt, message)
        else:
            self._progress.append_log(self._progress.current_index, message.text)

    def _on_status(self, attempt: OrchestrationAttempt, message: ChannelMessage) -> None:
        attempt.log.debug("Status channel: {}", message.text)
        step = self._progress.current_index
        self._progress.append_log(step, message.text)
        if message.is_error_for(attempt.workspace_id):
            self._progress.mark_error(step)
            detail = f": {message.error}" if message.error else "."
            self._report(ErrorReport(phase=ErrorPhase.RUNTIME, message=f"Error when trying to start the workspace{detail}"))

    def _on_agent(self, attempt: OrchestrationAttempt, message: ChannelMessage) -> None:
        self._advance(attempt, AGENT_STEP)
        self._progress.append_log(AGENT_STEP, message.text)
        if message.is_error_for(attempt.workspace_id):
            self._progress.mark_error(AGENT_STEP)
            self._report(
                ErrorReport(
                    phase=ErrorPhase.AGENT,
                    message=f"Error when trying to start the workspace agent: {message.error}",
                )
            )

    # -- Helpers ---------------------------------------------------------------

    def _is_current(self, attempt: OrchestrationAttempt) -> bool:
        return self._attempt is attempt and attempt.generation == self._generation

    def _ensure_current(self, attempt: OrchestrationAttempt) -> None:
        if not self._is_current(attempt):
            raise AttemptSuperseded(attempt.workspace_id)

    def _advance(self, attempt: OrchestrationAttempt, step: int) -> None:
        if self._progress.advance(step):
            self._emit(
                OrchestrationEventType.STEP_ADVANCED,
                attempt,
                {"step": step, "label": self._progress.label_for(step)},
            )

    def _report(self, report: ErrorReport) -> None:
        logger.warning("Reporting {} error: {}", report.phase, report.message)
        if self._error_sink is not None:
            self._error_sink(report)

    def _emit(
        self,
        event_type: OrchestrationEventType,
        attempt: OrchestrationAttempt,
        payload: dict[str, Any] | None = None,
    ) -> None:
        if self._on_event is None:
            return
        self._on_event(
            OrchestrationEvent(
                event_type=event_type,
                workspace_id=attempt.workspace_id,
                generation=attempt.generation,
                payload=payload or {},
            )
        )


def _unexpected_failure(stage: ErrorPhase, workspace_id: str, exc: Exception) -> OrchestrationError:
    """Wrap an error no phase anticipated in the failure type of the phase it escaped from."""
    detail = f"{type(exc).__name__}: {exc}"
    if stage == ErrorPhase.START_REQUEST:
        return StartRequestFailed(f"Unable to start this workspace: {detail}")
    if stage == ErrorPhase.CONNECTION:
        return AgentConnectionFailed(f"Unable to connect to the agent of workspace {workspace_id}: {detail}")
    return RemoteError(f"Lost track of workspace {workspace_id}: {detail}")
