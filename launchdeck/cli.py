import asyncio

import click


@click.group()
def main() -> None:
    """Launchdeck - start remote workspaces and wait for their agents."""


def _parse_params(values: tuple[str, ...]) -> dict[str, str]:
    params: dict[str, str] = {}
    for value in values:
        key, sep, val = value.partition("=")
        if not sep or not key:
            msg = f"Expected key=value, got {value!r}"
            raise click.BadParameter(msg, param_hint="--param")
        params[key] = val
    return params


@main.command()
@click.argument("workspace_id")
def start(workspace_id: str) -> None:
    """Start a workspace and wait until its agent is reachable."""
    from launchdeck.orchestrator.log import setup_logging
    from launchdeck.orchestrator.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level, json_output=settings.log_json)

    from launchdeck.orchestrator.errors import OrchestrationError, WorkspaceControlError

    try:
        outcome = asyncio.run(_run_start(workspace_id))
    except (OrchestrationError, WorkspaceControlError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Workspace {workspace_id}: {outcome}")


async def _run_start(workspace_id: str) -> str:
    import httpx
    from loguru import logger

    from launchdeck.orchestrator.agent.link import HttpAgentLink
    from launchdeck.orchestrator.bus.base import Bus
    from launchdeck.orchestrator.bus.local import LocalBus
    from launchdeck.orchestrator.bus.redis_bus import RedisBus
    from launchdeck.orchestrator.control.http import HttpWorkspaceControl
    from launchdeck.orchestrator.errors import ErrorReport
    from launchdeck.orchestrator.execution.coordinator import StartupOrchestrator
    from launchdeck.orchestrator.models.enums import OrchestrationEventType
    from launchdeck.orchestrator.models.events import OrchestrationEvent
    from launchdeck.orchestrator.settings import get_settings

    settings = get_settings()
    control = HttpWorkspaceControl.from_settings(settings)
    link = HttpAgentLink(httpx.AsyncClient(timeout=settings.request_timeout))

    bus: Bus
    redis_bus: RedisBus | None = None
    if settings.redis_url:
        bus = redis_bus = RedisBus.from_url(settings.redis_url)
    else:
        logger.warning("LAUNCHDECK_REDIS_URL not set -- status and output channels will be silent")
        bus = LocalBus()

    def on_error(report: ErrorReport) -> None:
        click.echo(f"[{report.phase}] {report.message}", err=True)

    def on_event(event: OrchestrationEvent) -> None:
        if event.event_type == OrchestrationEventType.STEP_ADVANCED:
            click.echo(f"-> {event.payload['label']}")

    orchestrator = StartupOrchestrator.from_settings(
        settings,
        control=control,
        bus=bus,
        link=link,
        error_sink=on_error,
        on_event=on_event,
    )
    try:
        workspace = await control.fetch_details(workspace_id)
        click.echo(f"-> {orchestrator.progress.label_for(0)}")
        outcome = await orchestrator.start_workspace(workspace)
    finally:
        await control.aclose()
        await link.aclose()
        if redis_bus is not None:
            await redis_bus.aclose()
    return str(outcome)


@main.command(name="open")
@click.argument("workspace_id")
@click.option("--origin", default="http://localhost", show_default=True, help="Origin the IDE is served from.")
@click.option("--action", default=None, help="IDE action to run on load.")
@click.option("--param", "params", multiple=True, help="Extra loading parameter as key=value (repeatable).")
def open_(workspace_id: str, origin: str, action: str | None, params: tuple[str, ...]) -> None:
    """Print the IDE URL of a running workspace."""
    from launchdeck.orchestrator.agent.urls import resolve_ide_url
    from launchdeck.orchestrator.control.http import HttpWorkspaceControl
    from launchdeck.orchestrator.errors import WorkspaceControlError
    from launchdeck.orchestrator.models.enums import WorkspaceStatus
    from launchdeck.orchestrator.models.workspace import Workspace
    from launchdeck.orchestrator.settings import get_settings

    loading_params = _parse_params(params)
    control = HttpWorkspaceControl.from_settings(get_settings())

    async def _fetch() -> Workspace:
        try:
            return await control.fetch_details(workspace_id)
        finally:
            await control.aclose()

    try:
        workspace = asyncio.run(_fetch())
    except WorkspaceControlError as exc:
        raise click.ClickException(str(exc)) from exc
    if workspace.status != WorkspaceStatus.RUNNING or workspace.runtime is None:
        msg = f"Workspace {workspace_id} is {workspace.status}, start it first"
        raise click.ClickException(msg)
    click.echo(resolve_ide_url(workspace, origin=origin, params=loading_params, action=action))


@main.command()
@click.argument("workspace_id")
def activity(workspace_id: str) -> None:
    """Record user activity on a workspace."""
    from launchdeck.orchestrator.control.http import HttpWorkspaceControl
    from launchdeck.orchestrator.execution.activity import ActivityTracker
    from launchdeck.orchestrator.settings import get_settings

    control = HttpWorkspaceControl.from_settings(get_settings())

    async def _log() -> bool:
        try:
            return await ActivityTracker(control).log_activity(workspace_id)
        finally:
            await control.aclose()

    if not asyncio.run(_log()):
        msg = f"Could not record activity for {workspace_id}"
        raise click.ClickException(msg)
    click.echo(f"Activity recorded for {workspace_id}.")


if __name__ == "__main__":
    main()
