"""Workspace Control over the REST API, using httpx.

Endpoints::

    POST /api/workspace/{id}/runtime?environment={env}   start
    GET  /api/workspace/{id}                              details / status
    GET  /api/workspace                                   list
    PUT  /api/activity/{id}                               activity

Status transitions are observed by polling the details endpoint.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

import httpx
from loguru import logger
from pydantic import TypeAdapter

from launchdeck.orchestrator.errors import WorkspaceControlError
from launchdeck.orchestrator.models.enums import WorkspaceStatus
from launchdeck.orchestrator.models.workspace import StatusChange, Workspace, WorkspaceStartResult
from launchdeck.orchestrator.settings import LaunchdeckSettings

# Sent on detail reads so intermediate caches never answer with a stale runtime.
_NO_CACHE_HEADERS = {"If-None-Match": '"1234567890"'}

# Where a workspace in ERROR carries the reason, most specific first.
_ERROR_FIELDS = ("error", "errorMessage", "message")

_WORKSPACE_LIST = TypeAdapter(list[Workspace])

T = TypeVar("T")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {response.status_code} from {response.request.method} {response.request.url.path}"


def _decode(response: httpx.Response, validate: Callable[[Any], T]) -> T:
    """Parse and validate a JSON body.  Malformed bodies raise ``WorkspaceControlError``."""
    try:
        return validate(response.json())
    except ValueError as exc:  # JSONDecodeError and pydantic ValidationError
        msg = f"Unexpected response to {response.request.method} {response.request.url.path}: {exc}"
        raise WorkspaceControlError(msg, status_code=response.status_code) from exc


def _status_error(body: dict[str, Any]) -> str | None:
    attributes = body.get("attributes")
    for source in (body, attributes if isinstance(attributes, dict) else {}):
        for key in _ERROR_FIELDS:
            if source.get(key):
                return str(source[key])
    return None


class HttpWorkspaceControl:
    """httpx implementation of the WorkspaceControl protocol."""

    def __init__(self, client: httpx.AsyncClient, *, poll_interval: float = 1.0) -> None:
        self._client = client
        self._poll_interval = poll_interval

    @classmethod
    def from_settings(cls, settings: LaunchdeckSettings) -> HttpWorkspaceControl:
        headers: dict[str, str] = {}
        if settings.auth_token is not None:
            headers["Authorization"] = f"Bearer {settings.auth_token.get_secret_value()}"
        client = httpx.AsyncClient(
            base_url=settings.api_url,
            headers=headers,
            timeout=settings.request_timeout,
        )
        return cls(client, poll_interval=settings.status_poll_interval)

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            msg = f"{method} {path} failed: {exc}"
            raise WorkspaceControlError(msg) from exc
        if response.is_error:
            raise WorkspaceControlError(_error_message(response), status_code=response.status_code)
        return response

    # -- Lifecycle requests ----------------------------------------------------

    async def request_start(self, workspace_id: str, env_name: str | None) -> WorkspaceStartResult:
        params = {"environment": env_name} if env_name else None
        response = await self._request("POST", f"/api/workspace/{workspace_id}/runtime", params=params)
        logger.info("Start requested for workspace {} (env={})", workspace_id, env_name)
        return _decode(response, WorkspaceStartResult.model_validate)

    async def watch_status(self, workspace_id: str, target: WorkspaceStatus) -> StatusChange:
        while True:
            workspace, body = await self._read_details(workspace_id)
            if workspace.status == target:
                error = None
                if target == WorkspaceStatus.ERROR:
                    error = _status_error(body) or f"Workspace {workspace_id} reached status ERROR"
                return StatusChange(workspace_id=workspace_id, status=target, error=error, details=body)
            await asyncio.sleep(self._poll_interval)

    # -- Reads -----------------------------------------------------------------

    async def _read_details(self, workspace_id: str) -> tuple[Workspace, dict[str, Any]]:
        response = await self._request("GET", f"/api/workspace/{workspace_id}", headers=_NO_CACHE_HEADERS)
        return _decode(response, lambda body: (Workspace.model_validate(body), body))

    async def fetch_details(self, workspace_id: str) -> Workspace:
        workspace, _ = await self._read_details(workspace_id)
        return workspace

    async def fetch_workspaces(self) -> list[Workspace]:
        response = await self._request("GET", "/api/workspace")
        return _decode(response, _WORKSPACE_LIST.validate_python)

    async def log_activity(self, workspace_id: str) -> None:
        await self._request("PUT", f"/api/activity/{workspace_id}", content=b"")

    async def aclose(self) -> None:
        await self._client.aclose()
