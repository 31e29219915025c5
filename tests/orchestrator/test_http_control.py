"""Tests for the httpx Workspace Control client against a mock transport."""

from __future__ import annotations

import httpx
import pytest

from launchdeck.orchestrator.control.http import HttpWorkspaceControl
from launchdeck.orchestrator.errors import WorkspaceControlError
from launchdeck.orchestrator.models.enums import WorkspaceStatus
from launchdeck.orchestrator.settings import LaunchdeckSettings


class Recorder:
    """Mock transport handler that records requests and replays canned responses."""

    def __init__(self, responses: list[httpx.Response]) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


def _control(recorder: Recorder) -> HttpWorkspaceControl:
    client = httpx.AsyncClient(base_url="http://che.test", transport=httpx.MockTransport(recorder))
    return HttpWorkspaceControl(client, poll_interval=0)


def _workspace(status: str) -> dict:
    return {"id": "w1", "status": status, "config": {"defaultEnv": "default"}}


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


async def test_request_start() -> None:
    recorder = Recorder([
        httpx.Response(
            200,
            json={
                "id": "w1",
                "status": "STARTING",
                "links": [
                    {"rel": "environment.status_channel", "parameters": [{"name": "channel", "defaultValue": "s:w1"}]}
                ],
            },
        )
    ])
    control = _control(recorder)

    result = await control.request_start("w1", "default")

    request = recorder.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/api/workspace/w1/runtime"
    assert request.url.params["environment"] == "default"
    assert result.status_channel == "s:w1"
    await control.aclose()


async def test_request_start_without_env() -> None:
    recorder = Recorder([httpx.Response(200, json={"id": "w1"})])
    control = _control(recorder)

    await control.request_start("w1", None)

    assert "environment" not in recorder.requests[0].url.params
    await control.aclose()


async def test_error_message_from_body() -> None:
    recorder = Recorder([httpx.Response(409, json={"message": "Workspace is already running"})])
    control = _control(recorder)

    with pytest.raises(WorkspaceControlError, match="already running") as exc_info:
        await control.request_start("w1", None)

    assert exc_info.value.status_code == 409
    await control.aclose()


async def test_error_without_body() -> None:
    recorder = Recorder([httpx.Response(500, text="boom")])
    control = _control(recorder)

    with pytest.raises(WorkspaceControlError, match="HTTP 500 from GET /api/workspace/w1"):
        await control.fetch_details("w1")
    await control.aclose()


async def test_transport_error_is_wrapped() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.AsyncClient(base_url="http://che.test", transport=httpx.MockTransport(refuse))
    control = HttpWorkspaceControl(client)

    with pytest.raises(WorkspaceControlError, match="connection refused") as exc_info:
        await control.fetch_workspaces()

    assert exc_info.value.status_code is None
    await control.aclose()


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def test_fetch_details_sends_cache_buster() -> None:
    recorder = Recorder([httpx.Response(200, json=_workspace("RUNNING"))])
    control = _control(recorder)

    workspace = await control.fetch_details("w1")

    assert workspace.status == WorkspaceStatus.RUNNING
    assert recorder.requests[0].headers["If-None-Match"] == '"1234567890"'
    await control.aclose()


async def test_fetch_workspaces() -> None:
    recorder = Recorder([httpx.Response(200, json=[_workspace("STOPPED"), {"id": "w2", "status": "RUNNING"}])])
    control = _control(recorder)

    workspaces = await control.fetch_workspaces()

    assert [w.id for w in workspaces] == ["w1", "w2"]
    assert recorder.requests[0].url.path == "/api/workspace"
    await control.aclose()


async def test_log_activity() -> None:
    recorder = Recorder([httpx.Response(204)])
    control = _control(recorder)

    await control.log_activity("w1")

    request = recorder.requests[0]
    assert request.method == "PUT"
    assert request.url.path == "/api/activity/w1"
    await control.aclose()


# ---------------------------------------------------------------------------
# Status watching
# ---------------------------------------------------------------------------


async def test_watch_status_polls_until_target() -> None:
    recorder = Recorder([
        httpx.Response(200, json=_workspace("STARTING")),
        httpx.Response(200, json=_workspace("STARTING")),
        httpx.Response(200, json=_workspace("RUNNING")),
    ])
    control = _control(recorder)

    change = await control.watch_status("w1", WorkspaceStatus.RUNNING)

    assert change.status == WorkspaceStatus.RUNNING
    assert change.error is None
    assert len(recorder.requests) == 3
    await control.aclose()


async def test_watch_error_status_carries_message() -> None:
    recorder = Recorder([httpx.Response(200, json=_workspace("ERROR"))])
    control = _control(recorder)

    change = await control.watch_status("w1", WorkspaceStatus.ERROR)

    assert change.error == "Workspace w1 reached status ERROR"
    await control.aclose()


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


async def test_from_settings_sets_auth_header() -> None:
    settings = LaunchdeckSettings(api_url="http://che.test", auth_token="secret", status_poll_interval=0.25)

    control = HttpWorkspaceControl.from_settings(settings)

    assert control._client.headers["Authorization"] == "Bearer secret"
    assert control._client.base_url.host == "che.test"
    assert control._poll_interval == 0.25
    await control.aclose()


# ---------------------------------------------------------------------------
# Malformed bodies
# ---------------------------------------------------------------------------


async def test_html_body_is_control_error() -> None:
    recorder = Recorder([httpx.Response(200, text="<html>proxy login</html>")])
    control = _control(recorder)

    with pytest.raises(WorkspaceControlError, match="Unexpected response to GET /api/workspace/w1") as exc_info:
        await control.fetch_details("w1")

    assert exc_info.value.status_code == 200
    await control.aclose()


async def test_start_result_without_id_is_control_error() -> None:
    recorder = Recorder([httpx.Response(200, json={"status": "STARTING"})])
    control = _control(recorder)

    with pytest.raises(WorkspaceControlError, match="Unexpected response to POST"):
        await control.request_start("w1", None)
    await control.aclose()


async def test_workspace_list_must_be_a_list() -> None:
    recorder = Recorder([httpx.Response(200, json={"items": []})])
    control = _control(recorder)

    with pytest.raises(WorkspaceControlError):
        await control.fetch_workspaces()
    await control.aclose()


async def test_watch_error_status_uses_reported_reason() -> None:
    body = {"id": "w1", "status": "ERROR", "attributes": {"errorMessage": "image pull failed"}}
    recorder = Recorder([httpx.Response(200, json=body)])
    control = _control(recorder)

    change = await control.watch_status("w1", WorkspaceStatus.ERROR)

    assert change.error == "image pull failed"
    assert change.details == body
    await control.aclose()
