"""Unit tests for workspace models and channel message parsing."""

from __future__ import annotations

from launchdeck.orchestrator.models.enums import ChannelKind, WorkspaceStatus
from launchdeck.orchestrator.models.messages import parse_channel_message
from launchdeck.orchestrator.models.workspace import (
    OUTPUT_CHANNEL_REL,
    STATUS_CHANNEL_REL,
    Workspace,
    WorkspaceStartResult,
    agent_channel_for,
    channel_for,
    href_for,
)

START_RESPONSE = {
    "id": "workspace123",
    "status": "STARTING",
    "links": [
        {
            "rel": "environment.status_channel",
            "href": "ws://che/api/ws",
            "parameters": [{"name": "channel", "defaultValue": "workspace:workspace123:environment_status:default"}],
        },
        {
            "rel": "environment.output_channel",
            "href": "ws://che/api/ws",
            "parameters": [{"name": "channel", "defaultValue": "workspace:workspace123:environment_output:default"}],
        },
        {"rel": "ide url", "href": "http://che/dashboard/ws"},
    ],
}

# ---------------------------------------------------------------------------
# Workspace
# ---------------------------------------------------------------------------


def test_start_result_channels() -> None:
    result = WorkspaceStartResult.model_validate(START_RESPONSE)

    assert result.status == WorkspaceStatus.STARTING
    assert result.status_channel == "workspace:workspace123:environment_status:default"
    assert result.output_channel == "workspace:workspace123:environment_output:default"


def test_channel_for_missing_or_empty() -> None:
    result = WorkspaceStartResult.model_validate(
        {
            "id": "w1",
            "links": [{"rel": "environment.status_channel", "parameters": [{"name": "channel", "defaultValue": ""}]}],
        }
    )

    assert channel_for(result.links, STATUS_CHANNEL_REL) is None
    assert channel_for(result.links, OUTPUT_CHANNEL_REL) is None


def test_workspace_camel_case_fields() -> None:
    workspace = Workspace.model_validate(
        {
            "id": "w1",
            "status": "RUNNING",
            "config": {"name": "demo", "defaultEnv": "default"},
            "links": [{"rel": "ide url", "href": "http://che/w1"}],
            "runtime": {
                "links": [{"rel": "wsagent.websocket", "href": "ws://agent/ws"}],
                "devMachine": {"runtime": {"envVariables": {"RIDE": "1"}, "servers": {"8080/tcp": {"address": "h:3"}}}},
                "machines": [],
            },
            "attributes": {"ignored": "yes"},
        }
    )

    assert workspace.config.default_env == "default"
    assert workspace.runtime is not None
    assert workspace.runtime.dev_machine is not None
    assert workspace.runtime.dev_machine.runtime.env_variables == {"RIDE": "1"}
    assert workspace.runtime.dev_machine.runtime.servers["8080/tcp"].address == "h:3"
    assert href_for(workspace.links, "ide url") == "http://che/w1"
    assert href_for(workspace.links, "missing") == ""


def test_stopped_workspace_has_no_runtime() -> None:
    workspace = Workspace.model_validate({"id": "w1", "status": "STOPPED"})
    assert workspace.runtime is None
    assert workspace.config.default_env is None


def test_agent_channel_name() -> None:
    assert agent_channel_for("w1") == "workspace:w1:ext-server:output"


# ---------------------------------------------------------------------------
# Channel messages
# ---------------------------------------------------------------------------


def test_parse_error_event_from_json_text() -> None:
    message = parse_channel_message(
        ChannelKind.STATUS,
        '{"eventType": "ERROR", "workspaceId": "w1", "error": "image pull failed"}',
    )

    assert message.kind == ChannelKind.STATUS
    assert message.event_type == "ERROR"
    assert message.error == "image pull failed"
    assert message.is_error_for("w1")
    assert not message.is_error_for("w2")
    assert message.text == "image pull failed"


def test_parse_machine_log() -> None:
    message = parse_channel_message(ChannelKind.OUTPUT, {"machineName": "dev-machine", "content": "Step 1/4"})

    assert message.text == "[dev-machine] Step 1/4"
    assert message.event_type is None
    assert not message.is_error_for("w1")


def test_parse_plain_line() -> None:
    message = parse_channel_message(ChannelKind.AGENT, "Starting extension server")

    assert message.payload == "Starting extension server"
    assert message.text == "Starting extension server"
    assert message.workspace_id is None


def test_parse_bytes_and_malformed_json() -> None:
    assert parse_channel_message(ChannelKind.AGENT, b"raw bytes").text == "raw bytes"
    assert parse_channel_message(ChannelKind.OUTPUT, "{not json").text == "{not json"


def test_parse_event_without_text_fields() -> None:
    message = parse_channel_message(ChannelKind.STATUS, {"eventType": "RUNNING", "workspaceId": "w1"})
    assert message.text == "RUNNING"
    assert not message.is_error_for("w1")
