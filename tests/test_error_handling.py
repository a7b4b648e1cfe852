import asyncio
import json

import httpx

from bitbucket_mcp.error_handling import _http_status_for_error, _structured_tool_error, _tool_error_text
from bitbucket_mcp.exceptions import (
    BitbucketAuthError,
    ConfigurationError,
    InvalidArgumentsError,
    MissingContextError,
    NotFoundError,
    UnsupportedOperationError,
)


def test_cancellation_is_not_an_error():
    payload = _structured_tool_error(asyncio.CancelledError(), context="list_branches")

    assert payload["status"] == "cancelled"
    assert payload["error_detail"]["category"] == "cancelled"
    assert payload["error_detail"]["context"] == "list_branches"


def test_missing_context_is_a_validation_error():
    payload = _structured_tool_error(MissingContextError("list_branches", "workspace", "Cloud"))

    detail = payload["error_detail"]
    assert detail["category"] == "validation"
    assert detail["code"] == "MISSING_CONTEXT"
    assert detail["details"] == {"missing": ["workspace"]}
    assert _http_status_for_error(payload) == 400


def test_invalid_arguments_carry_fields():
    payload = _structured_tool_error(
        InvalidArgumentsError("create_tag", "missing required field(s): target", fields=["target"])
    )

    assert payload["error_detail"]["code"] == "INVALID_ARGUMENTS"
    assert payload["error_detail"]["details"] == {"fields": ["target"]}


def test_unsupported_operation_keeps_rpc_code():
    payload = _structured_tool_error(UnsupportedOperationError("list_issues", "Server"))

    detail = payload["error_detail"]
    assert detail["code"] == "METHOD_NOT_FOUND"
    assert detail["details"]["rpc_code"] == -32601
    assert detail["details"]["operation"] == "list_issues"
    assert _http_status_for_error(payload) == 404


def test_api_error_surfaces_hint_and_upstream_status():
    exc = BitbucketAuthError(
        "Bitbucket authentication failed (401) on Cloud",
        platform_type="cloud",
        status_code=401,
        remediation="Check your app password.",
    )
    payload = _structured_tool_error(exc)

    assert payload["error"] == "Bitbucket authentication failed (401) on Cloud"
    detail = payload["error_detail"]
    assert detail["category"] == "auth"
    assert detail["hint"] == "Check your app password."
    assert detail["details"]["upstream_status_code"] == 401
    assert _http_status_for_error(payload) == 401


def test_timeouts_are_retryable():
    payload = _structured_tool_error(httpx.ReadTimeout("slow"))

    assert payload["error_detail"]["category"] == "timeout"
    assert payload["error_detail"]["retryable"] is True


def test_configuration_error_maps_to_500():
    payload = _structured_tool_error(ConfigurationError("BITBUCKET_URL is required"))

    assert payload["error_detail"]["category"] == "configuration"
    assert _http_status_for_error(payload) == 500


def test_tool_error_text_keeps_remediation_and_raw_body():
    exc = NotFoundError(
        "Not found (404): Repository web does not exist.",
        platform_type="datacenter",
        status_code=404,
        remediation="Check the project key and repository slug.",
        raw_detail={"errors": [{"message": "Repository web does not exist."}]},
        url="https://git.example.com/rest/api/1.0/projects/PROJ/repos/web",
    )

    text = _tool_error_text(exc)
    readable, detail_json = text.split("\n\nerror_detail: ")

    assert readable == str(exc)
    assert "Check the project key" in readable
    detail = json.loads(detail_json)
    assert "hint" not in detail
    assert detail["code"] == "NOT_FOUND"
    assert detail["details"]["platform_type"] == "datacenter"
    assert detail["details"]["upstream_status_code"] == 404
    assert detail["details"]["raw_detail"] == {"errors": [{"message": "Repository web does not exist."}]}
