"""Structured error helpers used across tool and HTTP surfaces.

This module centralizes error normalization so:
- Tool handlers can log and return a stable envelope.
- HTTP routes can map errors to status codes reliably.

Contract notes:
- Keep top-level keys stable (status/ok/error/error_detail).
- Add new information under error_detail.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import jsonschema

from bitbucket_mcp.exceptions import (
    ApiError,
    ConfigurationError,
    UnsupportedOperationError,
    UsageError,
)

_CATEGORY_HTTP_STATUS = {
    "validation": 400,
    "configuration": 500,
    "auth": 401,
    "permission": 403,
    "not_found": 404,
    "not_supported": 404,
    "connectivity": 503,
    "timeout": 504,
    "upstream": 502,
    "cancelled": 499,
    "internal": 500,
}


def _structured_tool_error(
    exc: BaseException,
    *,
    context: str | None = None,
) -> dict[str, Any]:
    message = str(exc) or exc.__class__.__name__

    # Cancellation is an execution control signal, not a failure.
    if isinstance(exc, asyncio.CancelledError):
        error_detail: dict[str, Any] = {
            "message": "Tool execution cancelled",
            "category": "cancelled",
            "code": "CANCELLED",
        }
        if context:
            error_detail["context"] = context
        return {
            "status": "cancelled",
            "ok": False,
            "error": "cancelled",
            "error_detail": error_detail,
        }

    category = "internal"
    code: str | None = None
    details: dict[str, Any] = {}
    retryable = False
    hint: str | None = None

    # 1) Capture any structured attributes attached to the exception.
    val = getattr(exc, "code", None)
    if isinstance(val, str) and val.strip():
        code = val.strip()

    val = getattr(exc, "category", None)
    if isinstance(val, str) and val.strip():
        category = val.strip()

    val = getattr(exc, "hint", None)
    if isinstance(val, str) and val.strip():
        hint = val.strip()

    val = getattr(exc, "retryable", None)
    if isinstance(val, bool):
        retryable = val

    val = getattr(exc, "details", None)
    if isinstance(val, dict) and val:
        details.update(val)

    # 2) Exceptions without structured attributes.
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException)):
        category = "timeout"
        code = code or "TIMEOUT"
        retryable = True
    elif isinstance(exc, jsonschema.ValidationError):
        category = "validation"
        code = code or "INVALID_ARGUMENTS"
    elif isinstance(exc, (ValueError, TypeError)) and category == "internal":
        category = "validation"

    # 3) ApiError carries the classified upstream status and body.
    if isinstance(exc, ApiError):
        message = exc.message
        if exc.status_code is not None:
            details.setdefault("upstream_status_code", exc.status_code)
    elif isinstance(exc, UnsupportedOperationError):
        details.setdefault("rpc_code", exc.rpc_code)
        details.setdefault("operation", exc.operation)
    elif isinstance(exc, (UsageError, ConfigurationError)):
        code = code or exc.__class__.__name__

    error_detail = {
        "message": message,
        "category": category,
        "code": code,
        "retryable": retryable,
    }
    if hint:
        error_detail["hint"] = hint
    if details:
        error_detail["details"] = details
    if context:
        error_detail["context"] = context

    return {
        "status": "error",
        "ok": False,
        "error": message,
        "error_detail": error_detail,
    }


def _tool_error_text(exc: BaseException) -> str:
    """Render an exception for an MCP ``isError`` result.

    The readable message (with any remediation) comes first, followed by the
    structured detail as compact JSON: category, code, upstream status,
    platform and the raw upstream body.
    """

    detail = dict(_structured_tool_error(exc)["error_detail"])
    # The remediation is already part of str(exc).
    detail.pop("hint", None)
    text = str(exc) or exc.__class__.__name__
    detail_json = json.dumps(detail, ensure_ascii=False, sort_keys=True, separators=(",", ":"), default=str)
    return f"{text}\n\nerror_detail: {detail_json}"


def _http_status_for_error(payload: dict[str, Any]) -> int:
    detail = payload.get("error_detail") or {}
    return _CATEGORY_HTTP_STATUS.get(str(detail.get("category") or "internal"), 500)


__all__ = ["_http_status_for_error", "_structured_tool_error", "_tool_error_text"]
