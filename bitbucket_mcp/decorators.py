"""Consistent tool-call telemetry for the MCP ``call_tool`` handler.

Logging philosophy
- Console logs should be readable: one short line per event.
- Console logs should NOT print huge nested dicts.
- The canonical structured payload is attached as a compact JSON string under
  ``tool_json`` to avoid formatter-specific repr issues.

A tool event includes fields similar to:
- event: tool_call.start | tool_call.ok | tool_call.error
- status: start | ok | error
- tool_name
- call_id
- duration_ms (for ok/error)
- write_action
- arg_keys / arg_count (never argument values)
"""

from __future__ import annotations

import functools
import json
import time
import uuid
from typing import Any, Awaitable, Callable, Mapping, Optional

from bitbucket_mcp.config import DETAILED_LEVEL, TOOLS_LOGGER
from bitbucket_mcp.error_handling import _structured_tool_error
from bitbucket_mcp.metrics import _record_tool_call
from bitbucket_mcp.operations import OPERATIONS

_SECRET_ARG_KEYS = {"token", "password", "authorization", "auth", "secret"}

ToolHandler = Callable[[str, Mapping[str, Any]], Awaitable[Any]]


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


def _extract_context(args: Mapping[str, Any]) -> dict[str, Any]:
    keys = sorted(k for k in args.keys() if k not in _SECRET_ARG_KEYS)
    return {"arg_keys": keys[:32], "arg_count": len(keys)}


def _is_write_action(tool_name: str) -> bool:
    op = OPERATIONS.get(tool_name)
    return op is not None and not op.read_only


def _log_tool_event(payload: Mapping[str, Any]) -> None:
    """Emit a single readable console line and attach the payload as JSON."""

    safe = {k: _jsonable(v) for k, v in payload.items()}

    event = safe.get("event", "tool")
    status = safe.get("status", "")
    tool = safe.get("tool_name", "")
    call_id = safe.get("call_id", "")
    dur = safe.get("duration_ms")
    dur_s = f" {int(dur)}ms" if isinstance(dur, (int, float)) else ""

    msg = f"[tool] {tool} {status}{dur_s} ({event})"
    tool_json = json.dumps(safe, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
    extra = {"event": "tool_json", "tool_json": tool_json, "tool_name": tool, "call_id": call_id}

    if status == "error":
        TOOLS_LOGGER.warning(msg, extra=extra)
    elif TOOLS_LOGGER.isEnabledFor(DETAILED_LEVEL):
        TOOLS_LOGGER.detailed(msg, extra=extra)  # type: ignore[attr-defined]
    else:
        TOOLS_LOGGER.info(msg, extra=extra)


def instrumented_tool(func: ToolHandler) -> ToolHandler:
    """Wrap a ``(name, arguments)`` tool handler with start/ok/error events and metrics."""

    @functools.wraps(func)
    async def wrapper(name: str, arguments: Optional[Mapping[str, Any]]) -> Any:
        call_id = str(uuid.uuid4())
        args = dict(arguments or {})
        write_action = _is_write_action(name)
        ctx = _extract_context(args)
        start = time.perf_counter()

        _log_tool_event(
            {
                "event": "tool_call.start",
                "status": "start",
                "tool_name": name,
                "call_id": call_id,
                "write_action": write_action,
                "arg_keys": ctx["arg_keys"],
                "arg_count": ctx["arg_count"],
            }
        )

        try:
            result = await func(name, args)
        except Exception as exc:
            duration_ms = int((time.perf_counter() - start) * 1000)
            _record_tool_call(name, write_action=write_action, duration_ms=duration_ms, errored=True)
            _log_tool_event(
                {
                    "event": "tool_call.error",
                    "status": "error",
                    "tool_name": name,
                    "call_id": call_id,
                    "duration_ms": duration_ms,
                    "write_action": write_action,
                    "error": _structured_tool_error(exc, context=name),
                }
            )
            raise

        duration_ms = int((time.perf_counter() - start) * 1000)
        _record_tool_call(name, write_action=write_action, duration_ms=duration_ms, errored=False)
        _log_tool_event(
            {
                "event": "tool_call.ok",
                "status": "ok",
                "tool_name": name,
                "call_id": call_id,
                "duration_ms": duration_ms,
                "write_action": write_action,
                "result_type": type(result).__name__,
            }
        )
        return result

    return wrapper


__all__ = ["instrumented_tool"]
