"""In-process metrics registry for Bitbucket MCP tools."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx


def _new_metrics_state() -> Dict[str, Any]:
    return {
        "tools": {},
        "bitbucket": {
            "requests_total": 0,
            "errors_total": 0,
            "auth_failures_total": 0,
            "timeouts_total": 0,
        },
    }


_METRICS: Dict[str, Any] = _new_metrics_state()


def _reset_metrics_for_tests() -> None:
    """Reset in-process metrics; intended for tests."""

    _METRICS.clear()
    _METRICS.update(_new_metrics_state())


def _record_tool_call(
    tool_name: str,
    *,
    write_action: bool,
    duration_ms: int,
    errored: bool,
) -> None:
    tools_bucket = _METRICS.setdefault("tools", {})
    bucket = tools_bucket.setdefault(
        tool_name,
        {
            "calls_total": 0,
            "errors_total": 0,
            "write_calls_total": 0,
            "latency_ms_sum": 0,
        },
    )
    bucket["calls_total"] += 1
    if write_action:
        bucket["write_calls_total"] += 1
    bucket["latency_ms_sum"] += max(0, int(duration_ms))
    if errored:
        bucket["errors_total"] += 1


def _record_bitbucket_request(
    *,
    status_code: Optional[int],
    duration_ms: int,
    error: bool,
    exc: Optional[BaseException] = None,
) -> None:
    bucket = _METRICS.setdefault("bitbucket", {})
    bucket["requests_total"] = bucket.get("requests_total", 0) + 1
    if error:
        bucket["errors_total"] = bucket.get("errors_total", 0) + 1
    if status_code == 401:
        bucket["auth_failures_total"] = bucket.get("auth_failures_total", 0) + 1
    if exc is not None and isinstance(exc, httpx.TimeoutException):
        bucket["timeouts_total"] = bucket.get("timeouts_total", 0) + 1


def _metrics_snapshot() -> Dict[str, Any]:
    """Return a shallow, JSON-safe snapshot of in-process metrics."""

    tools = _METRICS.get("tools", {})
    bitbucket = _METRICS.get("bitbucket", {})

    return {
        "tools": {name: dict(bucket) for name, bucket in tools.items()},
        "bitbucket": {
            "requests_total": int(bitbucket.get("requests_total", 0)),
            "errors_total": int(bitbucket.get("errors_total", 0)),
            "auth_failures_total": int(bitbucket.get("auth_failures_total", 0)),
            "timeouts_total": int(bitbucket.get("timeouts_total", 0)),
        },
    }


__all__ = [
    "_metrics_snapshot",
    "_record_bitbucket_request",
    "_record_tool_call",
    "_reset_metrics_for_tests",
]
