from __future__ import annotations

import platform
import sys
import time
from collections.abc import Callable
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse

from bitbucket_mcp.config import SERVER_START_TIME
from bitbucket_mcp.error_handling import _http_status_for_error, _structured_tool_error
from bitbucket_mcp.exceptions import ConfigurationError
from bitbucket_mcp.metrics import _metrics_snapshot
from bitbucket_mcp.server import SERVER_NAME, get_translator


def _build_health_payload() -> tuple[dict[str, Any], int]:
    uptime_seconds = max(0, int(time.time() - SERVER_START_TIME))

    payload: dict[str, Any] = {
        "status": "ok",
        "server": SERVER_NAME,
        "uptime_seconds": uptime_seconds,
        "runtime": {
            "python": sys.version.split()[0],
            "platform": platform.platform(),
        },
        "metrics": _metrics_snapshot(),
    }

    try:
        config = get_translator().config
    except ConfigurationError as exc:
        error = _structured_tool_error(exc, context="healthz")
        payload["status"] = "error"
        payload["bitbucket"] = {"configured": False, "error": error["error_detail"]}
        return payload, _http_status_for_error(error)

    payload["bitbucket"] = {
        "configured": True,
        "platform_type": config.platform_type.value,
        "api_base_url": config.api_base_url,
        "auth_method": config.auth_method,
        "default_context": config.default_context,
    }
    return payload, 200


def build_healthz_endpoint() -> Callable[[Request], Any]:
    async def _endpoint(_: Request) -> JSONResponse:
        payload, status_code = _build_health_payload()
        return JSONResponse(payload, status_code=status_code)

    return _endpoint


def register_healthz_route(app: Any) -> None:
    """Register the /healthz route on the ASGI app."""

    app.add_route("/healthz", build_healthz_endpoint(), methods=["GET"])


__all__ = ["register_healthz_route"]
