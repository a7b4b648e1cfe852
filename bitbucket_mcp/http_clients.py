"""Async HTTP client factory bound to a resolved :class:`PlatformConfig`.

The client is built once and shared by every tool call. It carries no
per-call state: auth, base URL, timeout and default headers are fixed at
construction, and request logging is attached as httpx event hooks.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional, Tuple

import httpx

from .config import BITBUCKET_REQUEST_TIMEOUT_SECONDS, HTTP_LOGGER
from .platform_config import BasicCredentials, PlatformConfig, TokenCredentials
from .tool_logging import _record_bitbucket_request

_DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}

_STARTED_AT_KEY = "bitbucket_mcp_started_at"


def _auth_settings(config: PlatformConfig) -> Tuple[Optional[httpx.BasicAuth], Dict[str, str]]:
    """Return ``(basic_auth, extra_headers)`` for the configured credentials.

    Exactly one of the two is populated: bearer tokens go in a header and
    everything else is sent as HTTP basic auth.
    """

    creds = config.credentials
    if isinstance(creds, TokenCredentials):
        return None, {"Authorization": f"Bearer {creds.token}"}
    if isinstance(creds, BasicCredentials):
        return httpx.BasicAuth(creds.username, creds.password), {}
    raise TypeError(f"Unsupported credentials type: {type(creds).__name__}")


def _request_logging_hooks(logger: logging.Logger) -> Dict[str, Any]:
    async def _on_request(request: httpx.Request) -> None:
        request.extensions[_STARTED_AT_KEY] = time.perf_counter()

    async def _on_response(response: httpx.Response) -> None:
        started = response.request.extensions.get(_STARTED_AT_KEY)
        duration_ms = int((time.perf_counter() - started) * 1000) if started else 0
        _record_bitbucket_request(
            status_code=response.status_code,
            duration_ms=duration_ms,
            error=response.status_code >= 400,
            method=response.request.method,
            url=str(response.request.url),
            logger=logger,
        )

    return {"request": [_on_request], "response": [_on_response]}


def build_http_client(
    config: PlatformConfig,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    logger: Optional[logging.Logger] = None,
) -> httpx.AsyncClient:
    """Build the shared async client for ``config``.

    ``transport`` is injectable so tests can use ``httpx.MockTransport``.
    """

    auth, auth_headers = _auth_settings(config)
    headers = dict(_DEFAULT_HEADERS)
    headers.update(auth_headers)

    kwargs: Dict[str, Any] = {
        "base_url": config.api_base_url,
        "headers": headers,
        "timeout": httpx.Timeout(BITBUCKET_REQUEST_TIMEOUT_SECONDS),
        "follow_redirects": True,
        "event_hooks": _request_logging_hooks(logger or HTTP_LOGGER),
    }
    if auth is not None:
        kwargs["auth"] = auth
    if transport is not None:
        kwargs["transport"] = transport

    (logger or HTTP_LOGGER).info(
        "Bitbucket %s client ready: %s (%s auth)",
        config.platform_type.label,
        config.api_base_url,
        config.auth_method,
    )
    return httpx.AsyncClient(**kwargs)


__all__ = ["build_http_client"]
