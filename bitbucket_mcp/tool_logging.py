"""Logging helpers for upstream Bitbucket requests.

Goals:
- Keep console logs human-readable and clickable.
- Preserve structured metadata for debugging and metrics.
- Avoid circular imports between HTTP helpers and the MCP server.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urlparse

from .config import BITBUCKET_CLOUD_API_BASE, BITBUCKET_SERVER_API_PATH, HTTP_LOGGER
from .metrics import _record_bitbucket_request as _record_bitbucket_request_metrics


def _derive_bitbucket_web_url(api_url: str) -> Optional[str]:
    """Convert a REST API URL into the repository page a human can open.

    API links usually 401 in a browser; the repository page does not.
    """

    parsed = urlparse(api_url)
    parts = [p for p in parsed.path.split("/") if p]

    if api_url.startswith(BITBUCKET_CLOUD_API_BASE):
        # /2.0/repositories/{workspace}/{repo}/...
        if len(parts) >= 4 and parts[1] == "repositories":
            return f"https://bitbucket.org/{parts[2]}/{parts[3]}"
        return None

    marker = BITBUCKET_SERVER_API_PATH.strip("/").split("/")
    for idx in range(len(parts) - len(marker) + 1):
        if parts[idx : idx + len(marker)] != marker:
            continue
        prefix = "/".join(parts[:idx])
        rest = parts[idx + len(marker) :]
        # /rest/api/1.0/projects/{key}/repos/{slug}/...
        if len(rest) >= 4 and rest[0] == "projects" and rest[2] == "repos":
            root = f"{parsed.scheme}://{parsed.netloc}"
            if prefix:
                root = f"{root}/{prefix}"
            return f"{root}/projects/{rest[1]}/repos/{rest[3]}/browse"
        return None
    return None


def _shorten_api_url(api_url: str) -> str:
    if api_url.startswith(BITBUCKET_CLOUD_API_BASE):
        return api_url[len(BITBUCKET_CLOUD_API_BASE) :]
    idx = api_url.find(BITBUCKET_SERVER_API_PATH)
    if idx >= 0:
        return api_url[idx + len(BITBUCKET_SERVER_API_PATH) :]
    return api_url


def _record_bitbucket_request(
    *,
    status_code: Optional[int],
    duration_ms: int,
    error: bool,
    method: Optional[str] = None,
    url: Optional[str] = None,
    exc: Optional[BaseException] = None,
    logger: Optional[logging.Logger] = None,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """Log one upstream request line and record metrics."""

    log_extra: dict[str, Any] = {
        "status_code": status_code,
        "duration_ms": duration_ms,
        "error": error,
    }
    if method:
        log_extra["method"] = method
    if url:
        log_extra["url"] = url
        web_url = _derive_bitbucket_web_url(url)
        if web_url:
            log_extra["web_url"] = web_url
    if exc is not None:
        log_extra["exc_type"] = exc.__class__.__name__
    if extra:
        log_extra.update(extra)

    status = status_code if status_code is not None else "ERR"
    msg = f"Bitbucket API {method or '?'} {_shorten_api_url(url or '')} -> {status} ({duration_ms}ms)"
    web_url_val = log_extra.get("web_url")
    if isinstance(web_url_val, str) and web_url_val:
        # Keep the URL off the end of the line; some viewers swallow trailing punctuation.
        msg += f" | web: {web_url_val} [web]"

    log = logger or HTTP_LOGGER
    if error:
        log.warning(msg, extra=log_extra)
    else:
        log.detailed(msg, extra=log_extra)  # type: ignore[attr-defined]

    _record_bitbucket_request_metrics(
        status_code=status_code,
        duration_ms=duration_ms,
        error=error,
        exc=exc,
    )


__all__ = ["_record_bitbucket_request"]
