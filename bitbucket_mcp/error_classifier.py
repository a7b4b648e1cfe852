"""Turn httpx failures into typed, platform-aware :class:`ApiError` subclasses.

:func:`classify` never returns: it always raises. The raised error keeps the
upstream status, the platform type and the raw body, and renders a
remediation paragraph chosen for the platform the request targeted.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, NoReturn, Optional, Type

import httpx

from .config import BASE_LOGGER
from .exceptions import (
    ApiError,
    BadRequestError,
    BitbucketAuthError,
    ConnectivityError,
    ForbiddenError,
    NotFoundError,
    UpstreamError,
)
from .platform_config import PlatformConfig

CLOUD_APP_PASSWORDS_URL = "https://bitbucket.org/account/settings/app-passwords/"
CLOUD_APP_PASSWORDS_DOCS_URL = "https://support.atlassian.com/bitbucket-cloud/docs/app-passwords/"
SERVER_ACCESS_TOKENS_DOCS_URL = (
    "https://confluence.atlassian.com/bitbucketserver/personal-access-tokens-939515499.html"
)

# Network-level failures: no usable response ever arrived.
_CONNECTIVITY_ERRORS = (httpx.TimeoutException, httpx.NetworkError, httpx.ProxyError)


def _raw_detail(response: httpx.Response) -> Dict[str, Any]:
    text = response.text
    if not text:
        return {}
    try:
        payload = json.loads(text)
    except ValueError:
        return {"text": text}
    if isinstance(payload, dict):
        return payload
    return {"data": payload}


def _upstream_message(raw: Dict[str, Any]) -> Optional[str]:
    """Pull the human message out of either platform's error body.

    Cloud nests it under ``error.message``; Server uses ``message`` or a list
    of ``errors``.
    """

    error = raw.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    if isinstance(raw.get("message"), str):
        return raw["message"]
    errors = raw.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        message = errors[0].get("message")
        if isinstance(message, str):
            return message
    return None


def _bullets(lines: list[str]) -> str:
    return "\n".join(f"- {line}" for line in lines)


def _current_config_summary(config: PlatformConfig) -> str:
    return (
        f"Current configuration: username={config.username or '(not set)'}, "
        f"hasToken={str(config.has_token).lower()}, "
        f"hasPassword={str(config.has_password).lower()}"
    )


def _auth_remediation(config: PlatformConfig) -> str:
    if config.is_cloud:
        lines = [
            "BITBUCKET_USERNAME must be your Bitbucket username (not your email address).",
            f"BITBUCKET_TOKEN must be a valid app password created at {CLOUD_APP_PASSWORDS_URL}",
            "The app password needs the scopes Repositories (Read/Write), "
            "Pull requests (Read/Write) and Account (Read).",
            f"See {CLOUD_APP_PASSWORDS_DOCS_URL}",
        ]
    else:
        lines = [
            "BITBUCKET_TOKEN must be a valid personal access token, "
            "or BITBUCKET_USERNAME/BITBUCKET_PASSWORD must be correct.",
            "The token or account must have permission on the project and repository.",
            f"Confirm the instance at {config.base_url} is reachable and the token has not expired.",
            f"See {SERVER_ACCESS_TOKENS_DOCS_URL}",
        ]
    return (
        f"Authentication failed for Bitbucket {config.platform_type.label}. Check:\n"
        + _bullets(lines)
        + "\n"
        + _current_config_summary(config)
    )


def _bad_request_remediation(config: PlatformConfig) -> str:
    lines = [
        f"The {config.context_key} key may not exist or may be misspelled.",
        "A referenced branch may not exist.",
        "Source and target branches may be identical.",
    ]
    if not config.is_cloud:
        lines.extend(
            [
                "A branch restriction or merge check on the target branch may reject the change.",
                f"The REST endpoint {config.api_base_url} may not be reachable or enabled on this instance.",
            ]
        )
    return "Bitbucket rejected the request. Likely causes:\n" + _bullets(lines)


def _forbidden_remediation(config: PlatformConfig) -> str:
    if config.is_cloud:
        scope_hint = "Check that the app password has the scopes this operation needs."
    else:
        scope_hint = "Check the token's permissions and the account's project/repository permissions."
    return (
        f"Access denied by Bitbucket {config.platform_type.label}. "
        f"The credentials are valid but not allowed to perform this operation. {scope_hint}"
    )


def _not_found_remediation(config: PlatformConfig, url: str) -> str:
    lines = [
        f"The {config.context_key} key may be wrong.",
        "The repository slug may be wrong or the repository may have been renamed.",
        "The identifier (pull request, commit, branch, webhook, ...) may not exist.",
        f"Requested URL: {url}",
    ]
    return "Resource not found. Check:\n" + _bullets(lines)


def _connectivity_remediation(config: PlatformConfig) -> str:
    if config.is_cloud:
        return (
            "Could not reach Bitbucket Cloud. Check your internet connection and any "
            "proxy settings, then retry."
        )
    probe = f"{config.api_base_url}/application-properties"
    return (
        f"Could not reach the Bitbucket {config.platform_type.label} instance at {config.base_url}.\n"
        + _bullets(
            [
                "Connect to the VPN if the instance is on a private network.",
                "Check firewall and proxy rules between this host and the instance.",
                f"Probe reachability with: curl -I {probe}",
            ]
        )
    )


def _status_error_class(status: int) -> Type[ApiError]:
    return {
        400: BadRequestError,
        401: BitbucketAuthError,
        403: ForbiddenError,
        404: NotFoundError,
    }.get(status, UpstreamError)


def _classify_status_error(error: httpx.HTTPStatusError, config: PlatformConfig) -> ApiError:
    response = error.response
    status = response.status_code
    url = str(error.request.url)
    raw = _raw_detail(response)
    upstream = _upstream_message(raw)

    if status == 401:
        message = f"Bitbucket authentication failed (401) on {config.platform_type.label}"
        remediation = _auth_remediation(config)
    elif status == 400:
        message = f"Bad request (400): {upstream or response.reason_phrase}"
        remediation = _bad_request_remediation(config)
    elif status == 403:
        message = f"Forbidden (403): {upstream or response.reason_phrase}"
        remediation = _forbidden_remediation(config)
    elif status == 404:
        message = f"Not found (404): {upstream or response.reason_phrase}"
        remediation = _not_found_remediation(config, url)
    else:
        detail = upstream or raw.get("text") or response.reason_phrase
        message = f"Bitbucket API error ({status}): {detail}"
        remediation = ""

    cls = _status_error_class(status)
    return cls(
        message,
        platform_type=config.platform_type.value,
        status_code=status,
        remediation=remediation,
        raw_detail=raw,
        url=url,
    )


def _request_url(error: httpx.RequestError) -> Optional[str]:
    try:
        return str(error.request.url)
    except RuntimeError:
        # The request property raises when the error was built without one.
        return None


def classify(
    error: BaseException,
    config: PlatformConfig,
    *,
    logger: Optional[logging.Logger] = None,
) -> NoReturn:
    """Raise the typed error for ``error``.

    Errors that are already classified, and exceptions that did not come
    from httpx, are re-raised unchanged.
    """

    log = logger or BASE_LOGGER

    if isinstance(error, ApiError):
        raise error

    classified: ApiError
    if isinstance(error, httpx.HTTPStatusError):
        classified = _classify_status_error(error, config)
    elif isinstance(error, _CONNECTIVITY_ERRORS):
        url = _request_url(error)
        classified = ConnectivityError(
            f"Network error talking to Bitbucket {config.platform_type.label}: "
            f"{error.__class__.__name__}: {error}",
            platform_type=config.platform_type.value,
            remediation=_connectivity_remediation(config),
            raw_detail={"exception": error.__class__.__name__, "message": str(error)},
            url=url,
        )
    elif isinstance(error, httpx.RequestError):
        url = _request_url(error)
        classified = UpstreamError(
            f"Bitbucket request failed: {error.__class__.__name__}: {error}",
            platform_type=config.platform_type.value,
            raw_detail={"exception": error.__class__.__name__, "message": str(error)},
            url=url,
        )
    else:
        raise error

    log.warning(
        "Bitbucket request classified as %s (status=%s, platform=%s)",
        classified.kind,
        classified.status_code,
        classified.platform_type,
        extra={
            "error_category": classified.category,
            "status": classified.status_code,
            "url": classified.url,
        },
    )
    raise classified from error


__all__ = ["classify"]
