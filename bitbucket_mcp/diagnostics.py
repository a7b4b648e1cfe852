"""Operator diagnostics: configuration checks plus an optional live probe."""

from __future__ import annotations

import os
import platform
import sys
from typing import Any, Dict, Optional

import httpx

from bitbucket_mcp.config import BITBUCKET_SETTINGS_ENV_VARS
from bitbucket_mcp.error_classifier import classify
from bitbucket_mcp.exceptions import ApiError, ConfigurationError
from bitbucket_mcp.http_clients import build_http_client
from bitbucket_mcp.operations.base import segment
from bitbucket_mcp.platform_config import PlatformConfig, load_settings_from_env, resolve_config

_PROBE_SAMPLE = 5
_BODY_PREVIEW_CHARS = 200


class UnexpectedResponseError(Exception):
    """A check request got a successful status with a body that is not a JSON object."""

    def __init__(self, url: str, content_type: str, preview: str) -> None:
        super().__init__(
            f"Expected JSON from {url} but got {content_type or 'no content type'}; "
            "a proxy or SSO login page may be intercepting API requests"
        )
        self.details = {"url": url, "content_type": content_type, "body_preview": preview}


async def _probe_get(client: httpx.AsyncClient, config: PlatformConfig, path: str) -> Dict[str, Any]:
    try:
        response = await client.get(path, params={"pagelen" if config.is_cloud else "limit": _PROBE_SAMPLE})
        response.raise_for_status()
    except httpx.HTTPError as exc:
        classify(exc, config)
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        raise UnexpectedResponseError(
            str(response.request.url),
            response.headers.get("Content-Type", ""),
            response.text[:_BODY_PREVIEW_CHARS],
        )
    return payload


async def validate_environment(
    *,
    probe: bool = True,
    environ: Optional[dict[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> dict[str, Any]:
    """Validate the running environment and return an operator-friendly report.

    The output is a structured list of checks with levels (ok/warning/error).
    With ``probe`` the configured instance is contacted: first the
    workspace/project listing, then the default context's repositories.
    """

    checks: list[dict[str, Any]] = []
    status = "ok"

    def add_check(name: str, level: str, message: str, details: dict[str, Any] | None = None) -> None:
        nonlocal status
        checks.append({"name": name, "level": level, "message": message, "details": details or {}})
        if level == "error":
            status = "error"
        elif level == "warning" and status != "error":
            status = "warning"

    env = os.environ if environ is None else environ
    settings = load_settings_from_env(env)
    env_details: dict[str, Any] = {}
    for key, var in BITBUCKET_SETTINGS_ENV_VARS.items():
        value = settings[key]
        if key in {"token", "password"}:
            # Never echo secrets.
            env_details[var] = "<set>" if value else None
        else:
            env_details[var] = value
    add_check("environment", "ok", "Bitbucket environment variables", env_details)

    add_check(
        "runtime",
        "ok",
        "Runtime metadata",
        {"python": sys.version.split("\n")[0], "platform": platform.platform()},
    )

    try:
        config = resolve_config(settings)
    except ConfigurationError as exc:
        add_check("configuration", "error", str(exc))
        return {"status": status, "checks": checks}

    add_check("configuration", "ok", f"Bitbucket {config.platform_type.label} configuration is valid", config.describe())
    if config.is_cloud and config.has_password and settings.get("token"):
        add_check("credentials", "warning", "Both token and password are set; the token takes precedence")
    if not config.default_context:
        add_check("default_context", "warning", f"No default {config.context_key} set (BITBUCKET_DEFAULT_PROJECT)")

    if not probe:
        return {"status": status, "checks": checks, "config": config.describe()}

    async with build_http_client(config, transport=transport) as client:
        listing_path = "/workspaces" if config.is_cloud else "/projects"
        try:
            data = await _probe_get(client, config, listing_path)
        except (ApiError, UnexpectedResponseError) as exc:
            add_check("api_connection", "error", str(exc), exc.details)
            return {"status": status, "checks": checks, "config": config.describe()}

        values = data.get("values") or []
        id_key = "slug" if config.is_cloud else "key"
        add_check(
            "api_connection",
            "ok",
            f"API connection successful; found {len(values)} {config.context_key}(s)",
            {"sample": [v.get(id_key) for v in values[:_PROBE_SAMPLE]]},
        )

        if config.default_context:
            if config.is_cloud:
                repo_path = f"/repositories/{segment(config.default_context)}"
            else:
                repo_path = f"/projects/{segment(config.default_context)}/repos"
            try:
                repos = await _probe_get(client, config, repo_path)
            except (ApiError, UnexpectedResponseError) as exc:
                add_check("default_context", "error", f"Cannot access default {config.context_key}: {exc}", exc.details)
            else:
                repo_values = repos.get("values") or []
                name_key = "name" if config.is_cloud else "slug"
                add_check(
                    "default_context",
                    "ok",
                    f"Default {config.context_key} {config.default_context!r} is accessible",
                    {"sample": [r.get(name_key) for r in repo_values[:3]], "count": len(repo_values)},
                )

    return {"status": status, "checks": checks, "config": config.describe()}


__all__ = ["validate_environment"]
