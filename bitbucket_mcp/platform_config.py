"""Resolve raw connection settings into a validated, platform-typed config.

The resolver is pure: it never touches the network and identical input
always produces an identical config (or an identical ``ConfigurationError``).
Environment loading lives in :func:`load_settings_from_env` so callers and
tests can feed the resolver plain mappings.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urlparse

from .config import (
    BASE_LOGGER,
    BITBUCKET_CLOUD_API_BASE,
    BITBUCKET_CLOUD_HOST_MARKER,
    BITBUCKET_SERVER_API_PATH,
    BITBUCKET_SETTINGS_ENV_VARS,
)
from .exceptions import ConfigurationError


class PlatformType(str, Enum):
    CLOUD = "cloud"
    SERVER = "server"
    DATACENTER = "datacenter"

    @property
    def is_cloud(self) -> bool:
        return self is PlatformType.CLOUD

    @property
    def label(self) -> str:
        """Human-readable product name used in messages."""

        return {
            PlatformType.CLOUD: "Cloud",
            PlatformType.SERVER: "Server",
            PlatformType.DATACENTER: "Data Center",
        }[self]


@dataclass(frozen=True)
class TokenCredentials:
    token: str


@dataclass(frozen=True)
class BasicCredentials:
    username: str
    password: str


Credentials = Union[TokenCredentials, BasicCredentials]


@dataclass(frozen=True)
class PlatformConfig:
    base_url: str
    platform_type: PlatformType
    credentials: Credentials
    # Cloud sends the username with the token as basic auth.
    username: Optional[str] = None
    has_password: bool = False
    default_context: Optional[str] = None

    @property
    def is_cloud(self) -> bool:
        return self.platform_type.is_cloud

    @property
    def context_key(self) -> str:
        return "workspace" if self.is_cloud else "project"

    @property
    def has_token(self) -> bool:
        return isinstance(self.credentials, TokenCredentials)

    @property
    def api_base_url(self) -> str:
        if self.is_cloud:
            return BITBUCKET_CLOUD_API_BASE
        return self.base_url.rstrip("/") + BITBUCKET_SERVER_API_PATH

    @property
    def auth_method(self) -> str:
        if self.is_cloud or isinstance(self.credentials, BasicCredentials):
            return "basic"
        return "bearer"

    def describe(self) -> Dict[str, Any]:
        """Return a secret-free summary for diagnostics and error guidance."""

        return {
            "base_url": self.base_url,
            "api_base_url": self.api_base_url,
            "platform_type": self.platform_type.value,
            "auth_method": self.auth_method,
            "username": self.username,
            "has_token": self.has_token,
            "has_password": self.has_password,
            "default_context": self.default_context,
        }


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def _detect_platform(base_url: str, refinement: Optional[str]) -> PlatformType:
    if BITBUCKET_CLOUD_HOST_MARKER in base_url.lower():
        return PlatformType.CLOUD

    if refinement is None:
        return PlatformType.SERVER
    normalized = refinement.lower().replace("-", "").replace("_", "").replace(" ", "")
    if normalized == "server":
        return PlatformType.SERVER
    if normalized in {"datacenter", "dc"}:
        return PlatformType.DATACENTER
    raise ConfigurationError(
        f"BITBUCKET_PLATFORM must be 'server' or 'datacenter', got {refinement!r}"
    )


def resolve_config(
    raw_settings: Mapping[str, Any],
    *,
    logger: Optional[logging.Logger] = None,
) -> PlatformConfig:
    """Validate ``raw_settings`` and return an immutable :class:`PlatformConfig`.

    Recognized keys: ``base_url``, ``username``, ``token``, ``password``,
    ``default_context`` and ``platform`` (the server/datacenter refinement).
    """

    log = logger or BASE_LOGGER

    base_url = _clean(raw_settings.get("base_url"))
    username = _clean(raw_settings.get("username"))
    token = _clean(raw_settings.get("token"))
    password = _clean(raw_settings.get("password"))
    default_context = _clean(raw_settings.get("default_context"))

    if not base_url:
        raise ConfigurationError("BITBUCKET_URL is required")
    if not _is_valid_url(base_url):
        raise ConfigurationError(f"BITBUCKET_URL is not a valid URL: {base_url!r}")

    platform_type = _detect_platform(base_url, _clean(raw_settings.get("platform")))

    credentials: Credentials
    if platform_type.is_cloud:
        if not username:
            raise ConfigurationError(
                "BITBUCKET_USERNAME is required for Bitbucket Cloud "
                "(your Bitbucket username, not your email address)"
            )
        if not token and not password:
            raise ConfigurationError(
                "Bitbucket Cloud requires BITBUCKET_TOKEN (app password) or BITBUCKET_PASSWORD"
            )
        if token and password:
            log.warning(
                "Both BITBUCKET_TOKEN and BITBUCKET_PASSWORD are set for Bitbucket Cloud; "
                "the token takes precedence"
            )
        credentials = BasicCredentials(username=username, password=token or password or "")
    else:
        if token:
            credentials = TokenCredentials(token=token)
        elif username and password:
            credentials = BasicCredentials(username=username, password=password)
        else:
            raise ConfigurationError(
                f"Bitbucket {platform_type.label} requires BITBUCKET_TOKEN or both "
                "BITBUCKET_USERNAME and BITBUCKET_PASSWORD"
            )

    if not default_context:
        log.warning(
            "BITBUCKET_DEFAULT_PROJECT is not set; every call must pass a %s",
            "workspace" if platform_type.is_cloud else "project",
        )

    return PlatformConfig(
        base_url=base_url,
        platform_type=platform_type,
        credentials=credentials,
        username=username,
        has_password=bool(password),
        default_context=default_context,
    )


def load_settings_from_env(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Optional[str]]:
    """Read raw resolver settings from the (current) process environment."""

    env = os.environ if environ is None else environ
    return {key: env.get(var) for key, var in BITBUCKET_SETTINGS_ENV_VARS.items()}


def resolve_config_from_env(*, logger: Optional[logging.Logger] = None) -> PlatformConfig:
    return resolve_config(load_settings_from_env(), logger=logger)


__all__ = [
    "BasicCredentials",
    "Credentials",
    "PlatformConfig",
    "PlatformType",
    "TokenCredentials",
    "load_settings_from_env",
    "resolve_config",
    "resolve_config_from_env",
]
