"""Configuration and logging helpers for the Bitbucket MCP server."""

from __future__ import annotations

import logging
import os
import time

# Custom log levels
# ------------------------------------------------------------------------------
#
# DETAILED: verbose operational logging that is more detailed than INFO but less
# noisy than full DEBUG. Per-request upstream lines are emitted at this level.

DETAILED_LEVEL = 15


def _install_custom_log_levels() -> None:
    if not hasattr(logging, "DETAILED"):
        logging.addLevelName(DETAILED_LEVEL, "DETAILED")
        setattr(logging, "DETAILED", DETAILED_LEVEL)

    # Add a Logger helper: logger.detailed(...)
    if not hasattr(logging.Logger, "detailed"):
        def detailed(self: logging.Logger, msg, *args, **kwargs):
            if self.isEnabledFor(DETAILED_LEVEL):
                self._log(DETAILED_LEVEL, msg, args, **kwargs)
        logging.Logger.detailed = detailed  # type: ignore[attr-defined]


def _resolve_log_level(level_name: str | None) -> int:
    if not level_name:
        return logging.INFO

    name = str(level_name).strip().upper()
    if not name:
        return logging.INFO

    # Numeric levels are allowed.
    if name.lstrip("-").isdigit():
        return int(name)

    if name == "DETAILED":
        return DETAILED_LEVEL

    return getattr(logging, name, logging.INFO)


_install_custom_log_levels()

# Configuration and globals
# ------------------------------------------------------------------------------

# Settings read by platform_config.load_settings_from_env(), in resolver order.
BITBUCKET_SETTINGS_ENV_VARS = {
    "base_url": "BITBUCKET_URL",
    "username": "BITBUCKET_USERNAME",
    "token": "BITBUCKET_TOKEN",
    "password": "BITBUCKET_PASSWORD",
    "default_context": "BITBUCKET_DEFAULT_PROJECT",
    "platform": "BITBUCKET_PLATFORM",
}

BITBUCKET_CLOUD_API_BASE = "https://api.bitbucket.org/2.0"
BITBUCKET_SERVER_API_PATH = "/rest/api/1.0"
BITBUCKET_CLOUD_HOST_MARKER = "bitbucket.org"

HTTPX_TIMEOUT = float(os.environ.get("HTTPX_TIMEOUT", 30))
BITBUCKET_REQUEST_TIMEOUT_SECONDS = HTTPX_TIMEOUT

# The /healthz route is on by default; set to 0/false to hide it.
ENABLE_HEALTHZ = os.environ.get("BITBUCKET_MCP_ENABLE_HEALTHZ", "true").strip().lower() in {
    "1",
    "true",
    "yes",
    "y",
    "on",
}

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_STYLE = os.environ.get("LOG_STYLE", "color").lower()

# Default to a compact, scannable format.
LOG_FORMAT = os.environ.get(
    "LOG_FORMAT",
    "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)


class _ColorFormatter(logging.Formatter):
    """Level-colored formatter for console logs."""

    _C = {
        "DEBUG": "\x1b[36m",  # cyan
        "DETAILED": "\x1b[36m",  # cyan
        "INFO": "\x1b[32m",  # green
        "WARNING": "\x1b[33m",  # yellow
        "ERROR": "\x1b[31m",  # red
        "CRITICAL": "\x1b[35m",  # magenta
        "RESET": "\x1b[0m",
    }

    def __init__(self, fmt: str, *, use_color: bool) -> None:
        super().__init__(fmt)
        self._use_color = bool(use_color)

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - formatting
        levelname = record.levelname
        if self._use_color and levelname in self._C:
            record.levelname = f"{self._C[levelname]}{levelname}{self._C['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def _configure_logging() -> None:
    # Avoid reconfiguring during module reloads.
    root = logging.getLogger()
    if getattr(root, "_bitbucket_mcp_configured", False):
        return

    use_color = LOG_STYLE in {"color", "ansi", "colored"}

    # stderr keeps stdout free for the stdio MCP transport.
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(_ColorFormatter(LOG_FORMAT, use_color=use_color))

    logging.basicConfig(
        level=_resolve_log_level(LOG_LEVEL),
        handlers=[console_handler],
        force=True,
    )

    for noisy in (
        "uvicorn.access",
        "mcp",
        "mcp.server",
        "mcp.server.lowlevel.server",
        "httpx",
        "httpcore",
    ):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    setattr(root, "_bitbucket_mcp_configured", True)


_configure_logging()

BASE_LOGGER = logging.getLogger("bitbucket_mcp")
HTTP_LOGGER = logging.getLogger("bitbucket_mcp.http")
TOOLS_LOGGER = logging.getLogger("bitbucket_mcp.tools")

SERVER_START_TIME = time.time()

__all__ = [
    "BASE_LOGGER",
    "BITBUCKET_CLOUD_API_BASE",
    "BITBUCKET_CLOUD_HOST_MARKER",
    "BITBUCKET_REQUEST_TIMEOUT_SECONDS",
    "BITBUCKET_SERVER_API_PATH",
    "BITBUCKET_SETTINGS_ENV_VARS",
    "DETAILED_LEVEL",
    "ENABLE_HEALTHZ",
    "HTTP_LOGGER",
    "HTTPX_TIMEOUT",
    "LOG_FORMAT",
    "LOG_LEVEL",
    "LOG_STYLE",
    "SERVER_START_TIME",
    "TOOLS_LOGGER",
]
