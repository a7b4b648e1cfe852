"""MCP server wiring: publishes the operation table as tools and dispatches calls.

The translator (and its HTTP client) is built lazily from the environment on
first use and shared by every call afterwards.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.shared.exceptions import McpError

from bitbucket_mcp.config import BASE_LOGGER
from bitbucket_mcp.decorators import instrumented_tool
from bitbucket_mcp.error_handling import _tool_error_text
from bitbucket_mcp.exceptions import ConfigurationError, UnsupportedOperationError
from bitbucket_mcp.http_clients import build_http_client
from bitbucket_mcp.operations import Operation, list_operations
from bitbucket_mcp.platform_config import PlatformType, resolve_config_from_env
from bitbucket_mcp.translator import OperationTranslator

SERVER_NAME = "bitbucket-mcp"

server: Server = Server(SERVER_NAME)

_translator: Optional[OperationTranslator] = None


def get_translator() -> OperationTranslator:
    """Return the shared translator, resolving configuration on first use.

    Raises :class:`ConfigurationError` when the environment is incomplete; the
    error is not cached so a corrected environment is picked up next call.
    """

    global _translator
    if _translator is None:
        config = resolve_config_from_env()
        _translator = OperationTranslator(config, build_http_client(config))
    return _translator


def _configured_platform() -> Optional[PlatformType]:
    try:
        return get_translator().config.platform_type
    except ConfigurationError as exc:
        BASE_LOGGER.warning("Listing tools without a platform: %s", exc)
        return None


def tool_for(op: Operation, platform_type: Optional[PlatformType] = None) -> types.Tool:
    return types.Tool(
        name=op.name,
        description=op.description,
        inputSchema=op.input_schema(platform_type),
        annotations=types.ToolAnnotations(readOnlyHint=op.read_only),
    )


def build_tools(platform_type: Optional[PlatformType] = None) -> List[types.Tool]:
    """Tools for ``platform_type``; every tool when the platform is unknown."""

    tools: List[types.Tool] = []
    for op in list_operations():
        if platform_type is not None and op.binding_for(platform_type) is None:
            continue
        tools.append(tool_for(op, platform_type))
    return tools


@server.list_tools()
async def list_tools() -> List[types.Tool]:
    return build_tools(_configured_platform())


@instrumented_tool
async def dispatch_tool(name: str, arguments: Mapping[str, Any]) -> List[types.TextContent]:
    try:
        result = await get_translator().execute(name, arguments)
    except UnsupportedOperationError as exc:
        raise McpError(types.ErrorData(code=types.METHOD_NOT_FOUND, message=str(exc))) from exc
    return [types.TextContent(type="text", text=item["text"]) for item in result["content"]]


async def call_tool(request: types.CallToolRequest) -> types.ServerResult:
    """Handle ``tools/call``.

    ``McpError`` propagates so the session answers with a JSON-RPC error
    (unknown or unsupported operations become ``METHOD_NOT_FOUND``). Every
    other failure is returned as an ``isError`` result carrying the message,
    the remediation and the structured error detail.
    """

    try:
        content = await dispatch_tool(request.params.name, request.params.arguments or {})
    except McpError:
        raise
    except Exception as exc:
        error_content = [types.TextContent(type="text", text=_tool_error_text(exc))]
        return types.ServerResult(types.CallToolResult(content=error_content, isError=True))
    return types.ServerResult(types.CallToolResult(content=content, isError=False))


server.request_handlers[types.CallToolRequest] = call_tool


async def close_translator() -> None:
    """Close the shared HTTP client; the next call rebuilds it from the environment."""

    global _translator
    translator, _translator = _translator, None
    if translator is not None:
        await translator.aclose()


__all__ = [
    "SERVER_NAME",
    "build_tools",
    "call_tool",
    "close_translator",
    "dispatch_tool",
    "get_translator",
    "list_tools",
    "server",
]
