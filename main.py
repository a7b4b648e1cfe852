"""Bitbucket MCP server: ASGI entry point.

Serves the MCP SSE transport at ``/sse`` (clients post messages to
``/messages/``) and a ``/healthz`` probe. Run with::

    uvicorn main:app --host 0.0.0.0 --port ${PORT:-8000}
"""

from __future__ import annotations

import contextlib
from typing import AsyncIterator

from mcp.server.sse import SseServerTransport
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Mount, Route

from bitbucket_mcp.config import BASE_LOGGER, ENABLE_HEALTHZ
from bitbucket_mcp.http_routes.healthz import register_healthz_route
from bitbucket_mcp.server import close_translator, server

SSE_PATH = "/sse"
MESSAGES_PATH = "/messages/"

sse_transport = SseServerTransport(MESSAGES_PATH)


async def handle_sse(request: Request) -> Response:
    async with sse_transport.connect_sse(
        request.scope, request.receive, request._send  # noqa: SLF001
    ) as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
    return Response()


@contextlib.asynccontextmanager
async def lifespan(_: Starlette) -> AsyncIterator[None]:
    try:
        yield
    finally:
        await close_translator()


def build_app() -> Starlette:
    app = Starlette(
        routes=[
            Route(SSE_PATH, endpoint=handle_sse, methods=["GET"]),
            Mount(MESSAGES_PATH, app=sse_transport.handle_post_message),
        ],
        lifespan=lifespan,
    )
    if ENABLE_HEALTHZ:
        register_healthz_route(app)
    BASE_LOGGER.info("ASGI app ready: MCP SSE at %s, healthz=%s", SSE_PATH, ENABLE_HEALTHZ)
    return app


app = build_app()
