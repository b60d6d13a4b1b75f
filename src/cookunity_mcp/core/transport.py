# ============================================================================
# COOKUNITY MCP - TRANSPORT LAYER
# ============================================================================
# Copyright 2026 CookUnity MCP Authors. All Rights Reserved.
#
# Transport implementations for STDIO and HTTP modes.
#
# DUAL TRANSPORT ARCHITECTURE:
# - STDIO:  Local MCP clients (Claude Desktop, IDEs); stdout is the protocol
# - HTTP:   Streamable HTTP on /mcp, stateless JSON responses
# ============================================================================

import asyncio
import contextlib
import sys
from typing import Any
from collections.abc import AsyncIterator

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.server.models import InitializationOptions
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager

__all__ = [
    "run_stdio",
    "run_http",
    "create_http_app",
]


# ============================================================================
# STDIO TRANSPORT
# ============================================================================

def run_stdio(
    server: Server,
    init_options: InitializationOptions,
) -> None:
    """Run MCP server in STDIO mode."""
    asyncio.run(_stdio_async(server, init_options))


async def _stdio_async(
    server: Server,
    init_options: InitializationOptions,
) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, init_options)


# ============================================================================
# HTTP TRANSPORT
# ============================================================================

def run_http(
    server: Server,
    version: str,
    host: str = "0.0.0.0",
    port: int = 3000,
) -> None:
    """Run MCP server in HTTP mode."""
    import uvicorn

    app = create_http_app(server, version)

    print(f"[cookunity-mcp] HTTP server starting on {host}:{port}", file=sys.stderr)
    print(f"[cookunity-mcp] MCP endpoint: http://{host}:{port}/mcp", file=sys.stderr)

    uvicorn.run(app, host=host, port=port, log_level="info")


def create_http_app(server: Server, version: str) -> Any:
    """Create Starlette ASGI application for HTTP transport."""
    from starlette.applications import Starlette
    from starlette.routing import Route, Mount
    from starlette.responses import JSONResponse
    from starlette.middleware.cors import CORSMiddleware
    from starlette.types import Receive, Scope, Send

    session_manager = StreamableHTTPSessionManager(
        app=server,
        json_response=True,
        stateless=True,
    )

    async def health(request):
        return JSONResponse({"status": "ok", "version": version})

    async def handle_streamable(scope: Scope, receive: Receive, send: Send):
        await session_manager.handle_request(scope, receive, send)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with session_manager.run():
            yield

    app = Starlette(
        debug=False,
        routes=[
            Route("/health", endpoint=health, methods=["GET"]),
            Mount("/mcp", app=handle_streamable),
        ],
        lifespan=lifespan,
    )

    app = CORSMiddleware(
        app,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
        expose_headers=["Mcp-Session-Id"],
    )

    return app
