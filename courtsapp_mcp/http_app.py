"""
MCP HTTP Application Factory

Creates the ASGI application that serves a BaseMCPServer over the MCP
transports while also providing health and plain JSON endpoints.

Architecture:
- A low-level MCP Server lists the catalog and forwards calls to
  BaseMCPServer.invoke, relaying its envelope unchanged
- /sse + /messages/ expose the persistent SSE transport
- /mcp exposes the Streamable HTTP transport (session per client, or stateless)
- Everything else goes to a FastAPI app: /health, /tools, /tools/call
- CORS wraps the whole composite so browser clients reach every route
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.sse import SseServerTransport
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Mount, Route
from starlette.types import ASGIApp, Receive, Scope, Send

from error_handling import setup_app
from courtsapp_mcp.base import BaseMCPServer
from courtsapp_mcp.config import ServerConfig
from courtsapp_mcp.schemas import HealthStatus, InvocationRequest, ToolList

logger = logging.getLogger("courtsapp_mcp.http")

SSE_PATH = "/sse"
MESSAGES_PATH = "/messages/"
STREAMABLE_HTTP_PATH = "/mcp"


def create_mcp_server(base_server: BaseMCPServer, config: ServerConfig) -> Server:
    """
    Bind a BaseMCPServer to a low-level MCP protocol server.

    The call handler is registered directly instead of through the
    ``call_tool`` decorator, so schema validation and result wrapping by the
    SDK never alter the envelope produced by ``invoke``.
    """
    mcp_server = Server(config.server_name, version=config.server_version)

    @mcp_server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [types.Tool(**tool.to_dict()) for tool in base_server.get_tools()]

    async def call_tool(request: types.CallToolRequest) -> types.ServerResult:
        envelope = base_server.invoke(request.params.name, request.params.arguments)
        return types.ServerResult(
            types.CallToolResult(
                content=[types.TextContent(type="text", text=block.text) for block in envelope.content],
                isError=envelope.is_error,
            )
        )

    mcp_server.request_handlers[types.CallToolRequest] = call_tool
    return mcp_server


def create_sse_app(mcp_server: Server) -> Starlette:
    """Starlette app for the persistent SSE transport."""
    sse = SseServerTransport(MESSAGES_PATH)

    async def handle_sse(request: Request) -> Response:
        logger.info("New SSE connection established")
        async with sse.connect_sse(request.scope, request.receive, request._send) as streams:
            await mcp_server.run(
                streams[0],
                streams[1],
                mcp_server.create_initialization_options(),
            )
        logger.info("SSE connection closed")
        return Response()

    return Starlette(
        routes=[
            Route(SSE_PATH, endpoint=handle_sse, methods=["GET"]),
            Mount(MESSAGES_PATH, app=sse.handle_post_message),
        ]
    )


def create_api_app(
    base_server: BaseMCPServer,
    config: ServerConfig,
    session_manager: Optional[StreamableHTTPSessionManager] = None,
) -> FastAPI:
    """FastAPI app for health checks and the plain JSON tool surface."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{config.server_name} running on http://{config.host}:{config.port}")
        if config.sse_enabled:
            logger.info(f"SSE endpoint: http://{config.host}:{config.port}{SSE_PATH}")
        if config.streamable_http_enabled:
            logger.info(f"Streamable HTTP endpoint: http://{config.host}:{config.port}{STREAMABLE_HTTP_PATH}")
        logger.info(f"Health check: http://{config.host}:{config.port}/health")

        if session_manager is not None:
            async with session_manager.run():
                yield
        else:
            yield
        logger.info(f"{config.server_name} shutting down")

    api_app = FastAPI(
        title=config.server_name,
        version=config.server_version,
        lifespan=lifespan,
    )
    setup_app(api_app, config)

    @api_app.get("/health", response_model=HealthStatus)
    async def health_check():
        """Health check endpoint for monitoring."""
        return HealthStatus(
            status="ok",
            service=config.server_name,
            version=config.server_version,
            transports=list(config.transports),
        )

    @api_app.get("/tools")
    async def list_tools():
        """Return the tool catalog."""
        return ToolList(tools=base_server.get_tools()).model_dump(exclude_none=True)

    @api_app.post("/tools/call")
    async def call_tool(payload: InvocationRequest):
        """Invoke a tool and return its envelope."""
        return base_server.invoke(payload.name, payload.arguments).to_dict()

    return api_app


def create_mcp_http_app(base_server: BaseMCPServer, config: Optional[ServerConfig] = None) -> ASGIApp:
    """
    Creates the complete ASGI application for a BaseMCPServer.

    Args:
        base_server: Instance of BaseMCPServer (e.g. UtilityMCPServer)
        config: Server settings; defaults are used when omitted

    Returns:
        ASGI application compatible with uvicorn that implements:
        - GET /health -> {"status": "ok", "service": "<server name>", ...}
        - GET /sse, POST /messages/ -> MCP SSE transport (if enabled)
        - GET/POST/DELETE /mcp -> MCP Streamable HTTP transport (if enabled)
        - GET /tools, POST /tools/call -> plain JSON access to the tools
    """
    config = config or ServerConfig()
    mcp_server = create_mcp_server(base_server, config)

    sse_app = create_sse_app(mcp_server) if config.sse_enabled else None

    session_manager = None
    if config.streamable_http_enabled:
        session_manager = StreamableHTTPSessionManager(
            app=mcp_server,
            event_store=None,
            json_response=config.json_response,
            stateless=config.stateless_http,
        )

    api_app = create_api_app(base_server, config, session_manager)

    async def composite_asgi_app(scope: Scope, receive: Receive, send: Send) -> None:
        """
        Routes:
        - /mcp -> Streamable HTTP session manager
        - /sse, /messages/ -> SSE transport
        - /* -> FastAPI (health, tools, 404)
        - lifespan -> FastAPI, which also runs the session manager
        """
        if scope["type"] == "http":
            path = scope["path"]

            if session_manager is not None and path.rstrip("/") == STREAMABLE_HTTP_PATH:
                await session_manager.handle_request(scope, receive, send)
                return
            if sse_app is not None and (path == SSE_PATH or path.startswith(MESSAGES_PATH.rstrip("/"))):
                await sse_app(scope, receive, send)
                return

        await api_app(scope, receive, send)

    allow_all = config.cors_origins == ["*"]
    app = CORSMiddleware(
        composite_asgi_app,
        allow_origins=config.cors_origins,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["mcp-session-id", "X-Request-ID"],
    )

    logger.info(
        f"Created MCP HTTP app for {config.server_name} with {len(base_server.get_tools())} tools "
        f"(transports: {', '.join(config.transports)})"
    )

    return app
