"""
MCP Client for the CourtsApp MCP Server

Connects to a running server over Streamable HTTP or SSE, lists the tools
and calls them. Also used as a manual smoke test:

  python tool_client.py                             # http://127.0.0.1:3000/mcp
  python tool_client.py http://127.0.0.1:3000/sse   # SSE transport

Make sure the server is running before starting the client.
"""
import sys
import json
import asyncio
import logging
from contextlib import AsyncExitStack
from datetime import timedelta
from typing import Any, Dict, List, Optional

import httpx
from aiobreaker import CircuitBreaker, CircuitBreakerError
from mcp import ClientSession, types
from mcp.client.sse import sse_client
from mcp.client.streamable_http import streamablehttp_client

from error_handling import configure_logging, get_tracer

logger = logging.getLogger("courtsapp_mcp.client")

DEFAULT_URL = "http://127.0.0.1:3000/mcp"
CLIENT_TRANSPORTS = ("streamable-http", "sse")


def transport_for_url(url: str) -> str:
    """Pick the transport a server URL points at (/sse or /mcp)."""
    return "sse" if httpx.URL(url).path.rstrip("/").endswith("/sse") else "streamable-http"


def decode_result(result: types.CallToolResult) -> Any:
    """
    Return the payload of a tool result.

    Successful results carry JSON text and are parsed; error results are
    returned as their ``Error: ...`` text.
    """
    text = result.content[0].text if result.content else ""
    if result.isError:
        return text
    return json.loads(text)


class ToolServerClient:
    """
    Client for a single MCP server.

    The connection is opened by ``initialize()`` (or ``async with``) and
    kept for the lifetime of the client.
    """

    def __init__(self, url: str = DEFAULT_URL, transport: Optional[str] = None):
        """
        Initialize the client.

        Args:
            url: Server MCP endpoint (.../mcp or .../sse)
            transport: "streamable-http" or "sse"; inferred from the URL when omitted
        """
        self.url = url
        self.transport = transport or transport_for_url(url)
        if self.transport not in CLIENT_TRANSPORTS:
            raise ValueError(f"Unsupported transport: {self.transport}")
        self.health_url = str(httpx.URL(url).join("/health"))

        self._session: Optional[ClientSession] = None
        self._exit_stack: Optional[AsyncExitStack] = None
        self._http_client: Optional[httpx.AsyncClient] = None

        # Circuit breaker for tool calls (5 failures, 60s recovery)
        self._circuit_breaker = CircuitBreaker(
            fail_max=5,
            timeout_duration=timedelta(seconds=60),
            name="mcp_tool_calls"
        )

    async def __aenter__(self) -> "ToolServerClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def initialize(self):
        """Open the transport and run the MCP initialize handshake."""
        logger.info(f"Connecting to MCP server at {self.url} ({self.transport})")

        self._http_client = httpx.AsyncClient(timeout=10.0)
        self._exit_stack = AsyncExitStack()

        try:
            if self.transport == "sse":
                read_stream, write_stream = await self._exit_stack.enter_async_context(
                    sse_client(self.url)
                )
            else:
                read_stream, write_stream, _ = await self._exit_stack.enter_async_context(
                    streamablehttp_client(self.url)
                )

            self._session = await self._exit_stack.enter_async_context(
                ClientSession(read_stream, write_stream)
            )
            await self._session.initialize()
        except BaseException:
            logger.error(f"Failed to connect to MCP server at {self.url}")
            await self.close()
            raise
        logger.info("Connected to MCP server")

    def _require_session(self) -> ClientSession:
        if self._session is None:
            raise RuntimeError("Client not initialized. Call initialize() first.")
        return self._session

    async def list_tools(self) -> List[types.Tool]:
        """Return the server's tool catalog."""
        session = self._require_session()
        tracer = get_tracer(__name__)
        with tracer.start_as_current_span("mcp.list_tools") as span:
            result = await session.list_tools()
            span.set_attribute("mcp.tool_count", len(result.tools))
            return result.tools

    async def call_tool(self, tool_name: str, arguments: Dict[str, Any]) -> types.CallToolResult:
        """
        Call a tool with circuit breaker protection and tracing.

        Tool-level failures come back as results with ``isError`` set; only
        transport failures raise and count against the circuit breaker.

        Raises:
            RuntimeError: If client not initialized or circuit breaker is open
        """
        session = self._require_session()

        @self._circuit_breaker
        async def protected_call():
            return await session.call_tool(tool_name, arguments)

        tracer = get_tracer(__name__)
        with tracer.start_as_current_span(f"mcp.client.{tool_name}") as span:
            span.set_attribute("mcp.tool.name", tool_name)
            span.set_attribute("mcp.tool.arguments", str(arguments))

            try:
                result = await protected_call()
            except CircuitBreakerError as e:
                span.set_attribute("mcp.tool.status", "circuit_open")
                logger.error(f"Circuit breaker open for tool {tool_name}")
                raise RuntimeError(f"Service temporarily unavailable: {tool_name}") from e
            except Exception:
                span.set_attribute("mcp.tool.status", "error")
                logger.error(f"Tool call failed: {tool_name}", exc_info=True)
                raise

            span.set_attribute("mcp.tool.status", "error" if result.isError else "success")
            return result

    async def get_server_health(self) -> bool:
        """
        Check the server's /health endpoint.

        Failures (network errors, timeouts, non-200 answers) report the
        server as unhealthy instead of raising.
        """
        client = self._http_client or httpx.AsyncClient(timeout=10.0)
        try:
            response = await client.get(self.health_url, timeout=5.0)
            return response.status_code == 200
        except Exception as e:
            logger.warning(f"Health check failed for {self.health_url}: {e}")
            return False
        finally:
            if client is not self._http_client:
                await client.aclose()

    async def close(self):
        """Close the MCP session and the HTTP client."""
        exit_stack, self._exit_stack = self._exit_stack, None
        http_client, self._http_client = self._http_client, None
        self._session = None
        try:
            if exit_stack is not None:
                await exit_stack.aclose()
                logger.info("Closed MCP client connection")
        finally:
            if http_client is not None:
                await http_client.aclose()


SMOKE_TEST_CALLS = [
    ("get_current_time", {}),
    ("calculator", {"operation": "add", "a": 10, "b": 5}),
    ("calculator", {"operation": "multiply", "a": 7, "b": 6}),
    ("calculator", {"operation": "divide", "a": 20, "b": 4}),
    ("is_even", {"number": 42}),
    ("is_even", {"number": 17}),
]


async def run_smoke_test(url: str = DEFAULT_URL, transport: Optional[str] = None) -> List[Any]:
    """
    List the tools and call each of them once.

    Returns the decoded results in call order. Raises if the server is
    unreachable or a call comes back as an error.
    """
    results = []
    async with ToolServerClient(url, transport) as client:
        tools = await client.list_tools()
        logger.info("Available tools:")
        for tool in tools:
            logger.info(f"  - {tool.name}: {tool.description}")

        for tool_name, arguments in SMOKE_TEST_CALLS:
            result = await client.call_tool(tool_name, arguments)
            decoded = decode_result(result)
            if result.isError:
                raise RuntimeError(f"{tool_name}({arguments}) failed: {decoded}")
            logger.info(f"{tool_name}({arguments}) => {decoded}")
            results.append(decoded)

    logger.info("All tests completed successfully!")
    return results


def main() -> None:
    configure_logging("INFO")
    url = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_URL
    try:
        asyncio.run(run_smoke_test(url))
    except Exception as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
