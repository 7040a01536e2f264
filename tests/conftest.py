"""
Pytest configuration and fixtures for the CourtsApp MCP server tests

Provides fixtures to:
1. Build a fresh tool server per test
2. Build the ASGI application around it
3. Wrap the application in a FastAPI TestClient
4. Serve the application with uvicorn on a free local port
"""
import socket
import sys
import threading
import time
from pathlib import Path

import httpx
import pytest
import uvicorn
from fastapi.testclient import TestClient

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from courtsapp_mcp import ServerConfig, UtilityMCPServer
from courtsapp_mcp.http_app import create_mcp_http_app


@pytest.fixture
def server():
    """Provide a fresh utility tool server."""
    return UtilityMCPServer()


@pytest.fixture
def config():
    """Provide default server settings."""
    return ServerConfig()


@pytest.fixture
def app(server, config):
    """Provide the complete ASGI application."""
    return create_mcp_http_app(server, config)


@pytest.fixture
def client(app):
    """
    Create a test client for the application.

    Used without a context manager so the MCP session manager is not started;
    the JSON endpoints do not need it.
    """
    return TestClient(app)


def _unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def wait_for_server(server: uvicorn.Server, base_url: str, timeout: float = 10.0) -> None:
    """Wait until uvicorn is listening and /health answers."""
    deadline = time.monotonic() + timeout
    while not server.started:
        if time.monotonic() > deadline:
            raise RuntimeError(f"Server at {base_url} failed to start")
        time.sleep(0.05)

    response = httpx.get(f"{base_url}/health", timeout=5.0)
    response.raise_for_status()


@pytest.fixture
def free_port():
    """A local port with nothing listening on it."""
    return _unused_port()


@pytest.fixture
def live_server():
    """
    Start the application under uvicorn in a background thread.

    Returns a factory taking ServerConfig overrides and returning the base
    URL. Every server started by the test is stopped afterwards.
    """
    running = []

    def start(**overrides) -> str:
        port = _unused_port()
        config = ServerConfig(host="127.0.0.1", port=port, **overrides)
        app = create_mcp_http_app(UtilityMCPServer(), config)

        server = uvicorn.Server(uvicorn.Config(
            app,
            host=config.host,
            port=port,
            log_level="warning",
            timeout_graceful_shutdown=5,
        ))
        thread = threading.Thread(target=server.run, daemon=True)
        thread.start()
        running.append((server, thread))

        base_url = f"http://127.0.0.1:{port}"
        wait_for_server(server, base_url)
        return base_url

    yield start

    for server, thread in running:
        server.should_exit = True
        thread.join(timeout=10)
