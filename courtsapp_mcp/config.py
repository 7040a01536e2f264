"""
Server configuration.

Values come from the environment (optionally a .env file) so the same code
runs locally, in containers and under test.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from courtsapp_mcp.base import get_env_or_default

SERVER_NAME = "courtsapp-mcp-server"
SERVER_VERSION = "1.0.0"

TRANSPORT_SSE = "sse"
TRANSPORT_STREAMABLE_HTTP = "streamable-http"
TRANSPORT_BOTH = "both"
TRANSPORT_MODES = (TRANSPORT_SSE, TRANSPORT_STREAMABLE_HTTP, TRANSPORT_BOTH)


def _env_flag(key: str, default: bool) -> bool:
    return get_env_or_default(key, "true" if default else "false").lower() in ("1", "true", "yes", "on")


@dataclass
class ServerConfig:
    """Runtime settings for the HTTP server and its transports."""
    host: str = "0.0.0.0"
    port: int = 3000
    server_name: str = SERVER_NAME
    server_version: str = SERVER_VERSION
    transport: str = TRANSPORT_BOTH
    stateless_http: bool = False
    json_response: bool = False
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    environment: str = "development"
    enable_tracing: bool = False
    otlp_endpoint: Optional[str] = None

    def __post_init__(self):
        if self.transport not in TRANSPORT_MODES:
            raise ValueError(
                f"Unknown transport '{self.transport}', expected one of {', '.join(TRANSPORT_MODES)}"
            )
        if not 0 < self.port < 65536:
            raise ValueError(f"Port out of range: {self.port}")

    @property
    def sse_enabled(self) -> bool:
        return self.transport in (TRANSPORT_SSE, TRANSPORT_BOTH)

    @property
    def streamable_http_enabled(self) -> bool:
        return self.transport in (TRANSPORT_STREAMABLE_HTTP, TRANSPORT_BOTH)

    @property
    def transports(self) -> Tuple[str, ...]:
        enabled = []
        if self.sse_enabled:
            enabled.append(TRANSPORT_SSE)
        if self.streamable_http_enabled:
            enabled.append(TRANSPORT_STREAMABLE_HTTP)
        return tuple(enabled)

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "ServerConfig":
        """Build a config from environment variables."""
        if load_dotenv_file:
            load_dotenv()

        port = get_env_or_default("PORT", "3000")
        try:
            port_number = int(port)
        except ValueError:
            raise ValueError(f"PORT must be an integer, got '{port}'") from None

        origins = [
            origin.strip()
            for origin in get_env_or_default("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]

        return cls(
            host=get_env_or_default("HOST", "0.0.0.0"),
            port=port_number,
            server_name=get_env_or_default("MCP_SERVER_NAME", SERVER_NAME),
            transport=get_env_or_default("MCP_TRANSPORT", TRANSPORT_BOTH).lower(),
            stateless_http=_env_flag("MCP_STATELESS_HTTP", False),
            json_response=_env_flag("MCP_JSON_RESPONSE", False),
            cors_origins=origins or ["*"],
            log_level=get_env_or_default("LOG_LEVEL", "INFO").upper(),
            environment=get_env_or_default("ENVIRONMENT", "development"),
            enable_tracing=_env_flag("ENABLE_TRACING", False),
            otlp_endpoint=get_env_or_default("OTEL_EXPORTER_OTLP_ENDPOINT", "") or None,
        )
