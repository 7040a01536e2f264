"""
CourtsApp MCP Server entry point

Serves the utility tools over MCP (SSE and/or Streamable HTTP) plus the
health and JSON endpoints.

Run:
  python main_http.py
  # or
  uvicorn main_http:app --port 3000

Configuration comes from environment variables or a .env file; see
courtsapp_mcp.config.ServerConfig.
"""
import logging

import uvicorn

from courtsapp_mcp import ServerConfig, UtilityMCPServer
from courtsapp_mcp.http_app import create_mcp_http_app
from error_handling import configure_logging

config = ServerConfig.from_env()
configure_logging(config.log_level)

logger = logging.getLogger("courtsapp_mcp")

app = create_mcp_http_app(UtilityMCPServer(), config)


def main() -> None:
    """Start the HTTP server."""
    try:
        uvicorn.run(
            app,
            host=config.host,
            port=config.port,
            log_level=config.log_level.lower(),
        )
    except Exception:
        logger.exception("Fatal error in main()")
        raise


if __name__ == "__main__":
    main()
