"""
CourtsApp MCP Server

A Model Context Protocol server exposing a small set of utility tools:

- get_current_time: current date and time
- calculator: basic arithmetic (add, subtract, multiply, divide)
- is_even: integer parity check
"""

from courtsapp_mcp.base import BaseMCPServer, ToolResult
from courtsapp_mcp.config import ServerConfig
from courtsapp_mcp.utility_server import UtilityMCPServer, ToolName

__all__ = [
    "BaseMCPServer",
    "ToolResult",
    "ServerConfig",
    "UtilityMCPServer",
    "ToolName",
]
