"""
Base MCP Server Utilities

Provides shared functionality for MCP servers including:
- The ToolResult outcome type returned by tool handlers
- The dispatch boundary that turns outcomes into response envelopes
- Environment helpers used by the configuration layer
"""

import os
import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional
from abc import ABC, abstractmethod

from error_handling import ErrorCode, ToolError, get_tracer, log_error
from courtsapp_mcp.schemas import InvocationResult, TextContent, ToolDescriptor

logger = logging.getLogger("courtsapp_mcp")

_EXPECTED_FAILURES = (
    ErrorCode.UNKNOWN_TOOL,
    ErrorCode.INVALID_ARGUMENTS,
    ErrorCode.DOMAIN_PRECONDITION,
)


@dataclass
class ToolResult:
    """Outcome of a single tool call: a payload or an error, never both."""
    success: bool
    data: Any = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None

    @classmethod
    def ok(cls, data: Any) -> "ToolResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: ErrorCode, message: str) -> "ToolResult":
        return cls(success=False, error=message, error_code=code)

    def to_envelope(self) -> InvocationResult:
        """Render the outcome as the transport-facing envelope."""
        if self.success:
            return InvocationResult(
                content=[TextContent(text=json.dumps(self.data, indent=2))]
            )
        return InvocationResult(
            content=[TextContent(text=f"Error: {self.error}")],
            isError=True,
        )


class BaseMCPServer(ABC):
    """
    Base class for MCP servers.

    Subclasses describe their tools and execute them; ``invoke`` is the
    single boundary where every outcome, expected or not, becomes an
    envelope.
    """

    def __init__(self):
        self.logger = logging.getLogger(f"courtsapp_mcp.{self.name}")

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the server name."""
        pass

    @abstractmethod
    def get_tools(self) -> List[ToolDescriptor]:
        """
        Return the ordered list of tool descriptors.

        Each descriptor has:
        - name: Tool identifier
        - description: What the tool does
        - inputSchema: JSON schema for parameters
        """
        pass

    @abstractmethod
    def call_tool(self, tool_name: str, arguments: Any) -> ToolResult:
        """
        Execute a tool and return the result.

        Args:
            tool_name: The tool to execute
            arguments: Tool parameters as received from the client

        Returns:
            ToolResult with success status and data/error
        """
        pass

    def invoke(self, tool_name: str, arguments: Any = None) -> InvocationResult:
        """
        Run a tool call and always return an envelope.

        Exceptions escaping ``call_tool`` are reported as unexpected
        failures carrying the exception message.
        """
        tracer = get_tracer(__name__)
        with tracer.start_as_current_span(f"mcp.tool.{tool_name}") as span:
            span.set_attribute("mcp.tool.name", tool_name)
            try:
                result = self.call_tool(tool_name, arguments)
            except Exception as e:
                error = ToolError.from_exception(e)
                log_error(error, self.logger, extra={"tool": tool_name})
                result = ToolResult.fail(error.code, error.message)

            if result.success:
                span.set_attribute("mcp.tool.status", "success")
                self.logger.debug(f"Tool {tool_name} succeeded")
            else:
                span.set_attribute("mcp.tool.status", "error")
                span.set_attribute("mcp.tool.error", result.error or "")
                if result.error_code in _EXPECTED_FAILURES:
                    self.logger.warning(f"Tool {tool_name} failed: {result.error}")

            return result.to_envelope()


def get_env_or_default(key: str, default: str) -> str:
    """Get environment variable or return default."""
    return os.environ.get(key, default)
