"""
Utility MCP Server

Provides tools for:
- Reading the current date and time
- Basic arithmetic on two numbers
- Checking whether an integer is even or odd
"""

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from error_handling import ErrorCode
from courtsapp_mcp.base import BaseMCPServer, ToolResult
from courtsapp_mcp.catalog import list_tools
from courtsapp_mcp.schemas import ToolDescriptor

logger = logging.getLogger("courtsapp_mcp.utility")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Integral floats below this print without an exponent in JSON clients
_PLAIN_INTEGER_LIMIT = 1e21

OPERATION_SYMBOLS = {
    "add": "+",
    "subtract": "-",
    "multiply": "*",
    "divide": "/",
}


class ToolName(str, Enum):
    GET_CURRENT_TIME = "get_current_time"
    CALCULATOR = "calculator"
    IS_EVEN = "is_even"

    @classmethod
    def resolve(cls, name: Any) -> Optional["ToolName"]:
        try:
            return cls(name)
        except ValueError:
            return None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _normalize_number(value):
    """Collapse integral floats to ints so 20 / 4 reports 5, not 5.0."""
    if isinstance(value, float) and value.is_integer() and abs(value) < _PLAIN_INTEGER_LIMIT:
        return int(value)
    return value


def _format_number(value) -> str:
    return str(_normalize_number(value))


def get_current_time(arguments: Any = None) -> ToolResult:
    now = _utc_now()
    return ToolResult.ok({
        "timestamp": now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "formatted": now.astimezone().strftime("%m/%d/%Y, %I:%M:%S %p"),
        "unix": (now - _EPOCH) // timedelta(milliseconds=1),
    })


def calculator(arguments: Mapping[str, Any]) -> ToolResult:
    operation = arguments.get("operation")
    a = arguments.get("a")
    b = arguments.get("b")

    if operation not in OPERATION_SYMBOLS:
        return ToolResult.fail(ErrorCode.DOMAIN_PRECONDITION, f"Unknown operation: {operation}")
    if not (_is_number(a) and _is_number(b)):
        return ToolResult.fail(ErrorCode.INVALID_ARGUMENTS, "Arguments 'a' and 'b' must be numbers")

    if operation == "add":
        result = a + b
    elif operation == "subtract":
        result = a - b
    elif operation == "multiply":
        result = a * b
    else:
        if b == 0:
            return ToolResult.fail(ErrorCode.DOMAIN_PRECONDITION, "Division by zero is not allowed")
        result = a / b

    a, b, result = _normalize_number(a), _normalize_number(b), _normalize_number(result)
    return ToolResult.ok({
        "operation": operation,
        "a": a,
        "b": b,
        "result": result,
        "expression": (
            f"{_format_number(a)} {OPERATION_SYMBOLS[operation]} "
            f"{_format_number(b)} = {_format_number(result)}"
        ),
    })


def is_even(arguments: Mapping[str, Any]) -> ToolResult:
    number = arguments.get("number")

    # Parity only makes sense once the value is known to be whole
    if not _is_number(number) or (isinstance(number, float) and not number.is_integer()):
        return ToolResult.fail(ErrorCode.DOMAIN_PRECONDITION, "Input must be an integer")

    number = _normalize_number(number)
    even = int(number) % 2 == 0
    return ToolResult.ok({
        "number": number,
        "isEven": even,
        "type": "even" if even else "odd",
    })


# (handler, needs an argument mapping)
TOOL_HANDLERS: Dict[ToolName, tuple] = {
    ToolName.GET_CURRENT_TIME: (get_current_time, False),
    ToolName.CALCULATOR: (calculator, True),
    ToolName.IS_EVEN: (is_even, True),
}


class UtilityMCPServer(BaseMCPServer):
    """MCP Server for the time, calculator and parity tools."""

    def __init__(self, handlers: Optional[Dict[ToolName, tuple]] = None):
        super().__init__()
        self._handlers = dict(handlers or TOOL_HANDLERS)
        self._tools = list_tools()

        catalog_names = {tool.name for tool in self._tools}
        handler_names = {tool_name.value for tool_name in self._handlers}
        if catalog_names != handler_names:
            raise RuntimeError(
                f"Tool catalog and handlers disagree: {sorted(catalog_names ^ handler_names)}"
            )

    @property
    def name(self) -> str:
        return "utility"

    def get_tools(self) -> List[ToolDescriptor]:
        """Return tool definitions for this server."""
        return self._tools

    def call_tool(self, tool_name: str, arguments: Any) -> ToolResult:
        """Execute a tool and return the result."""
        tool = ToolName.resolve(tool_name)
        if tool is None:
            return ToolResult.fail(ErrorCode.UNKNOWN_TOOL, f"Unknown tool: {tool_name}")

        handler: Callable[..., ToolResult]
        handler, needs_arguments = self._handlers[tool]
        if needs_arguments and not isinstance(arguments, Mapping):
            return ToolResult.fail(ErrorCode.INVALID_ARGUMENTS, "Invalid arguments")

        logger.debug(f"Dispatching {tool.value}")
        return handler(arguments)
