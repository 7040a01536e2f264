"""
Unit tests for the tool catalog and the utility server dispatcher.
"""
import json
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from courtsapp_mcp.base import ToolResult
from courtsapp_mcp.catalog import list_tools
from courtsapp_mcp.utility_server import TOOL_HANDLERS, ToolName, UtilityMCPServer
from error_handling import ErrorCode


def payload_of(envelope):
    """Parse the JSON text of a successful envelope."""
    assert not envelope.is_error, envelope.text
    return json.loads(envelope.text)


class TestCatalog:
    """Tool discovery."""

    def test_lists_three_tools_in_declaration_order(self, server):
        names = [tool.name for tool in server.get_tools()]
        assert names == ["get_current_time", "calculator", "is_even"]

    def test_listing_is_stable(self, server):
        first = [tool.to_dict() for tool in server.get_tools()]
        second = [tool.to_dict() for tool in server.get_tools()]
        assert first == second
        assert [tool.to_dict() for tool in list_tools()] == first

    def test_calculator_schema(self, server):
        calculator = server.get_tools()[1].to_dict()
        schema = calculator["inputSchema"]
        assert schema["type"] == "object"
        assert schema["required"] == ["operation", "a", "b"]
        assert schema["properties"]["operation"]["enum"] == ["add", "subtract", "multiply", "divide"]
        assert schema["properties"]["a"] == {"type": "number", "description": "The first number"}

    def test_get_current_time_takes_no_input(self, server):
        schema = server.get_tools()[0].to_dict()["inputSchema"]
        assert schema == {"type": "object", "properties": {}, "required": []}

    def test_catalog_matches_handlers(self):
        assert {tool.name for tool in list_tools()} == {name.value for name in ToolName}

    def test_mismatched_handlers_are_rejected(self):
        handlers = {ToolName.CALCULATOR: TOOL_HANDLERS[ToolName.CALCULATOR]}
        with pytest.raises(RuntimeError, match="disagree"):
            UtilityMCPServer(handlers=handlers)


class TestCalculator:
    """The calculator tool."""

    @pytest.mark.parametrize("operation, a, b, expected, expression", [
        ("add", 10, 5, 15, "10 + 5 = 15"),
        ("subtract", 10, 5, 5, "10 - 5 = 5"),
        ("multiply", 7, 6, 42, "7 * 6 = 42"),
        ("divide", 20, 4, 5, "20 / 4 = 5"),
        ("divide", 7, 2, 3.5, "7 / 2 = 3.5"),
        ("add", -2.5, 1, -1.5, "-2.5 + 1 = -1.5"),
        ("subtract", 0, 3, -3, "0 - 3 = -3"),
    ])
    def test_operations(self, server, operation, a, b, expected, expression):
        data = payload_of(server.invoke("calculator", {"operation": operation, "a": a, "b": b}))
        assert data == {
            "operation": operation,
            "a": a,
            "b": b,
            "result": expected,
            "expression": expression,
        }

    def test_divide_by_zero(self, server):
        envelope = server.invoke("calculator", {"operation": "divide", "a": 5, "b": 0})
        assert envelope.is_error
        assert envelope.text == "Error: Division by zero is not allowed"

    def test_divide_by_float_zero(self, server):
        envelope = server.invoke("calculator", {"operation": "divide", "a": 5, "b": 0.0})
        assert envelope.text == "Error: Division by zero is not allowed"

    def test_unknown_operation(self, server):
        envelope = server.invoke("calculator", {"operation": "mod", "a": 5, "b": 2})
        assert envelope.is_error
        assert envelope.text == "Error: Unknown operation: mod"

    def test_non_numeric_operand(self, server):
        envelope = server.invoke("calculator", {"operation": "add", "a": "1", "b": 2})
        assert envelope.is_error
        assert envelope.text == "Error: Arguments 'a' and 'b' must be numbers"

    def test_boolean_operand_is_not_a_number(self, server):
        envelope = server.invoke("calculator", {"operation": "add", "a": True, "b": 2})
        assert envelope.is_error

    @pytest.mark.parametrize("arguments", [None, "add", 3, ["add", 1, 2]])
    def test_invalid_arguments(self, server, arguments):
        envelope = server.invoke("calculator", arguments)
        assert envelope.is_error
        assert envelope.text == "Error: Invalid arguments"

    def test_repeated_calls_give_same_result(self, server):
        arguments = {"operation": "multiply", "a": 1.1, "b": 3}
        results = {server.invoke("calculator", arguments).text for _ in range(5)}
        assert len(results) == 1


class TestIsEven:
    """The is_even tool."""

    @pytest.mark.parametrize("number, even", [
        (42, True),
        (17, False),
        (-4, True),
        (-3, False),
        (0, True),
    ])
    def test_parity(self, server, number, even):
        data = payload_of(server.invoke("is_even", {"number": number}))
        assert data == {"number": number, "isEven": even, "type": "even" if even else "odd"}

    def test_integral_float_is_accepted(self, server):
        data = payload_of(server.invoke("is_even", {"number": 4.0}))
        assert data == {"number": 4, "isEven": True, "type": "even"}

    @pytest.mark.parametrize("number", [3.5, -0.1, "4", True, None, float("nan"), float("inf")])
    def test_non_integer_is_rejected(self, server, number):
        envelope = server.invoke("is_even", {"number": number})
        assert envelope.is_error
        assert envelope.text == "Error: Input must be an integer"

    def test_missing_number(self, server):
        envelope = server.invoke("is_even", {})
        assert envelope.text == "Error: Input must be an integer"

    def test_invalid_arguments(self, server):
        envelope = server.invoke("is_even", None)
        assert envelope.text == "Error: Invalid arguments"


class TestGetCurrentTime:
    """The get_current_time tool."""

    def test_payload_fields(self, server):
        data = payload_of(server.invoke("get_current_time", {}))
        assert set(data) == {"timestamp", "formatted", "unix"}
        assert data["timestamp"].endswith("Z")
        assert isinstance(data["unix"], int)
        assert isinstance(data["formatted"], str) and data["formatted"]

    def test_timestamp_and_unix_describe_the_same_instant(self, server):
        fixed = datetime(2024, 3, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)
        with patch("courtsapp_mcp.utility_server._utc_now", return_value=fixed):
            data = payload_of(server.invoke("get_current_time", {}))
        assert data["timestamp"] == "2024-03-01T12:30:45.123Z"
        assert data["unix"] == 1709296245123

    def test_unix_is_non_decreasing(self, server):
        first = payload_of(server.invoke("get_current_time", {}))["unix"]
        second = payload_of(server.invoke("get_current_time", {}))["unix"]
        assert second >= first

    def test_arguments_are_ignored(self, server):
        assert not server.invoke("get_current_time", None).is_error
        assert not server.invoke("get_current_time").is_error


class TestDispatch:
    """Envelope shaping and failure conversion."""

    def test_unknown_tool(self, server):
        envelope = server.invoke("launch_rocket", {})
        assert envelope.is_error
        assert envelope.text == "Error: Unknown tool: launch_rocket"

    def test_success_envelope_shape(self, server):
        envelope = server.invoke("is_even", {"number": 2})
        body = envelope.to_dict()
        assert "isError" not in body
        assert body["content"][0]["type"] == "text"
        assert body["content"][0]["text"] == json.dumps(
            {"number": 2, "isEven": True, "type": "even"}, indent=2
        )

    def test_failure_envelope_shape(self, server):
        body = server.invoke("is_even", {"number": 1.5}).to_dict()
        assert body == {
            "content": [{"type": "text", "text": "Error: Input must be an integer"}],
            "isError": True,
        }

    def test_unexpected_exception_becomes_failure(self):
        def explode(arguments):
            raise ValueError("sensor offline")

        handlers = dict(TOOL_HANDLERS)
        handlers[ToolName.IS_EVEN] = (explode, True)
        envelope = UtilityMCPServer(handlers=handlers).invoke("is_even", {"number": 2})
        assert envelope.is_error
        assert envelope.text == "Error: sensor offline"

    def test_exception_without_message_falls_back_to_repr(self):
        def explode(arguments):
            raise RuntimeError()

        handlers = dict(TOOL_HANDLERS)
        handlers[ToolName.IS_EVEN] = (explode, True)
        envelope = UtilityMCPServer(handlers=handlers).invoke("is_even", {"number": 2})
        assert envelope.text == "Error: RuntimeError()"

    def test_call_tool_returns_result_codes(self, server):
        assert server.call_tool("nope", {}).error_code == ErrorCode.UNKNOWN_TOOL
        assert server.call_tool("calculator", None).error_code == ErrorCode.INVALID_ARGUMENTS
        assert server.call_tool("is_even", {"number": 0.5}).error_code == ErrorCode.DOMAIN_PRECONDITION


class TestToolResult:
    """The ToolResult outcome type."""

    def test_ok_envelope(self):
        envelope = ToolResult.ok({"x": 1}).to_envelope()
        assert envelope.text == '{\n  "x": 1\n}'
        assert not envelope.is_error

    def test_fail_envelope_drops_the_code(self):
        envelope = ToolResult.fail(ErrorCode.UNKNOWN_TOOL, "Unknown tool: x").to_envelope()
        assert envelope.text == "Error: Unknown tool: x"
        assert envelope.is_error
