"""Tests for OpenTelemetry spans around tool dispatch."""
from unittest.mock import MagicMock, Mock, patch

import pytest


@pytest.fixture
def mock_tracer():
    tracer = MagicMock()
    span = MagicMock()
    tracer.start_as_current_span.return_value.__enter__ = Mock(return_value=span)
    tracer.start_as_current_span.return_value.__exit__ = Mock(return_value=False)
    tracer.span = span
    return tracer


def _attributes(span):
    return {call[0][0]: call[0][1] for call in span.set_attribute.call_args_list}


def test_invoke_creates_span(server, mock_tracer):
    """Test that invoke creates a span named after the tool."""
    with patch("courtsapp_mcp.base.get_tracer", return_value=mock_tracer):
        server.invoke("is_even", {"number": 2})

    mock_tracer.start_as_current_span.assert_called_once_with("mcp.tool.is_even")
    attributes = _attributes(mock_tracer.span)
    assert attributes["mcp.tool.name"] == "is_even"
    assert attributes["mcp.tool.status"] == "success"
    assert "mcp.tool.error" not in attributes


def test_failed_invoke_marks_span(server, mock_tracer):
    """Test that failures set error status and message."""
    with patch("courtsapp_mcp.base.get_tracer", return_value=mock_tracer):
        envelope = server.invoke("calculator", {"operation": "divide", "a": 1, "b": 0})

    assert envelope.is_error
    attributes = _attributes(mock_tracer.span)
    assert attributes["mcp.tool.status"] == "error"
    assert attributes["mcp.tool.error"] == "Division by zero is not allowed"


def test_setup_tracing_returns_tracer():
    from error_handling import setup_tracing

    with patch("error_handling.tracing.trace.set_tracer_provider") as set_provider:
        tracer = setup_tracing(service_name="courtsapp-test", otlp_endpoint=None)

    set_provider.assert_called_once()
    assert tracer is not None
