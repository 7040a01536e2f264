"""
Static tool catalog.

Declaration order is the order clients see; it is not sorted.
"""

from typing import List

from courtsapp_mcp.schemas import InputSchema, ParameterSpec, ToolDescriptor

CALCULATOR_OPERATIONS = ["add", "subtract", "multiply", "divide"]

TOOL_CATALOG = (
    ToolDescriptor(
        name="get_current_time",
        description="Get the current date and time in ISO format",
        inputSchema=InputSchema(properties={}, required=[]),
    ),
    ToolDescriptor(
        name="calculator",
        description="Perform basic arithmetic operations (add, subtract, multiply, divide)",
        inputSchema=InputSchema(
            properties={
                "operation": ParameterSpec(
                    type="string",
                    description="The operation to perform: add, subtract, multiply, or divide",
                    enum=CALCULATOR_OPERATIONS,
                ),
                "a": ParameterSpec(type="number", description="The first number"),
                "b": ParameterSpec(type="number", description="The second number"),
            },
            required=["operation", "a", "b"],
        ),
    ),
    ToolDescriptor(
        name="is_even",
        description="Check if a number is even (returns true) or odd (returns false)",
        inputSchema=InputSchema(
            properties={
                "number": ParameterSpec(type="number", description="The number to check"),
            },
            required=["number"],
        ),
    ),
)


def list_tools() -> List[ToolDescriptor]:
    """Return every tool descriptor in declaration order."""
    return [descriptor.model_copy(deep=True) for descriptor in TOOL_CATALOG]
