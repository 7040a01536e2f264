"""
Wire shapes shared by the catalog, the dispatcher and the HTTP surface.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class ParameterSpec(BaseModel):
    """One declared tool parameter."""
    type: str
    description: str
    enum: Optional[List[str]] = None


class InputSchema(BaseModel):
    """JSON-Schema-like input contract of a tool."""
    type: Literal["object"] = "object"
    properties: Dict[str, ParameterSpec] = Field(default_factory=dict)
    required: List[str] = Field(default_factory=list)


class ToolDescriptor(BaseModel):
    """Discovery entry for one tool."""
    name: str
    description: str
    inputSchema: InputSchema

    def to_dict(self) -> Dict[str, Any]:
        # enum is omitted rather than sent as null
        return self.model_dump(exclude_none=True)


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class InvocationRequest(BaseModel):
    """Body of a tool call: tool name plus an untyped argument bag."""
    name: str
    arguments: Any = None


class InvocationResult(BaseModel):
    """
    Envelope returned for every tool call.

    Success and failure share the same shape; only ``isError`` and the text
    differ. ``isError`` is left out of the serialized form on success.
    """
    content: List[TextContent]
    isError: Optional[bool] = None

    @property
    def is_error(self) -> bool:
        return bool(self.isError)

    @property
    def text(self) -> str:
        return self.content[0].text

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ToolList(BaseModel):
    tools: List[ToolDescriptor]


class HealthStatus(BaseModel):
    status: str
    service: str
    version: str
    transports: List[str]
