"""Tool interface types for the inspiration tool loop."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, runtime_checkable

__all__ = ["ToolSpec", "Tool"]


@dataclass(slots=True, frozen=True)
class ToolSpec:
    """Specification for a tool's interface.

    Attributes:
        name: Unique identifier for the tool.
        description: Human-readable description of what the tool does.
        parameters: JSON Schema for the tool's parameters.
        strict: Whether the model must follow the schema exactly.
    """

    name: str
    description: str
    parameters: Mapping[str, Any] = field(default_factory=dict)
    strict: bool = True

    def to_openai_tool(self) -> dict[str, Any]:
        """Convert to OpenAI tool definition format."""
        parameters = dict(self.parameters) if self.parameters else {
            "type": "object",
            "properties": {},
            "additionalProperties": False,
        }
        function: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "parameters": parameters,
        }
        if self.strict:
            function["strict"] = True
        return {"type": "function", "function": function}


@runtime_checkable
class Tool(Protocol):
    """Protocol for tool implementations."""

    @property
    def name(self) -> str:
        ...

    @property
    def spec(self) -> ToolSpec:
        ...

    async def execute(self, arguments: Mapping[str, Any]) -> Any:
        """Execute the tool with already-parsed arguments."""
        ...
