"""Message and response types shared by the orchestrators.

All types are frozen so a conversation can be extended by building new tuples
instead of mutating shared state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Sequence

from openai.types.chat import ChatCompletionMessageParam

__all__ = ["Message", "MessageRole", "ParsedToolCall", "ModelResponse"]

MessageRole = Literal["system", "user", "assistant", "tool"]


@dataclass(slots=True, frozen=True)
class Message:
    """Immutable chat message; one turn of a request-scoped conversation.

    Attributes:
        role: The role of the message sender.
        content: The text content of the message.
        name: Optional name for tool messages.
        tool_call_id: ID linking a tool result to its call.
        tool_calls: Tool calls requested by the assistant.
        metadata: Additional metadata (not sent to the model).
    """

    role: MessageRole
    content: str
    name: str | None = None
    tool_call_id: str | None = None
    tool_calls: tuple[Mapping[str, Any], ...] | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def to_chat_param(self) -> ChatCompletionMessageParam:
        """Convert to OpenAI's ChatCompletionMessageParam format."""
        payload: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.name is not None and self.role != "tool":
            payload["name"] = self.name
        if self.tool_call_id is not None:
            payload["tool_call_id"] = self.tool_call_id
        if self.tool_calls is not None:
            payload["tool_calls"] = list(self.tool_calls)
        return payload  # type: ignore[return-value]

    @classmethod
    def system(cls, content: str, **metadata: Any) -> Message:
        return cls(role="system", content=content, metadata=metadata)

    @classmethod
    def user(cls, content: str, **metadata: Any) -> Message:
        return cls(role="user", content=content, metadata=metadata)

    @classmethod
    def assistant(
        cls,
        content: str,
        tool_calls: Sequence[Mapping[str, Any]] | None = None,
        **metadata: Any,
    ) -> Message:
        return cls(
            role="assistant",
            content=content,
            tool_calls=tuple(tool_calls) if tool_calls else None,
            metadata=metadata,
        )

    @classmethod
    def tool(
        cls,
        content: str,
        tool_call_id: str,
        name: str | None = None,
        **metadata: Any,
    ) -> Message:
        return cls(
            role="tool",
            content=content,
            tool_call_id=tool_call_id,
            name=name,
            metadata=metadata,
        )


@dataclass(slots=True, frozen=True)
class ParsedToolCall:
    """A tool call requested by the model.

    Attributes:
        call_id: Unique identifier for this call.
        name: Name of the tool to call.
        arguments: Arguments as a JSON string.
        index: Position in the tool_calls array.
    """

    call_id: str
    name: str
    arguments: str
    index: int = 0


@dataclass(slots=True, frozen=True)
class ModelResponse:
    """Text and tool calls aggregated from one streamed model call."""

    text: str
    tool_calls: tuple[ParsedToolCall, ...] = ()
    model: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.tool_calls, tuple):
            object.__setattr__(self, "tool_calls", tuple(self.tool_calls))

    @property
    def has_tool_calls(self) -> bool:
        return len(self.tool_calls) > 0

    def to_message(self) -> Message:
        """Convert the response to the assistant turn that requested its tool calls."""
        tool_calls_data = None
        if self.tool_calls:
            tool_calls_data = tuple(
                {
                    "id": tc.call_id,
                    "type": "function",
                    "function": {"name": tc.name, "arguments": tc.arguments},
                }
                for tc in self.tool_calls
            )
        return Message.assistant(self.text, tool_calls=tool_calls_data)
