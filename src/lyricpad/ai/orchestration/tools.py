"""Tool stage: run the tool calls of a model response and build tool messages."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

from ..types import Message, ModelResponse, ParsedToolCall

__all__ = [
    "ToolExecutor",
    "ToolExecutionResult",
    "execute_tools",
    "execute_tool_call",
    "append_tool_results",
    "format_tool_result_content",
    "parse_tool_arguments",
]

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ToolExecutionResult:
    """Result from executing a single tool call.

    Attributes:
        call_id: The ID of the tool call.
        name: Name of the tool that was called.
        success: Whether execution succeeded.
        result: The result text sent back to the model.
        error: Error message if failed.
        duration_ms: Execution time in milliseconds.
    """

    call_id: str
    name: str
    success: bool
    result: str
    error: str | None = None
    duration_ms: float = 0.0

    @classmethod
    def from_success(cls, call_id: str, name: str, result: Any, duration_ms: float = 0.0) -> ToolExecutionResult:
        return cls(
            call_id=call_id,
            name=name,
            success=True,
            result=format_tool_result_content(result),
            duration_ms=duration_ms,
        )

    @classmethod
    def from_error(cls, call_id: str, name: str, error: str, duration_ms: float = 0.0) -> ToolExecutionResult:
        return cls(
            call_id=call_id,
            name=name,
            success=False,
            result=f"Error: {error}",
            error=error,
            duration_ms=duration_ms,
        )

    def to_message(self) -> Message:
        return Message.tool(content=self.result, tool_call_id=self.call_id, name=self.name)


@runtime_checkable
class ToolExecutor(Protocol):
    """Runs a tool by name; :class:`lyricpad.ai.tools.ToolRegistry` conforms."""

    async def execute(self, name: str, arguments: Mapping[str, Any], *, call_id: str = "") -> Any:
        ...


def format_tool_result_content(result: Any) -> str:
    """Format a tool result for inclusion in a message."""
    if result is None:
        return "null"
    if isinstance(result, str):
        return result
    if isinstance(result, bool):
        return "true" if result else "false"
    if isinstance(result, (int, float)):
        return str(result)
    if isinstance(result, (dict, list)):
        try:
            return json.dumps(result, ensure_ascii=False, indent=2)
        except (TypeError, ValueError):
            return str(result)
    return str(result)


def parse_tool_arguments(arguments: str) -> dict[str, Any]:
    """Parse tool arguments from a JSON string.

    Raises:
        ValueError: If arguments are not a JSON object.
    """
    if not arguments or arguments.strip() in ("", "{}"):
        return {}
    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in tool arguments: {e}") from e
    if not isinstance(parsed, dict):
        raise ValueError(f"Arguments must be a JSON object, got {type(parsed).__name__}")
    return parsed


async def execute_tool_call(call: ParsedToolCall, executor: ToolExecutor) -> ToolExecutionResult:
    """Execute a single tool call, converting failures into error results.

    ``asyncio.CancelledError`` is not an ``Exception`` and propagates.
    """
    start_time = time.perf_counter()

    try:
        arguments = parse_tool_arguments(call.arguments)
    except ValueError as e:
        LOGGER.warning("Failed to parse arguments for tool %s: %s", call.name, e)
        return ToolExecutionResult.from_error(
            call_id=call.call_id,
            name=call.name,
            error=f"Invalid arguments: {e}",
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )

    try:
        raw_result = await executor.execute(call.name, arguments, call_id=call.call_id)
    except Exception as e:
        error_msg = str(e) or type(e).__name__
        LOGGER.warning("Tool %s failed: %s", call.name, error_msg)
        return ToolExecutionResult.from_error(
            call_id=call.call_id,
            name=call.name,
            error=error_msg,
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )

    return ToolExecutionResult.from_success(
        call_id=call.call_id,
        name=call.name,
        result=raw_result,
        duration_ms=(time.perf_counter() - start_time) * 1000,
    )


async def execute_tools(response: ModelResponse, executor: ToolExecutor) -> tuple[ToolExecutionResult, ...]:
    """Run every tool call of ``response`` concurrently; results keep the call order."""
    if not response.has_tool_calls:
        return ()
    return tuple(await asyncio.gather(*(execute_tool_call(call, executor) for call in response.tool_calls)))


def append_tool_results(
    messages: Sequence[Message],
    response: ModelResponse,
    results: Sequence[ToolExecutionResult],
) -> tuple[Message, ...]:
    """Append the assistant turn that requested the calls plus one tool message per call."""
    if not response.has_tool_calls:
        if response.text:
            return tuple(messages) + (response.to_message(),)
        return tuple(messages)
    return tuple(messages) + (response.to_message(),) + tuple(result.to_message() for result in results)
