"""Model execution stage: stream one model call and aggregate the result."""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

from ..types import Message, ModelResponse, ParsedToolCall

__all__ = ["ModelClient", "StreamEvent", "aggregate_streaming_events", "execute_model"]


@runtime_checkable
class StreamEvent(Protocol):
    """Protocol for streaming events; :class:`lyricpad.ai.client.AIStreamEvent` conforms."""

    type: str
    content: str | None
    tool_name: str | None
    tool_index: int | None
    tool_arguments: str | None
    arguments_delta: str | None
    tool_call_id: str | None


@runtime_checkable
class ModelClient(Protocol):
    """Anything with an ``AIClient``-compatible ``stream_chat``."""

    def stream_chat(
        self,
        messages: Sequence[Mapping[str, Any]],
        *,
        model: str | None = None,
        tools: Sequence[Mapping[str, Any]] | None = None,
        tool_choice: str | Mapping[str, Any] | None = None,
        temperature: float | None = None,
        **kwargs: Any,
    ) -> AsyncIterator[StreamEvent]:
        ...


def aggregate_streaming_events(events: Sequence[StreamEvent]) -> tuple[str, list[dict[str, Any]]]:
    """Aggregate streaming events into text content and tool call dicts.

    Returns:
        A tuple of (content_text, tool_call_dicts) where each dict has
        ``index``, ``id``, ``name`` and ``arguments``.
    """
    content_parts: list[str] = []
    final_content: str | None = None
    tool_calls_by_index: dict[int, dict[str, Any]] = {}

    def _entry(index: int) -> dict[str, Any]:
        if index not in tool_calls_by_index:
            tool_calls_by_index[index] = {"index": index, "id": "", "name": "", "arguments_parts": []}
        return tool_calls_by_index[index]

    for event in events:
        event_type = event.type
        if event_type == "content.delta":
            if event.content:
                content_parts.append(event.content)
        elif event_type == "content.done":
            final_content = event.content
        elif event_type.startswith("tool_calls."):
            entry = _entry(event.tool_index if event.tool_index is not None else 0)
            if event.tool_name:
                entry["name"] = event.tool_name
            if event.tool_call_id:
                entry["id"] = event.tool_call_id
            if event_type == "tool_calls.function.arguments.delta" and event.arguments_delta:
                entry["arguments_parts"].append(event.arguments_delta)
            elif event_type == "tool_calls.function.arguments.done" and event.tool_arguments:
                # Complete arguments win over assembled deltas.
                entry["arguments"] = event.tool_arguments

    content_text = "".join(content_parts)
    if not content_text and final_content:
        content_text = final_content

    tool_call_list: list[dict[str, Any]] = []
    for index in sorted(tool_calls_by_index):
        tc = tool_calls_by_index[index]
        if "arguments" not in tc:
            tc["arguments"] = "".join(tc["arguments_parts"])
        tc.pop("arguments_parts", None)
        tool_call_list.append(tc)

    return content_text, tool_call_list


def _tool_dicts_to_parsed(tool_dicts: Sequence[dict[str, Any]]) -> tuple[ParsedToolCall, ...]:
    results: list[ParsedToolCall] = []
    for tc in tool_dicts:
        call_id = tc.get("id") or f"call_{tc.get('index', 0)}_{uuid.uuid4().hex[:8]}"
        results.append(
            ParsedToolCall(
                call_id=call_id,
                name=tc.get("name") or "unknown",
                arguments=tc.get("arguments") or "{}",
                index=tc.get("index", 0),
            )
        )
    return tuple(results)


async def execute_model(
    messages: Sequence[Message],
    client: ModelClient,
    *,
    model: str | None = None,
    tools: Sequence[Mapping[str, Any]] | None = None,
    tool_choice: str | Mapping[str, Any] | None = None,
    temperature: float | None = None,
    **params: Any,
) -> ModelResponse:
    """Stream one model call over ``messages`` and return the aggregated response.

    Cancellation of the awaiting task propagates into ``stream_chat`` and closes
    the outbound request.
    """
    collected_events: list[StreamEvent] = []
    async for event in client.stream_chat(
        [message.to_chat_param() for message in messages],
        model=model,
        tools=tools,
        tool_choice=tool_choice,
        temperature=temperature,
        **params,
    ):
        collected_events.append(event)

    content_text, tool_call_dicts = aggregate_streaming_events(collected_events)
    return ModelResponse(
        text=content_text,
        tool_calls=_tool_dicts_to_parsed(tool_call_dicts),
        model=model,
    )
