"""Shared test helpers and stub classes.

Import from here instead of duplicating these classes in individual test files.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Sequence

from lyricpad.ai.client import AIStreamEvent
from lyricpad.ai.tools import SEARCH_LYRICS_TOOL, ToolSpec


class SteppingClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


def text_events(text: str) -> list[AIStreamEvent]:
    """Events of a streamed plain-text answer, split into two deltas."""
    middle = len(text) // 2
    return [
        AIStreamEvent(type="content.delta", content=text[:middle]),
        AIStreamEvent(type="content.delta", content=text[middle:]),
        AIStreamEvent(type="content.done", content=text),
    ]


def tool_call_events(name: str, arguments: Mapping[str, Any], *, call_id: str, index: int = 0) -> list[AIStreamEvent]:
    """Events of one streamed tool call, id first as the raw chunks deliver it."""
    payload = json.dumps(arguments)
    return [
        AIStreamEvent(type="tool_calls.id", tool_index=index, tool_call_id=call_id),
        AIStreamEvent(
            type="tool_calls.function.arguments.delta",
            tool_name=name,
            tool_index=index,
            arguments_delta=payload[:5],
        ),
        AIStreamEvent(
            type="tool_calls.function.arguments.done",
            tool_name=name,
            tool_index=index,
            tool_arguments=payload,
        ),
    ]


class ScriptedModelClient:
    """Model client stub replaying one scripted event list per call.

    Every call's messages and keyword arguments are recorded in ``calls``.
    """

    def __init__(self, *turns: Sequence[AIStreamEvent]) -> None:
        self._turns = [list(turn) for turn in turns]
        self.calls: list[dict[str, Any]] = []

    async def stream_chat(self, messages: Sequence[Mapping[str, Any]], **kwargs: Any):
        self.calls.append({"messages": [dict(message) for message in messages], **kwargs})
        if not self._turns:
            raise AssertionError("Unexpected model call")
        for event in self._turns.pop(0):
            yield event


class StubLyricsTool:
    """``search_lyrics`` stand-in returning canned text per artist."""

    def __init__(self, results: Mapping[str, str] | None = None, *, default: str = "No lyrics found.") -> None:
        self._results = dict(results or {})
        self._default = default
        self.calls: list[dict[str, Any]] = []

    @property
    def name(self) -> str:
        return SEARCH_LYRICS_TOOL.name

    @property
    def spec(self) -> ToolSpec:
        return SEARCH_LYRICS_TOOL

    async def execute(self, arguments: Mapping[str, Any]) -> str:
        self.calls.append(dict(arguments))
        return self._results.get(str(arguments.get("artist")), self._default)


class StaticBackend:
    """Suggestion backend answering every request with fixed values."""

    def __init__(
        self,
        suggestion: str = "",
        enriched: str = "",
        *,
        error: BaseException | None = None,
    ) -> None:
        self.suggestion = suggestion
        self.enriched = enriched
        self.error = error
        self.suggest_calls: list[tuple[str, str | None]] = []
        self.enrich_calls: list[str] = []

    async def suggest(self, content: str, inspiration: str | None = None) -> str:
        self.suggest_calls.append((content, inspiration))
        if self.error is not None:
            raise self.error
        return self.suggestion

    async def enrich(self, inspiration: str) -> str:
        self.enrich_calls.append(inspiration)
        if self.error is not None:
            raise self.error
        return self.enriched


class ControlledBackend:
    """Suggestion backend whose answers the test resolves by hand."""

    def __init__(self) -> None:
        self.pending: list[tuple[str, asyncio.Future[str]]] = []

    async def suggest(self, content: str, inspiration: str | None = None) -> str:
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self.pending.append((content, future))
        return await future

    async def enrich(self, inspiration: str) -> str:
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self.pending.append((inspiration, future))
        return await future
