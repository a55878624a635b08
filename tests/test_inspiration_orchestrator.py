"""Tests for the inspiration tool loop."""

from __future__ import annotations

import asyncio

import pytest

from lyricpad.ai.orchestration import InspirationOrchestrator, InspirationPhase
from lyricpad.ai.tools import NO_LYRICS_FOUND, ToolRegistry
from lyricpad.errors import ConfigurationError, GenerationError
from lyricpad.services.settings import Settings

from tests.helpers import ScriptedModelClient, StubLyricsTool, text_events, tool_call_events

BRYSON_LYRICS = '### Lyrics from "Exchange" by Bryson Tiller\n\nI been out of touch'
ELABORATION = "Bryson Tiller blends moody R&B with trap-soul production."


def _settings(**overrides) -> Settings:
    return Settings(openai_api_key="sk-test", genius_access_token="genius", **overrides)


def _orchestrator(client: ScriptedModelClient, tool: StubLyricsTool, **overrides) -> InspirationOrchestrator:
    return InspirationOrchestrator(_settings(**overrides), client=client, tools=ToolRegistry([tool]))


@pytest.mark.asyncio
async def test_tool_loop_appends_found_lyrics_after_elaboration() -> None:
    tool = StubLyricsTool({"Bryson Tiller": BRYSON_LYRICS})
    client = ScriptedModelClient(
        tool_call_events("search_lyrics", {"artist": "Bryson Tiller"}, call_id="call_1"),
        text_events(ELABORATION),
    )
    orchestrator = _orchestrator(client, tool, inspiration_model="gpt-big", final_model="gpt-small")

    result = await orchestrator.enrich("Bryson Tiller")

    assert result == f"{ELABORATION}\n\n{BRYSON_LYRICS}"
    assert tool.calls == [{"artist": "Bryson Tiller"}]

    first, final = client.calls
    assert first["model"] == "gpt-big"
    assert [spec["function"]["name"] for spec in first["tools"]] == ["search_lyrics"]
    assert first["messages"][1]["content"] == "Inspiration:\n\nBryson Tiller\n\nAdditional inspiration context:"

    assert final["model"] == "gpt-small"
    assert final["tools"] is None
    assistant, tool_message = final["messages"][-2:]
    assert assistant["role"] == "assistant"
    assert assistant["tool_calls"][0]["id"] == "call_1"
    assert tool_message == {"role": "tool", "content": BRYSON_LYRICS, "tool_call_id": "call_1"}


@pytest.mark.asyncio
async def test_tool_loop_keeps_not_found_placeholder() -> None:
    tool = StubLyricsTool()
    client = ScriptedModelClient(
        tool_call_events("search_lyrics", {"artist": "Bryson Tiller"}, call_id="call_1"),
        text_events(ELABORATION),
    )

    result = await _orchestrator(client, tool).enrich("Bryson Tiller")

    assert result == f"{ELABORATION}\n\n{NO_LYRICS_FOUND}"


@pytest.mark.asyncio
async def test_parallel_tool_calls_are_all_appended_in_call_order() -> None:
    tool = StubLyricsTool({"A": "lyrics A", "B": "lyrics B"})
    client = ScriptedModelClient(
        [
            *tool_call_events("search_lyrics", {"artist": "A"}, call_id="call_a", index=0),
            *tool_call_events("search_lyrics", {"artist": "B"}, call_id="call_b", index=1),
        ],
        text_events("Two artists."),
    )

    result = await _orchestrator(client, tool).enrich("A meets B")

    assert result == "Two artists.\n\nlyrics A\n\nlyrics B"
    tool_messages = [message for message in client.calls[1]["messages"] if message["role"] == "tool"]
    assert [message["tool_call_id"] for message in tool_messages] == ["call_a", "call_b"]


@pytest.mark.asyncio
async def test_no_tool_call_returns_first_answer() -> None:
    tool = StubLyricsTool()
    client = ScriptedModelClient(text_events("  Rainy city nights, slow tempo.  "))

    result = await _orchestrator(client, tool).enrich("rainy city")

    assert result == "Rainy city nights, slow tempo."
    assert len(client.calls) == 1
    assert tool.calls == []


@pytest.mark.asyncio
async def test_unknown_tool_result_is_not_treated_as_lyrics() -> None:
    client = ScriptedModelClient(
        tool_call_events("fetch_weather", {"city": "Paris"}, call_id="call_x"),
        text_events(ELABORATION),
    )

    result = await _orchestrator(client, StubLyricsTool()).enrich("Paris")

    assert result == ELABORATION
    tool_message = client.calls[1]["messages"][-1]
    assert tool_message["content"] == "Error: Tool 'fetch_weather' not found"


@pytest.mark.asyncio
async def test_empty_final_answer_is_a_generation_error() -> None:
    client = ScriptedModelClient(
        tool_call_events("search_lyrics", {"artist": "X"}, call_id="call_1"),
        text_events(""),
    )

    with pytest.raises(GenerationError):
        await _orchestrator(client, StubLyricsTool()).enrich("X")


@pytest.mark.asyncio
async def test_missing_genius_token_is_a_configuration_error() -> None:
    client = ScriptedModelClient()
    orchestrator = InspirationOrchestrator(Settings(openai_api_key="sk-test"), client=client)

    with pytest.raises(ConfigurationError) as excinfo:
        await orchestrator.enrich("anything")

    assert excinfo.value.message == "Genius API access token not configured"
    assert client.calls == []


@pytest.mark.asyncio
async def test_missing_openai_key_is_checked_first() -> None:
    orchestrator = InspirationOrchestrator(Settings(), client=ScriptedModelClient())

    with pytest.raises(ConfigurationError) as excinfo:
        await orchestrator.enrich("anything")

    assert excinfo.value.setting == "openai_api_key"


@pytest.mark.asyncio
async def test_cancellation_propagates_out_of_the_tool_phase() -> None:
    started = asyncio.Event()

    class _HangingTool(StubLyricsTool):
        async def execute(self, arguments):
            started.set()
            await asyncio.sleep(10)
            return "never"

    client = ScriptedModelClient(tool_call_events("search_lyrics", {"artist": "X"}, call_id="call_1"))
    task = asyncio.ensure_future(_orchestrator(client, _HangingTool()).enrich("X"))
    await asyncio.wait_for(started.wait(), timeout=1)

    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert len(client.calls) == 1


def test_phases_cover_the_tool_loop() -> None:
    assert [phase.value for phase in InspirationPhase] == [
        "awaiting_model",
        "awaiting_tool",
        "awaiting_final",
        "done",
    ]
