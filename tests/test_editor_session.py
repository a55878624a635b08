"""Tests for the editing session facade."""

from __future__ import annotations

import asyncio
import json

import pytest

from lyricpad.client import EditorSession, SuggestionPhase
from lyricpad.editor import Pad, PadStore, SaveState
from lyricpad.services.kv_store import MemoryKeyValueStore

from tests.helpers import ControlledBackend, StaticBackend


def _session(store: MemoryKeyValueStore, backend, **kwargs) -> EditorSession:
    pads = PadStore(store, autosave_delay=0.01, saved_relax_delay=0.01)
    return EditorSession(pads, backend, **kwargs)


@pytest.mark.asyncio
async def test_start_without_inspiration_does_not_trigger(kv_store: MemoryKeyValueStore) -> None:
    backend = StaticBackend("line")
    session = _session(kv_store, backend)

    pad = session.start()
    await asyncio.sleep(0)

    assert pad.content == ""
    assert session.suggestion.phase is SuggestionPhase.IDLE
    assert backend.suggest_calls == []
    await session.close()


@pytest.mark.asyncio
async def test_set_content_autosaves(kv_store: MemoryKeyValueStore) -> None:
    states: list[SaveState] = []
    session = _session(kv_store, StaticBackend(), on_save_state=states.append)
    pad = session.start()

    session.set_content("First verse")
    assert session.save_state is SaveState.SAVING
    await asyncio.sleep(0.05)

    stored = json.loads(kv_store.get(f"pad:{pad.id}") or "{}")
    assert stored["content"] == "First verse"
    assert states[:2] == [SaveState.SAVING, SaveState.SAVED]
    await session.close()


@pytest.mark.asyncio
async def test_request_next_line_sends_text_through_cursor_line(kv_store: MemoryKeyValueStore) -> None:
    backend = StaticBackend("Line three")
    session = _session(kv_store, backend)
    session.start()
    session.set_content("Line one\nLine two\nLine four")

    await session.request_next_line(len("Line one\nLine two"))

    assert backend.suggest_calls[-1][0] == "Line one\nLine two\n"
    assert session.suggestion.text == "Line three"
    await session.close()


@pytest.mark.asyncio
async def test_request_next_line_at_end_adds_newline(kv_store: MemoryKeyValueStore) -> None:
    backend = StaticBackend("next")
    session = _session(kv_store, backend)
    session.start()
    session.set_content("Only line")

    await session.request_next_line(len("Only line"))

    assert backend.suggest_calls[-1][0] == "Only line\n"
    await session.close()


@pytest.mark.asyncio
async def test_inline_request_and_accept(kv_store: MemoryKeyValueStore) -> None:
    backend = StaticBackend("world today")
    session = _session(kv_store, backend)
    session.start()
    session.set_content("Hello wor")

    await session.request_inline(9)
    accepted = session.accept(9)

    assert accepted is True
    assert session.pad.content == "Hello world today"
    assert backend.suggest_calls[-1][0] == "Hello wor"
    assert session.accept(9) is False
    await session.close()


@pytest.mark.asyncio
async def test_set_inspiration_enriches_and_auto_triggers_on_empty_pad(kv_store: MemoryKeyValueStore) -> None:
    backend = StaticBackend("Opening line", enriched="Smooth R&B.")
    session = _session(kv_store, backend)
    session.start()

    pad = await session.set_inspiration("Bryson Tiller")
    await asyncio.sleep(0.05)

    assert pad.inspiration == "Bryson Tiller\n\nSmooth R&B."
    assert backend.suggest_calls == [("", "Bryson Tiller\n\nSmooth R&B.")]
    assert session.suggestion.text == "Opening line"
    stored = json.loads(kv_store.get(f"pad:{pad.id}") or "{}")
    assert stored["inspiration"] == pad.inspiration
    await session.close()


@pytest.mark.asyncio
async def test_auto_trigger_fires_once_per_inspiration(kv_store: MemoryKeyValueStore) -> None:
    backend = StaticBackend("Opening line", enriched="notes")
    session = _session(kv_store, backend)
    session.start()
    await session.set_inspiration("idea")
    await asyncio.sleep(0.02)

    session.dismiss()
    session.set_content("")
    await asyncio.sleep(0.02)

    assert len(backend.suggest_calls) == 1
    await session.close()


@pytest.mark.asyncio
async def test_reopening_empty_pad_with_inspiration_auto_triggers(kv_store: MemoryKeyValueStore) -> None:
    pads = PadStore(kv_store)
    seed = pads.open_session()
    pads.save_now(seed, Pad(id="inspired", inspiration="late night drive"))
    pads.close_session(seed)
    backend = StaticBackend("First line")
    session = EditorSession(pads, backend)

    session.start("inspired")
    await asyncio.sleep(0.02)

    assert backend.suggest_calls == [("", "late night drive")]
    await session.close()


@pytest.mark.asyncio
async def test_inspiration_result_is_dropped_after_switching_pads(kv_store: MemoryKeyValueStore) -> None:
    backend = ControlledBackend()
    session = _session(kv_store, backend)
    original = session.start()

    pending = asyncio.ensure_future(session.set_inspiration("idea"))
    await asyncio.sleep(0)
    new_pad = session.new_pad()
    backend.pending[0][1].set_result("late notes")
    result = await pending

    assert result.id == new_pad.id
    assert result.inspiration == ""
    assert kv_store.get(f"pad:{original.id}") is None
    await session.close()


@pytest.mark.asyncio
async def test_new_pad_flushes_pending_edit(kv_store: MemoryKeyValueStore) -> None:
    pads = PadStore(kv_store, autosave_delay=10.0)
    session = EditorSession(pads, StaticBackend())
    first = session.start()
    session.set_content("keep me")

    second = session.new_pad()

    assert second.id != first.id
    assert json.loads(kv_store.get(f"pad:{first.id}") or "{}")["content"] == "keep me"
    await session.close()


@pytest.mark.asyncio
async def test_open_pad_switches_and_dismisses(kv_store: MemoryKeyValueStore) -> None:
    pads = PadStore(kv_store)
    seed = pads.open_session()
    pads.save_now(seed, Pad(id="other", content="other words"))
    pads.close_session(seed)
    backend = ControlledBackend()
    session = EditorSession(pads, backend)
    draft = session.start()
    session.set_content("draft")
    session.request_inline(5)

    pad = session.open_pad("other")

    assert pad.content == "other words"
    assert json.loads(kv_store.get(f"pad:{draft.id}") or "{}")["content"] == "draft"
    assert session.suggestion.phase is SuggestionPhase.IDLE
    await session.close()


@pytest.mark.asyncio
async def test_close_flushes_pending_autosave(kv_store: MemoryKeyValueStore) -> None:
    pads = PadStore(kv_store, autosave_delay=10.0)
    session = EditorSession(pads, StaticBackend())
    pad = session.start()
    session.set_content("unsaved")

    await session.close()

    assert json.loads(kv_store.get(f"pad:{pad.id}") or "{}")["content"] == "unsaved"


def test_pad_before_start_raises(kv_store: MemoryKeyValueStore) -> None:
    session = _session(kv_store, StaticBackend())

    with pytest.raises(RuntimeError):
        _ = session.pad
