"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from lyricpad.services.kv_store import MemoryKeyValueStore

from tests.helpers import SteppingClock

_ENV_VARS = (
    "OPENAI_API_KEY",
    "GENIUS_ACCESS_TOKEN",
    "LYRICPAD_BASE_URL",
    "LYRICPAD_COMPLETION_MODEL",
    "LYRICPAD_INSPIRATION_MODEL",
    "LYRICPAD_STORE_PATH",
    "LYRICPAD_API_BASE_URL",
    "LYRICPAD_HOST",
    "LYRICPAD_PORT",
    "LYRICPAD_DEBUG",
    "LYRICPAD_DEBUG_LOGGING",
    "LYRICPAD_REQUEST_TIMEOUT",
    "LYRICPAD_SETTINGS_PATH",
)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LYRICPAD_LOG_DIR", str(tmp_path / "logs"))


@pytest.fixture
def kv_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()
