"""Tests covering the command-line entry point."""

from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any

import pytest

from lyricpad import app
from lyricpad.editor import Pad, PadStore
from lyricpad.services.kv_store import JsonFileKeyValueStore
from lyricpad.services.settings import Settings, SettingsStore

from tests.helpers import StaticBackend, SteppingClock


@pytest.fixture
def settings_path(tmp_path: Path) -> Path:
    return tmp_path / "settings.json"


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "pads.json"


def _seed_pads(store_path: Path, *pads: Pad) -> None:
    store = PadStore(JsonFileKeyValueStore(store_path), clock=SteppingClock())
    session = store.open_session()
    for pad in pads:
        store.save_now(session, pad)


def _run(argv: list[str], settings_path: Path, store_path: Path) -> int:
    return app.main(["--settings-path", str(settings_path), "--set", f"store_path={store_path}", *argv])


def test_coerce_cli_overrides_uses_field_types() -> None:
    overrides = app._coerce_cli_overrides(
        ["port=9001", "request_timeout=2.5", "debug_logging=yes", "completion_model= gpt-test "]
    )

    assert overrides == {
        "port": 9001,
        "request_timeout": 2.5,
        "debug_logging": True,
        "completion_model": "gpt-test",
    }


@pytest.mark.parametrize("entry", ["port", "=1", "unknown_field=1", "debug_logging=maybe", "port=abc"])
def test_coerce_cli_overrides_rejects_bad_entries(entry: str) -> None:
    with pytest.raises(ValueError):
        app._coerce_cli_overrides([entry])


def test_invalid_override_exits_with_usage_error(settings_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert app.main(["--settings-path", str(settings_path), "--set", "nope=1", "pads", "list"]) == 2
    assert "Invalid --set override" in capsys.readouterr().err


def test_dump_settings_redacts_secrets(settings_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    SettingsStore(settings_path).save(Settings(openai_api_key="sk-abcdef"))

    exit_code = app.main(["--settings-path", str(settings_path), "--set", "port=9001", "--dump-settings"])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["path"] == str(settings_path)
    assert payload["overrides"] == ["port"]
    assert payload["settings"]["port"] == 9001
    assert payload["settings"]["openai_api_key"] == "sk*****ef"


def test_settings_path_from_environment(
    settings_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    SettingsStore(settings_path).save(Settings(completion_model="env-model"))
    monkeypatch.setenv("LYRICPAD_SETTINGS_PATH", str(settings_path))

    assert app.main(["--dump-settings"]) == 0
    assert json.loads(capsys.readouterr().out)["settings"]["completion_model"] == "env-model"


def test_load_settings_falls_back_to_defaults_on_os_error(tmp_path: Path) -> None:
    class _BrokenStore(SettingsStore):
        def load(self, *, overrides: Any = None) -> Settings:
            raise OSError("permission denied")

    assert app.load_settings(store=_BrokenStore(tmp_path / "s.json")) == Settings()


def test_pads_list_prints_newest_first(
    settings_path: Path, store_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _seed_pads(store_path, Pad(id="older", content="Old song\nwith words"), Pad(id="newer", content="New song"))

    assert _run(["pads", "list"], settings_path, store_path) == 0

    out = capsys.readouterr().out
    assert out.index("newer") < out.index("older")
    assert "Old song  (4 words)" in out
    assert "    Old song with words" in out


def test_pads_list_empty(settings_path: Path, store_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(["pads", "list"], settings_path, store_path) == 0
    assert "No saved pads yet." in capsys.readouterr().out


def test_pads_list_reports_unreadable_store(
    settings_path: Path, store_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    store_path.write_text("{corrupt", encoding="utf-8")

    assert _run(["pads", "list"], settings_path, store_path) == 1
    assert "Unable to read from local storage." in capsys.readouterr().err


def test_pads_show_prints_syllable_counts(
    settings_path: Path, store_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _seed_pads(store_path, Pad(id="p", content="hello world\n\nthe table", inspiration="soft"))

    assert _run(["pads", "show", "p"], settings_path, store_path) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "3 | hello world"
    assert lines[1] == "  | "
    assert lines[2] == "3 | the table"
    assert lines[-1] == "soft"


def test_pads_show_unknown_pad(settings_path: Path, store_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(["pads", "show", "missing"], settings_path, store_path) == 1
    assert "No pad missing" in capsys.readouterr().err


def test_pads_delete(settings_path: Path, store_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _seed_pads(store_path, Pad(id="p", content="bye"))

    assert _run(["pads", "delete", "p"], settings_path, store_path) == 0
    assert _run(["pads", "delete", "p"], settings_path, store_path) == 0

    out = capsys.readouterr().out
    assert "Deleted p" in out and "No pad p" in out
    assert PadStore(JsonFileKeyValueStore(store_path)).get("p") is None


def test_suggest_command_prints_suggestion(
    settings_path: Path, store_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _seed_pads(store_path, Pad(id="p", content="Hello wor"))
    backend = StaticBackend("world today")
    monkeypatch.setattr(app, "build_backend", lambda settings, local=False: backend)

    assert _run(["suggest", "--pad", "p"], settings_path, store_path) == 0

    assert capsys.readouterr().out.strip() == "world today"
    assert backend.suggest_calls == [("Hello wor", None)]


def test_suggest_command_accept_saves_merged_pad(
    settings_path: Path, store_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _seed_pads(store_path, Pad(id="p", content="Hello wor"))
    monkeypatch.setattr(app, "build_backend", lambda settings, local=False: StaticBackend("world today"))

    assert _run(["suggest", "--pad", "p", "--accept"], settings_path, store_path) == 0

    assert capsys.readouterr().out.strip() == "Hello world today"
    assert PadStore(JsonFileKeyValueStore(store_path)).get("p").content == "Hello world today"  # type: ignore[union-attr]


def test_suggest_command_without_suggestion_fails(
    settings_path: Path, store_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(app, "build_backend", lambda settings, local=False: StaticBackend(""))

    assert _run(["suggest"], settings_path, store_path) == 1
    assert "No suggestion available." in capsys.readouterr().err


def test_inspire_command_stores_enriched_inspiration(
    settings_path: Path, store_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    _seed_pads(store_path, Pad(id="p", content="Verse one"))
    monkeypatch.setattr(app, "build_backend", lambda settings, local=False: StaticBackend(enriched="R&B notes"))

    assert _run(["inspire", "--pad", "p", "Bryson", "Tiller"], settings_path, store_path) == 0

    assert capsys.readouterr().out.strip() == "Bryson Tiller\n\nR&B notes"
    stored = PadStore(JsonFileKeyValueStore(store_path)).get("p")
    assert stored is not None and stored.inspiration == "Bryson Tiller\n\nR&B notes"


def test_build_backend_selects_implementation() -> None:
    settings = Settings(openai_api_key="sk")

    assert type(app.build_backend(settings)).__name__ == "HttpSuggestionBackend"
    assert type(app.build_backend(settings, local=True)).__name__ == "LocalSuggestionBackend"


def test_serve_runs_uvicorn(settings_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import uvicorn

    captured: dict[str, Any] = {}

    def _fake_run(application: Any, **kwargs: Any) -> None:
        captured["app"] = application
        captured.update(kwargs)

    monkeypatch.setattr(uvicorn, "run", _fake_run)

    assert app.main(["--settings-path", str(settings_path), "serve", "--port", "9123"]) == 0
    assert captured["port"] == 9123
    assert captured["host"] == "127.0.0.1"
    assert captured["app"].title == "LyricPad"


def test_no_command_is_usage_error(settings_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert app.main(["--settings-path", str(settings_path)]) == 2
    assert "lyricpad --help" in capsys.readouterr().err


def test_configure_logging_writes_to_log_dir(tmp_path: Path) -> None:
    app.configure_logging(True, force=True, console=False)

    assert (tmp_path / "logs" / "lyricpad.log").exists()
    stream = io.StringIO()
    app._dump_settings(Settings(), SettingsStore(tmp_path / "s.json"), overrides={}, stream=stream)
    assert json.loads(stream.getvalue())["overrides"] == []
