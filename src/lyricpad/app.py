"""Command-line entry point: serve the API, manage pads, request suggestions."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO, get_args, get_origin, get_type_hints

from .client import EditorSession, HttpSuggestionBackend, LocalSuggestionBackend, SuggestionBackend
from .client.suggestions import SuggestionPhase
from .editor import PadStore, compute_word_count, derive_preview, derive_title
from .editor.lines import line_syllable_counts
from .ai.orchestration import CompletionOrchestrator, InspirationOrchestrator
from .services.kv_store import JsonFileKeyValueStore
from .services.settings import Settings, SettingsStore, redacted_settings
from .utils import logging as logging_utils

_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}
_LOGGER = logging.getLogger(__name__)


def configure_logging(
    debug: bool = False,
    *,
    settings: Settings | None = None,
    force: bool = False,
    console: bool = False,
    serving: bool = False,
) -> None:
    """Configure logging for the application."""

    level = logging_utils.logging_level(settings, debug=debug)
    logging_utils.setup_logging(level, force=force, console=console or serving, serving=serving)
    _LOGGER.debug("Logging configured (level=%s)", logging.getLevelName(level))


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        return active_store.load(overrides=overrides)
    except (OSError, ValueError) as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        return Settings()


def build_pad_store(settings: Settings) -> PadStore:
    return PadStore(
        JsonFileKeyValueStore(settings.store_path),
        autosave_delay=settings.autosave_delay,
        saved_relax_delay=settings.saved_relax_delay,
    )


def build_backend(settings: Settings, *, local: bool = False) -> SuggestionBackend:
    """In-process orchestrators when ``local``, otherwise the HTTP API at ``api_base_url``."""

    if local:
        return LocalSuggestionBackend(CompletionOrchestrator(settings), InspirationOrchestrator(settings))
    return HttpSuggestionBackend(settings.api_base_url, timeout=settings.request_timeout)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point invoked by the ``lyricpad`` console script."""

    args = _parse_cli_args(argv)

    debug = args.debug or _env_flag("LYRICPAD_DEBUG", default=False)
    # Pad and suggestion commands print to stdout; keep the console for the server only.
    configure_logging(debug, serving=args.command == "serve")

    settings_path = args.settings_path or os.environ.get("LYRICPAD_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        return 2

    settings = load_settings(resolved_path, store=settings_store, overrides=cli_overrides or None)

    if args.dump_settings:
        _dump_settings(settings, settings_store, overrides=cli_overrides)
        return 0

    if settings.debug_logging and not debug:
        configure_logging(settings=settings, force=True, serving=args.command == "serve")

    if args.command == "serve":
        return _serve(settings, host=args.host, port=args.port)
    if args.command == "pads":
        return _pads_command(settings, args)
    if args.command == "suggest":
        return asyncio.run(_suggest_command(settings, args))
    if args.command == "inspire":
        return asyncio.run(_inspire_command(settings, args))

    print("No command given; try `lyricpad --help`.", file=sys.stderr)
    return 2


def _serve(settings: Settings, *, host: str | None, port: int | None) -> int:
    import uvicorn

    from .api import create_app

    app = create_app(settings)
    uvicorn.run(app, host=host or settings.host, port=port or settings.port, log_config=None)
    return 0


def _pads_command(settings: Settings, args: argparse.Namespace, *, stream: TextIO | None = None) -> int:
    out = stream or sys.stdout
    store = build_pad_store(settings)

    if args.pads_command == "delete":
        existed = store.delete(args.pad_id)
        print(f"Deleted {args.pad_id}" if existed else f"No pad {args.pad_id}", file=out)
        return 0

    if args.pads_command == "show":
        pad = store.get(args.pad_id)
        if pad is None:
            print(f"No pad {args.pad_id}", file=sys.stderr)
            return 1
        counts = line_syllable_counts(pad.content)
        width = max((len(str(count)) for count in counts), default=1)
        for line, count in zip(pad.content.split("\n"), counts):
            print(f"{count if line.strip() else '':>{width}} | {line}", file=out)
        if pad.inspiration:
            print("\n--- inspiration ---\n" + pad.inspiration, file=out)
        return 0

    listing = store.list()
    if not listing.ok:
        print(listing.error, file=sys.stderr)
        return 1
    if not listing.pads:
        print("No saved pads yet.", file=out)
        return 0
    for pad in listing.pads:
        words = compute_word_count(pad.content)
        print(f"{pad.id}  {pad.updated_at}  {derive_title(pad.content)}  ({words} words)", file=out)
        preview = derive_preview(pad.content)
        if preview:
            print(f"    {preview}", file=out)
    return 0


async def _suggest_command(settings: Settings, args: argparse.Namespace) -> int:
    backend = build_backend(settings, local=args.local)
    session = EditorSession(build_pad_store(settings), backend)
    try:
        pad = session.start(args.pad)
        cursor = len(pad.content)
        task = session.request_next_line(cursor) if args.next_line else session.request_inline(cursor)
        await asyncio.wait({task})
        state = session.suggestion
        if state.phase is not SuggestionPhase.READY:
            print("No suggestion available.", file=sys.stderr)
            return 1
        if args.accept:
            session.accept(cursor)
            session.save()
            print(session.pad.content)
        else:
            print(state.text)
        return 0
    finally:
        await session.close()
        await _close_backend(backend)


async def _inspire_command(settings: Settings, args: argparse.Namespace) -> int:
    backend = build_backend(settings, local=args.local)
    session = EditorSession(build_pad_store(settings), backend)
    try:
        session.start(args.pad)
        pad = await session.set_inspiration(" ".join(args.text))
        session.dismiss()
        session.save()
        print(pad.inspiration)
        return 0
    finally:
        await session.close()
        await _close_backend(backend)


async def _close_backend(backend: SuggestionBackend) -> None:
    close = getattr(backend, "aclose", None)
    if close is not None:
        await close()


def _env_flag(name: str, *, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _parse_cli_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="lyricpad",
        description="Serve the LyricPad API, manage saved pads, or request suggestions.",
    )
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings payload (with secrets redacted) and exit.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.lyricpad/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings for this run (repeatable).",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")

    commands = parser.add_subparsers(dest="command")

    serve = commands.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    pads = commands.add_parser("pads", help="List, show or delete saved pads.")
    pad_commands = pads.add_subparsers(dest="pads_command")
    pad_commands.add_parser("list", help="List pads, most recently updated first.")
    show = pad_commands.add_parser("show", help="Print a pad with per-line syllable counts.")
    show.add_argument("pad_id")
    delete = pad_commands.add_parser("delete", help="Delete a pad.")
    delete.add_argument("pad_id")

    suggest = commands.add_parser("suggest", help="Ask for a suggestion at the end of a pad.")
    suggest.add_argument("--pad", default=None, help="Pad id (defaults to the current pad).")
    suggest.add_argument("--next-line", action="store_true", help="Suggest the next line instead of completing.")
    suggest.add_argument("--accept", action="store_true", help="Merge the suggestion into the pad and save.")
    suggest.add_argument("--local", action="store_true", help="Call the model directly instead of the API.")

    inspire = commands.add_parser("inspire", help="Enrich and store a pad's inspiration.")
    inspire.add_argument("text", nargs="+")
    inspire.add_argument("--pad", default=None, help="Pad id (defaults to the current pad).")
    inspire.add_argument("--local", action="store_true", help="Call the model directly instead of the API.")

    return parser.parse_args(argv)


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if not items:
        return overrides

    fields = Settings.__dataclass_fields__  # type: ignore[attr-defined]
    type_hints = get_type_hints(Settings)
    for entry in items:
        if "=" not in entry:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        key, raw_value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError("Override is missing a field name.")
        if key not in fields:
            raise ValueError(f"Unknown setting '{key}'.")
        annotation = type_hints.get(key, fields[key].type)
        overrides[key] = _coerce_value(annotation, raw_value.strip())
    return overrides


def _coerce_value(annotation: Any, raw_value: str) -> Any:
    target = _resolve_annotation(annotation)
    normalized = raw_value.strip()

    if target is bool:
        return _parse_bool(normalized)
    if target is int:
        return int(normalized, 10)
    if target is float:
        return float(normalized)
    return normalized


def _resolve_annotation(annotation: Any) -> Any:
    if get_origin(annotation) is None:
        return annotation
    args = [arg for arg in get_args(annotation) if arg is not type(None)]
    return args[0] if args else annotation


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot coerce '{value}' to a boolean.")


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    payload = {
        "path": str(store.path),
        "overrides": sorted(overrides),
        "settings": redacted_settings(settings),
    }
    print(json.dumps(payload, indent=2, sort_keys=True), file=stream or sys.stdout)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
