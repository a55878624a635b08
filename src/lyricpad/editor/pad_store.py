"""Pad persistence with debounced autosave and an observable save state.

All per-session state (current pad pointer, debounce timers, save state) lives
on :class:`PadSession`, so several sessions can share one store without
colliding.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, Mapping

from ..errors import StorageError
from ..services.kv_store import KeyValueStore
from .pad_model import (
    CURRENT_PAD_KEY,
    PAD_PREFIX,
    Pad,
    SaveState,
    format_timestamp,
    generate_pad_id,
    next_timestamp,
    pad_key,
)

__all__ = ["PadStore", "PadSession", "PadListing", "SaveStateListener"]

LOGGER = logging.getLogger(__name__)

SaveStateListener = Callable[[SaveState], None]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


@dataclass(slots=True)
class PadSession:
    """Session-scoped editing context: current pad pointer and autosave timers."""

    current_pad_id: str = ""
    save_state: SaveState = SaveState.IDLE
    pending_pad: Pad | None = None
    listeners: list[SaveStateListener] = field(default_factory=list)
    save_handle: asyncio.TimerHandle | None = field(default=None, repr=False)
    relax_handle: asyncio.TimerHandle | None = field(default=None, repr=False)

    @property
    def autosave_pending(self) -> bool:
        return self.save_handle is not None

    def add_listener(self, listener: SaveStateListener) -> None:
        self.listeners.append(listener)

    def cancel_timers(self) -> None:
        for handle in (self.save_handle, self.relax_handle):
            if handle is not None:
                handle.cancel()
        self.save_handle = None
        self.relax_handle = None


@dataclass(slots=True, frozen=True)
class PadListing:
    """Result of :meth:`PadStore.list`; ``error`` distinguishes "unreadable" from "empty"."""

    pads: tuple[Pad, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __len__(self) -> int:
        return len(self.pads)


class PadStore:
    """Loads, autosaves, lists and deletes pads in a flat key-value store."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        autosave_delay: float = 0.5,
        saved_relax_delay: float = 1.5,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._autosave_delay = max(0.0, autosave_delay)
        self._saved_relax_delay = max(0.0, saved_relax_delay)
        self._clock = clock or _utcnow

    @property
    def store(self) -> KeyValueStore:
        return self._store

    # ------------------------------------------------------------------
    # Sessions and the current pad pointer
    # ------------------------------------------------------------------
    def open_session(self) -> PadSession:
        """Create a session whose pointer is read once from storage."""

        session = PadSession()
        try:
            session.current_pad_id = self._store.get(CURRENT_PAD_KEY) or ""
        except StorageError as exc:
            LOGGER.warning("Unable to read current pad pointer: %s", exc)
        return session

    def close_session(self, session: PadSession) -> None:
        session.cancel_timers()
        session.pending_pad = None

    def open(self, session: PadSession, pad_id: str) -> None:
        """Point ``session`` at ``pad_id`` (used when opening a pad from history)."""

        self.flush(session)
        self._set_pointer(session, pad_id)

    def create_new(self, session: PadSession) -> str:
        """Allocate a fresh pad id without persisting anything yet."""

        self.flush(session)
        new_id = generate_pad_id()
        self._set_pointer(session, new_id)
        LOGGER.debug("Created new pad %s", new_id)
        return new_id

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def load(self, session: PadSession, pad_id: str | None = None) -> Pad:
        """Return the requested pad, the session's current pad, or a new blank pad.

        Never raises; storage faults degrade to a blank pad.
        """

        try:
            if pad_id:
                pad = self._read_pad(pad_id)
                if pad is not None:
                    self._set_pointer(session, pad_id)
                    return pad
            if session.current_pad_id:
                pad = self._read_pad(session.current_pad_id)
                if pad is not None:
                    return pad
            new_id = generate_pad_id()
            self._set_pointer(session, new_id)
            return Pad(id=new_id)
        except StorageError as exc:
            LOGGER.warning("Falling back to a blank pad: %s", exc)
            new_id = generate_pad_id()
            session.current_pad_id = new_id
            return Pad(id=new_id)

    def get(self, pad_id: str) -> Pad | None:
        return self._read_pad(pad_id)

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------
    def schedule_save(self, session: PadSession, pad: Pad) -> None:
        """Debounce persistence of ``pad``; the latest call within the quiet period wins."""

        if not pad.id:
            return
        loop = asyncio.get_running_loop()
        session.pending_pad = pad
        if session.save_handle is not None:
            session.save_handle.cancel()
        if session.relax_handle is not None:
            session.relax_handle.cancel()
            session.relax_handle = None
        self._set_state(session, SaveState.SAVING)
        session.save_handle = loop.call_later(self._autosave_delay, self._fire_autosave, session)

    def save_now(self, session: PadSession, pad: Pad) -> Pad | None:
        """Cancel any pending debounce and persist ``pad`` immediately."""

        if session.save_handle is not None:
            session.save_handle.cancel()
            session.save_handle = None
        session.pending_pad = None
        if not pad.id:
            return None
        return self._persist(session, pad)

    def _fire_autosave(self, session: PadSession) -> None:
        session.save_handle = None
        pad = session.pending_pad
        session.pending_pad = None
        if pad is not None:
            self._persist(session, pad)

    def flush(self, session: PadSession) -> Pad | None:
        """Persist the debounced edit right away; no-op when nothing is pending."""

        if session.save_handle is None:
            return None
        session.save_handle.cancel()
        session.save_handle = None
        pad = session.pending_pad
        session.pending_pad = None
        if pad is None:
            return None
        return self._persist(session, pad)

    def _persist(self, session: PadSession, pad: Pad) -> Pad | None:
        try:
            stored = self._upsert(pad)
        except StorageError as exc:
            LOGGER.warning("Dropping save for pad %s: %s", pad.id, exc)
            self._set_state(session, SaveState.IDLE)
            return None
        self._set_state(session, SaveState.SAVED)
        if session.relax_handle is not None:
            session.relax_handle.cancel()
            session.relax_handle = None
        loop = _running_loop()
        if loop is not None:
            session.relax_handle = loop.call_later(self._saved_relax_delay, self._relax, session)
        return stored

    def _relax(self, session: PadSession) -> None:
        session.relax_handle = None
        if session.save_state is SaveState.SAVED:
            self._set_state(session, SaveState.IDLE)

    def _upsert(self, pad: Pad) -> Pad:
        key = pad_key(pad.id)
        now = self._clock()
        created_at, previous_updated = self._existing_timestamps(key)
        stored = replace(
            pad,
            created_at=created_at or format_timestamp(now),
            updated_at=next_timestamp(now, previous_updated),
        )
        self._store.set(key, stored.to_json())
        LOGGER.debug("Persisted pad %s (%d chars)", pad.id, len(pad.content))
        return stored

    def _existing_timestamps(self, key: str) -> tuple[str, str]:
        raw = self._store.get(key)
        if not raw:
            return "", ""
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return "", ""
        if not isinstance(parsed, Mapping):
            return "", ""
        return str(parsed.get("createdAt") or ""), str(parsed.get("updatedAt") or "")

    # ------------------------------------------------------------------
    # Listing and deletion
    # ------------------------------------------------------------------
    def list(self) -> PadListing:
        """Return every stored pad ordered by ``updated_at`` descending.

        Never raises; a read failure yields a listing with ``error`` set.
        """

        try:
            pads: list[Pad] = []
            for key in self._store.keys():
                if not key.startswith(PAD_PREFIX):
                    continue
                raw = self._store.get(key)
                if not raw:
                    continue
                pad = self._decode_listing_entry(key[len(PAD_PREFIX):], raw)
                if pad is not None:
                    pads.append(pad)
        except Exception as exc:
            LOGGER.warning("Unable to list pads: %s", exc)
            return PadListing(error="Unable to read from local storage.")
        pads.sort(key=lambda item: item.updated_at, reverse=True)
        return PadListing(pads=tuple(pads))

    def delete(self, pad_id: str) -> bool:
        """Remove ``pad_id``; returns whether a record existed. Missing ids are a no-op."""

        key = pad_key(pad_id)
        existed = self._store.get(key) is not None
        self._store.remove(key)
        return existed

    def _decode_listing_entry(self, pad_id: str, raw: str) -> Pad | None:
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return self._legacy_pad(pad_id, raw)
        if isinstance(parsed, str):
            return self._legacy_pad(pad_id, parsed)
        if isinstance(parsed, Mapping) and "content" in parsed:
            return Pad.from_record(parsed, pad_id=pad_id)
        LOGGER.debug("Skipping pad record %s without content", pad_id)
        return None

    def _legacy_pad(self, pad_id: str, content: str) -> Pad:
        stamp = format_timestamp(self._clock())
        return Pad(id=pad_id, content=content, created_at=stamp, updated_at=stamp)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _read_pad(self, pad_id: str) -> Pad | None:
        raw = self._store.get(pad_key(pad_id))
        if raw is None:
            return None
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return Pad(id=pad_id, content=raw)
        if isinstance(parsed, str):
            return Pad(id=pad_id, content=parsed)
        if isinstance(parsed, Mapping):
            return Pad.from_record(parsed, pad_id=pad_id)
        return Pad(id=pad_id, content=raw)

    def _set_pointer(self, session: PadSession, pad_id: str) -> None:
        session.current_pad_id = pad_id
        try:
            self._store.set(CURRENT_PAD_KEY, pad_id)
        except StorageError as exc:
            LOGGER.warning("Unable to persist current pad pointer: %s", exc)

    def _set_state(self, session: PadSession, state: SaveState) -> None:
        if session.save_state is state:
            return
        session.save_state = state
        for listener in list(session.listeners):
            try:
                listener(state)
            except Exception:  # pragma: no cover - listener bugs must not break saving
                LOGGER.debug("Save state listener failed", exc_info=True)
