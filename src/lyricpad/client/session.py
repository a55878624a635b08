"""Editing session facade tying the pad store to suggestions and enrichment.

Each editor command is a plain method; cursor positions are character offsets
into the current pad content.
"""

from __future__ import annotations

import asyncio
import logging

from ..editor.pad_model import Pad, SaveState
from ..editor.pad_store import PadSession, PadStore, SaveStateListener
from .backend import SuggestionBackend
from .inspiration import InspirationEnricher
from .suggestions import StateListener, SuggestionClient, SuggestionPhase, SuggestionState

__all__ = ["EditorSession"]

LOGGER = logging.getLogger(__name__)


class EditorSession:
    """One user's view of one pad at a time."""

    def __init__(
        self,
        store: PadStore,
        backend: SuggestionBackend,
        *,
        on_suggestion: StateListener | None = None,
        on_save_state: SaveStateListener | None = None,
    ) -> None:
        self._store = store
        self._session: PadSession | None = None
        self._pad: Pad | None = None
        self._on_save_state = on_save_state
        self._auto_triggered: set[tuple[str, str]] = set()
        self.suggestions = SuggestionClient(
            backend,
            inspiration_provider=lambda: self.pad.inspiration,
            on_change=on_suggestion,
        )
        self.enricher = InspirationEnricher(backend)

    @property
    def pad(self) -> Pad:
        if self._pad is None:
            raise RuntimeError("EditorSession.start() has not been called")
        return self._pad

    @property
    def session(self) -> PadSession:
        if self._session is None:
            raise RuntimeError("EditorSession.start() has not been called")
        return self._session

    @property
    def suggestion(self) -> SuggestionState:
        return self.suggestions.state

    @property
    def save_state(self) -> SaveState:
        return self.session.save_state

    def start(self, pad_id: str | None = None) -> Pad:
        """Open the storage session and load ``pad_id`` (or the current pad)."""

        if self._session is None:
            self._session = self._store.open_session()
            if self._on_save_state is not None:
                self._session.add_listener(self._on_save_state)
        self._pad = self._store.load(self._session, pad_id)
        LOGGER.debug("Editing pad %s", self._pad.id)
        self._maybe_auto_trigger()
        return self._pad

    def set_content(self, content: str) -> None:
        self._pad = self.pad.with_content(content)
        self._store.schedule_save(self.session, self._pad)
        self._maybe_auto_trigger()

    def request_next_line(self, cursor: int) -> asyncio.Task[None]:
        """Enter: ask for the line following the cursor's line."""

        content = self.pad.content
        if not content.endswith("\n"):
            content += "\n"
        return self.suggestions.trigger(content[: max(0, cursor) + 1])

    def request_inline(self, cursor: int) -> asyncio.Task[None]:
        """Explicit request: complete the text before the cursor."""

        return self.suggestions.trigger(self.pad.content[: max(0, cursor)])

    def accept(self, cursor: int) -> bool:
        """Tab: merge the ready suggestion at ``cursor``; False when nothing was ready."""

        merged = self.suggestions.accept(self.pad.content, cursor)
        if merged is None:
            return False
        self.set_content(merged)
        return True

    def dismiss(self) -> None:
        self.suggestions.dismiss()

    def save(self) -> Pad | None:
        stored = self._store.save_now(self.session, self.pad)
        if stored is not None:
            self._pad = stored
        return stored

    def new_pad(self) -> Pad:
        self.suggestions.dismiss()
        new_id = self._store.create_new(self.session)
        self._pad = Pad(id=new_id)
        self._maybe_auto_trigger()
        return self._pad

    def open_pad(self, pad_id: str) -> Pad:
        self.suggestions.dismiss()
        self._store.open(self.session, pad_id)
        return self.start(pad_id)

    async def set_inspiration(self, raw: str) -> Pad:
        """Enrich ``raw`` and store it on the pad; blank input leaves the pad unchanged."""

        pad_id = self.pad.id
        text = await self.enricher.enrich(raw)
        if text is None:
            return self.pad
        if self.pad.id != pad_id:
            LOGGER.info("Pad changed while enriching inspiration; discarding result for %s", pad_id)
            return self.pad
        self.suggestions.dismiss()
        self._pad = self.pad.with_inspiration(text)
        self._store.schedule_save(self.session, self._pad)
        self._maybe_auto_trigger()
        return self._pad

    async def close(self) -> None:
        await self.suggestions.aclose()
        if self._session is not None:
            self._store.flush(self._session)
            self._store.close_session(self._session)

    def _maybe_auto_trigger(self) -> None:
        pad = self.pad
        if pad.content or not pad.inspiration:
            return
        if self.suggestions.state.phase in (SuggestionPhase.PENDING, SuggestionPhase.READY):
            return
        key = (pad.id, pad.inspiration)
        if key in self._auto_triggered:
            return
        self._auto_triggered.add(key)
        LOGGER.debug("Auto-triggering opening line for pad %s", pad.id)
        self.suggestions.trigger("")
