"""Client-side suggestion lifecycle: trigger, supersede, accept, dismiss.

At most one request is outstanding. Each trigger bumps an integer generation;
a response whose generation is no longer current never touches the state.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from ..editor.lines import is_partial, last_line
from ..errors import RequestAborted
from .backend import SuggestionBackend

__all__ = [
    "SuggestionClient",
    "SuggestionPhase",
    "SuggestionState",
    "merge_suggestion",
]

LOGGER = logging.getLogger(__name__)

InspirationProvider = Callable[[], str | None]
StateListener = Callable[["SuggestionState"], None]

_TRAILING_WORD = re.compile(r"(\S+)$")


class SuggestionPhase(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    READY = "ready"
    ERROR = "error"


@dataclass(slots=True, frozen=True)
class SuggestionState:
    """Snapshot of the suggestion lifecycle."""

    text: str = ""
    phase: SuggestionPhase = SuggestionPhase.IDLE
    generation: int = 0

    @property
    def loading(self) -> bool:
        return self.phase is SuggestionPhase.PENDING

    @property
    def ready(self) -> bool:
        return self.phase is SuggestionPhase.READY and bool(self.text)


def merge_suggestion(before: str, after: str, suggestion: str) -> str:
    """Insert ``suggestion`` between ``before`` and ``after``.

    When ``before`` ends inside a started line, the model may echo that line or
    restart its last word; the overlapping text is inserted only once.
    """

    if not is_partial(before):
        return before + suggestion + after

    line = last_line(before)
    trimmed_line = line.strip()
    continuation = suggestion.strip()
    overlapped = False
    if trimmed_line and continuation.startswith(trimmed_line):
        continuation = continuation[len(trimmed_line):]
        overlapped = True
    else:
        match = _TRAILING_WORD.search(line)
        if match and continuation.startswith(match.group(1)):
            continuation = continuation[len(match.group(1)):]
            overlapped = True

    head = before.strip()
    if not overlapped and line[-1:].isspace() and continuation and not continuation[0].isspace():
        head += " "
    return head + continuation + after


class SuggestionClient:
    """Owns the single pending suggestion of an editing session."""

    def __init__(
        self,
        backend: SuggestionBackend,
        *,
        inspiration_provider: InspirationProvider | None = None,
        on_change: StateListener | None = None,
    ) -> None:
        self._backend = backend
        self._inspiration_provider = inspiration_provider
        self._on_change = on_change
        self._state = SuggestionState()
        self._generation = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> SuggestionState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    def trigger(self, context: str) -> asyncio.Task[None]:
        """Cancel any in-flight request and start a new one for ``context``."""

        self._cancel_task()
        self._generation += 1
        generation = self._generation
        self._set_state(SuggestionState(phase=SuggestionPhase.PENDING, generation=generation))
        task = asyncio.get_running_loop().create_task(
            self._run(context, generation), name=f"lyricpad-suggestion-{generation}"
        )
        self._task = task
        return task

    async def request(self, context: str) -> SuggestionState:
        """Trigger and wait for the outcome; a superseded request does not raise."""

        task = self.trigger(context)
        await asyncio.wait({task})
        return self._state

    def accept(self, current_content: str, cursor_position: int) -> str | None:
        """Merge the ready suggestion at the cursor; ``None`` when nothing is ready."""

        if not self._state.ready:
            return None
        cursor = max(0, min(cursor_position, len(current_content)))
        merged = merge_suggestion(current_content[:cursor], current_content[cursor:], self._state.text)
        self._set_state(SuggestionState(generation=self._generation))
        return merged

    def dismiss(self) -> None:
        self._cancel_task()
        if self._state.phase is not SuggestionPhase.IDLE or self._state.text:
            self._set_state(SuggestionState(generation=self._generation))

    async def aclose(self) -> None:
        task = self._task
        self.dismiss()
        if task is not None and not task.done():
            await asyncio.wait({task})

    async def _run(self, context: str, generation: int) -> None:
        inspiration = self._inspiration_provider() if self._inspiration_provider else None
        try:
            text = await self._backend.suggest(context, inspiration or None)
        except RequestAborted:
            LOGGER.debug("Suggestion request %d aborted", generation)
            if self._is_current(generation):
                self._set_state(SuggestionState(generation=generation))
            return
        except Exception as exc:
            if self._is_current(generation):
                LOGGER.warning("Suggestion request failed: %s", exc)
                self._set_state(SuggestionState(phase=SuggestionPhase.ERROR, generation=generation))
            return
        finally:
            if self._task is asyncio.current_task():
                self._task = None

        if not self._is_current(generation):
            LOGGER.debug("Discarding stale suggestion %d (current %d)", generation, self._generation)
            return
        if not (text or "").strip():
            LOGGER.info("Suggestion request %d returned no text", generation)
            self._set_state(SuggestionState(phase=SuggestionPhase.ERROR, generation=generation))
            return
        self._set_state(SuggestionState(text=text, phase=SuggestionPhase.READY, generation=generation))

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._state.phase is SuggestionPhase.PENDING

    def _cancel_task(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def _set_state(self, state: SuggestionState) -> None:
        self._state = state
        if self._on_change is not None:
            self._on_change(state)
