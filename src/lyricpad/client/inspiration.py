"""Client-side inspiration enrichment."""

from __future__ import annotations

import logging

from ..editor.pad_model import Pad
from ..errors import RequestAborted
from .backend import SuggestionBackend

__all__ = ["InspirationEnricher", "combine_inspiration"]

LOGGER = logging.getLogger(__name__)


def combine_inspiration(raw: str, enriched: str) -> str:
    """The stored inspiration: what the user typed, then the enrichment."""

    return f"{raw}\n\n{enriched}"


class InspirationEnricher:
    """Sends raw inspiration to the enrichment backend.

    Failures never reach the caller: the raw text is returned unchanged so the
    user's input is always kept.
    """

    def __init__(self, backend: SuggestionBackend) -> None:
        self._backend = backend
        self._in_flight = 0

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    async def enrich(self, raw: str) -> str | None:
        """Return the text to store, or ``None`` when ``raw`` is blank."""

        if not raw or not raw.strip():
            return None
        self._in_flight += 1
        try:
            enriched = await self._backend.enrich(raw)
        except RequestAborted:
            LOGGER.debug("Inspiration enrichment aborted; keeping raw text")
            return raw
        except Exception as exc:
            LOGGER.warning("Inspiration enrichment failed; keeping raw text: %s", exc)
            return raw
        finally:
            self._in_flight -= 1
        if not (enriched or "").strip():
            LOGGER.info("Inspiration enrichment returned no text; keeping raw text")
            return raw
        return combine_inspiration(raw, enriched)

    async def enrich_pad(self, pad: Pad, raw: str) -> Pad:
        """Return ``pad`` carrying the enriched form of ``raw`` (unchanged when blank)."""

        text = await self.enrich(raw)
        if text is None:
            return pad
        return pad.with_inspiration(text)
