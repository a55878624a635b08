"""Helpers used when presenting the pad history."""

from __future__ import annotations

import re

__all__ = ["derive_title", "derive_preview", "compute_word_count", "PREVIEW_LIMIT"]

PREVIEW_LIMIT = 140
_WHITESPACE = re.compile(r"\s+")


def derive_title(text: str) -> str:
    """Return the first line of ``text`` trimmed, or ``"Untitled"``."""

    first_line = (text or "").split("\n", 1)[0].strip()
    return first_line or "Untitled"


def derive_preview(text: str, *, limit: int = PREVIEW_LIMIT) -> str:
    collapsed = _WHITESPACE.sub(" ", text or "").strip()
    if len(collapsed) <= limit:
        return collapsed
    return f"{collapsed[:limit]}…"


def compute_word_count(text: str) -> int:
    stripped = (text or "").strip()
    if not stripped:
        return 0
    return len(_WHITESPACE.split(stripped))
