"""Line-level text helpers: completion-kind detection and syllable counts."""

from __future__ import annotations

import re

__all__ = ["last_line", "is_partial", "count_syllables", "count_line_syllables", "line_syllable_counts"]

_NON_LETTERS = re.compile(r"[^a-z]")
_VOWELS = frozenset("aeiouy")


def last_line(text: str) -> str:
    """Return the last newline-separated segment of ``text``."""

    return (text or "").rsplit("\n", 1)[-1]


def is_partial(text: str) -> bool:
    """True when ``text`` ends inside a started line, i.e. its last segment is non-empty."""

    return last_line(text) != ""


def count_syllables(word: str) -> int:
    """Heuristic English syllable count: vowel groups, silent ``e``, consonant + ``le``."""

    letters = _NON_LETTERS.sub("", word.lower())
    if not letters:
        return 0
    if len(letters) <= 3:
        return 1

    syllables = 0
    previous_was_vowel = False
    for char in letters:
        is_vowel = char in _VOWELS
        if is_vowel and not previous_was_vowel:
            syllables += 1
        previous_was_vowel = is_vowel

    if letters.endswith("e") and syllables > 1:
        syllables -= 1
    if letters.endswith("le") and letters[-3] not in _VOWELS:
        syllables += 1
    return max(syllables, 1)


def count_line_syllables(line: str) -> int:
    return sum(count_syllables(word) for word in line.split())


def line_syllable_counts(text: str) -> list[int]:
    """Syllable count per line; blank lines count zero."""

    return [count_line_syllables(line) for line in (text or "").split("\n")]
