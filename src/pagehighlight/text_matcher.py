# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Literal phrase matching: exact text, case-insensitive, word-bounded.

The phrase is escaped, so regex metacharacters in classifier output are
matched literally. Internal whitespace runs match any whitespace run, since
rendered text and the classifier's copy of it rarely agree on line breaks.
Word boundaries are only asserted on edges that are word characters; a
phrase ending in ``)`` or ``.`` would otherwise never match before a space.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from functools import lru_cache

_WS_RUN_RE = re.compile(r"\s+")
_WORD_CHAR_RE = re.compile(r"\w")

_PATTERN_CACHE_SIZE = 512


def _edge(char: str) -> str:
    return r"\b" if _WORD_CHAR_RE.match(char) else ""


@lru_cache(maxsize=_PATTERN_CACHE_SIZE)
def build_pattern(phrase: str) -> re.Pattern[str] | None:
    """Compile the match pattern for *phrase*; None for blank phrases."""
    text = phrase.strip()
    if not text:
        return None
    body = r"\s+".join(re.escape(part) for part in _WS_RUN_RE.split(text))
    return re.compile(_edge(text[0]) + body + _edge(text[-1]), re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class TextMatcher:
    """Locates every occurrence of one phrase inside a text blob."""

    phrase: str
    pattern: re.Pattern[str]

    @classmethod
    def for_phrase(cls, phrase: str) -> TextMatcher | None:
        pattern = build_pattern(phrase)
        return cls(phrase=phrase, pattern=pattern) if pattern is not None else None

    def finditer(self, text: str) -> Iterator[tuple[int, int]]:
        """Yield ``(start, end)`` offsets of non-overlapping matches, left to right."""
        for m in self.pattern.finditer(text):
            yield m.start(), m.end()

    def find_all(self, text: str) -> list[tuple[int, int]]:
        return list(self.finditer(text))


def find_matches(text: str, phrase: str) -> list[tuple[int, int]]:
    """Offsets of every literal occurrence of *phrase* in *text*."""
    matcher = TextMatcher.for_phrase(phrase)
    return matcher.find_all(text) if matcher is not None else []
