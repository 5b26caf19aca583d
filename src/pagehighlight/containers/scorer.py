# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Deterministic structural scoring for candidate containers.

score = min(text_length / 100, 50)          length bonus
      + tag bonus                            article 20, main 15, section 10, div 5
      + class bonus (each group once)        article/post 15, content/entry 10, story/news 10
      - 30 if tag, class or id look like navigation/boilerplate
      + 2 * paragraphs + 3 * headings

Pure function of the candidate's features: no randomness, no tree access.
Ranking breaks score ties by discovery order.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence

from pagehighlight import CandidateContainer
from pagehighlight.containers.collector import is_boilerplate

_LENGTH_DIVISOR = 100.0
_LENGTH_CAP = 50.0

_TAG_BONUS: dict[str, float] = {
    "article": 20.0,
    "main": 15.0,
    "section": 10.0,
    "div": 5.0,  # generic block
}

_CLASS_BONUS: tuple[tuple[tuple[str, ...], float], ...] = (
    (("article", "post"), 15.0),
    (("content", "entry"), 10.0),
    (("story", "news"), 10.0),
)

_BOILERPLATE_PENALTY = 30.0
_PARAGRAPH_WEIGHT = 2.0
_HEADING_WEIGHT = 3.0


def score_candidate(candidate: CandidateContainer) -> float:
    """Structural score; higher means more likely the main content."""
    score = min(candidate.text_length / _LENGTH_DIVISOR, _LENGTH_CAP)
    score += _TAG_BONUS.get(candidate.tag_hint.lower(), 0.0)

    class_name = candidate.class_hint.lower()
    for terms, bonus in _CLASS_BONUS:
        if any(term in class_name for term in terms):
            score += bonus

    if is_boilerplate(candidate.tag_hint, candidate.class_hint, candidate.id_hint):
        score -= _BOILERPLATE_PENALTY

    score += _PARAGRAPH_WEIGHT * candidate.paragraph_count
    score += _HEADING_WEIGHT * candidate.heading_count
    return score


def rank_candidates(candidates: Sequence[CandidateContainer]) -> list[CandidateContainer]:
    """Scored copies, best first; equal scores keep discovery order."""
    scored = [dataclasses.replace(c, score=score_candidate(c)) for c in candidates]
    return sorted(scored, key=lambda c: (-c.score, c.order))


def best_candidate(candidates: Sequence[CandidateContainer]) -> CandidateContainer | None:
    ranked = rank_candidates(candidates)
    return ranked[0] if ranked else None
