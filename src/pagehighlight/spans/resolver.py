# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Span conflict resolution.

Two passes over the classifier's flat span list:
  1. Dedup by normalized text (strip + lowercase). The highest priority wins;
     on equal priority the first-seen span is kept.
  2. Overlap elimination. Two spans overlap when one normalized text contains
     the other. Spans are visited in dominance order (priority desc, length
     desc, first-seen) and each is accepted only if it overlaps nothing
     already accepted.

Overlap is substring containment, not positional overlap: the classifier
returns phrases, not offsets.

Trade-off: the greedy pass is priority-respecting, not cardinality-maximal.
A single long CRITICAL span that contains five MEDIUM spans wins over all
five. Every dropped span overlaps an accepted span with priority >= its
own (and, at equal priority, text at least as long).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pagehighlight import Span

logger = logging.getLogger(__name__)


def spans_overlap(a: str, b: str) -> bool:
    """True when one normalized text contains the other."""
    na = a.strip().lower()
    nb = b.strip().lower()
    return na in nb or nb in na


def dedupe_spans(spans: Iterable[Span]) -> list[Span]:
    """Pass 1: one span per normalized text, in first-seen order."""
    by_text: dict[str, Span] = {}
    for span in spans:
        key = span.normalized
        if not key:
            continue
        kept = by_text.get(key)
        if kept is None or span.priority > kept.priority:
            by_text[key] = span  # replacing keeps the first-seen slot
    return list(by_text.values())


def resolve_conflicts(spans: Iterable[Span]) -> list[Span]:
    """Reduce *spans* to a priority-respecting, containment-free subset.

    The result keeps first-seen input order; application order is decided
    by the applier, not here.
    """
    incoming = list(spans)
    unique = dedupe_spans(incoming)
    ranked = sorted(
        enumerate(unique),
        key=lambda item: (-item[1].priority, -len(item[1].normalized), item[0]),
    )

    accepted: list[tuple[int, Span]] = []
    for position, span in ranked:
        if any(spans_overlap(span.text, other.text) for _, other in accepted):
            continue
        accepted.append((position, span))

    accepted.sort(key=lambda item: item[0])
    resolved = [span for _, span in accepted]
    logger.debug("Resolved conflicts: %d → %d unique → %d spans", len(incoming), len(unique), len(resolved))
    return resolved


class ConflictResolver:
    """Stateless wrapper kept for symmetry with the other pipeline stages."""

    def resolve(self, spans: Iterable[Span]) -> list[Span]:
        return resolve_conflicts(spans)
