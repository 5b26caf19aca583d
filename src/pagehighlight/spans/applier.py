# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Span application: wrap every literal occurrence of each span in a highlight.

Works on text slots (``el.text`` / ``el.tail``) of an lxml subtree rather than
on serialized markup, so a match can never land inside a tag or attribute and
every match is counted exactly once:

  1. Spans are applied longest text first.
  2. For each span, the container's text slots are snapshotted and the match
     offsets computed on each slot's text.
  3. Each slot is rebuilt as ``text, <span>match</span>, text, ...``.

Text inside existing highlights, ``<script>``/``<style>`` and similar is
never searched, so a shorter span cannot re-annotate a longer one and a
second run over the same container never nests highlights.

A phrase is matched inside one text slot. A phrase that spans inline markup
(``foo <b>bar</b>``) does not match and is reported as skipped.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable, Iterator
from datetime import UTC, datetime

import lxml.html

from pagehighlight import AppliedHighlight, ApplyResult, Span
from pagehighlight.content import LxmlNode, parse_fragment
from pagehighlight.registry import HIGHLIGHT_ID_ATTR, HighlightRegistry, is_highlight_element
from pagehighlight.spans.resolver import spans_overlap
from pagehighlight.text_matcher import TextMatcher

logger = logging.getLogger(__name__)

HIGHLIGHT_CLASS = "ph-highlight"
_SKIP_TAGS = frozenset({"script", "style", "noscript", "template", "textarea", "title"})
_MAX_DEPTH = 64  # deeper subtrees are left unannotated

IdFactory = Callable[[], str]
Clock = Callable[[], datetime]

# (owner element, "text" | "tail")
_Slot = tuple[lxml.html.HtmlElement, str]


def new_highlight_id() -> str:
    return f"ph_{uuid.uuid4().hex[:12]}"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def highlight_attributes(highlight_id: str, tier: str) -> dict[str, str]:
    """Attributes of the annotated form for one occurrence."""
    return {
        "class": f"{HIGHLIGHT_CLASS} ph-tier-{tier}",
        HIGHLIGHT_ID_ATTR: highlight_id,
        "data-tier": tier,
        "title": f"Click to remove (AI: {tier})",
    }


def _searchable(el: lxml.html.HtmlElement) -> bool:
    tag = el.tag
    if not isinstance(tag, str):  # comment / PI
        return False
    return tag.lower() not in _SKIP_TAGS and not is_highlight_element(el)


def _text_slots(el: lxml.html.HtmlElement, depth: int = 0) -> Iterator[_Slot]:
    """Text slots under *el* in document order, skipping excluded subtrees."""
    if el.text:
        yield el, "text"
    for child in el:
        if depth < _MAX_DEPTH and _searchable(child):
            yield from _text_slots(child, depth + 1)
        if child.tail:
            yield child, "tail"


class SpanApplier:
    """Applies resolved spans to a container and registers each occurrence."""

    def __init__(
        self,
        registry: HighlightRegistry,
        *,
        id_factory: IdFactory | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.registry = registry
        self._new_id = id_factory or new_highlight_id
        self._now = clock or _utcnow

    def apply(self, container: LxmlNode, spans: Iterable[Span]) -> ApplyResult:
        """Annotate *container* in place.

        Spans whose text overlaps a highlight already active in this container
        are skipped, so one normalized text is highlighted at most once per
        container no matter how often ``apply`` runs.
        """
        ordered = sorted(spans, key=lambda s: len(s.normalized), reverse=True)  # stable
        active = list(self.registry.active_texts(container))
        result = ApplyResult(markup="")

        for span in ordered:
            if any(spans_overlap(span.text, text) for text in active):
                logger.debug("Span already highlighted in container: %r", span.text[:60])
                result.skipped.append(span.text)
                continue
            matcher = TextMatcher.for_phrase(span.text)
            if matcher is None:
                result.skipped.append(span.text)
                continue
            applied = self._apply_span(container, span, matcher)
            if not applied:
                result.skipped.append(span.text)
                continue
            result.highlights.extend(applied)
            active.append(span.normalized)

        result.markup = container.inner_markup()
        logger.info(
            "Applied %d highlight(s) from %d span(s), %d skipped",
            result.total_applied,
            len(ordered),
            len(result.skipped),
        )
        return result

    def _apply_span(self, container: LxmlNode, span: Span, matcher: TextMatcher) -> list[AppliedHighlight]:
        applied: list[AppliedHighlight] = []
        # Snapshot first: rebuilding a slot adds new tail slots we must not revisit.
        for owner, kind in list(_text_slots(container.element)):
            text = owner.text if kind == "text" else owner.tail
            offsets = matcher.find_all(text or "")
            if offsets:
                applied.extend(self._rebuild_slot(container, owner, kind, text, offsets, span))
        return applied

    def _rebuild_slot(
        self,
        container: LxmlNode,
        owner: lxml.html.HtmlElement,
        kind: str,
        text: str,
        offsets: list[tuple[int, int]],
        span: Span,
    ) -> list[AppliedHighlight]:
        applied: list[AppliedHighlight] = []
        wrappers = []
        for i, (start, end) in enumerate(offsets):
            highlight_id = self._new_id()
            wrapper = container.element.makeelement("span", highlight_attributes(highlight_id, span.tier.value))
            wrapper.text = text[start:end]
            following = offsets[i + 1][0] if i + 1 < len(offsets) else len(text)
            wrapper.tail = text[end:following] or None
            wrappers.append(wrapper)

            highlight = AppliedHighlight(
                id=highlight_id,
                text=wrapper.text,
                tier=span.tier,
                container_ref=container,
                created_at=self._now(),
            )
            self.registry.add(highlight, wrapper)
            applied.append(highlight)

        leading = text[: offsets[0][0]] or None
        if kind == "text":
            owner.text = leading
            for i, wrapper in enumerate(wrappers):
                owner.insert(i, wrapper)
        else:
            owner.tail = leading
            parent = owner.getparent()
            index = parent.index(owner)
            for i, wrapper in enumerate(wrappers, start=1):
                parent.insert(index + i, wrapper)
        return applied


def highlight_markup(
    markup: str,
    spans: Iterable[Span],
    registry: HighlightRegistry | None = None,
) -> ApplyResult:
    """Annotate an opaque markup string and return the annotated markup.

    The markup is parsed, so character references come back as the characters
    they encode (``&nbsp;`` is returned as U+00A0). Only ``&``, ``<`` and ``>`` are
    re-escaped in text.

    Raises:
        ContentError: If *markup* cannot be parsed.
    """
    container = parse_fragment(markup)
    applier = SpanApplier(registry if registry is not None else HighlightRegistry())
    return applier.apply(container, spans)
