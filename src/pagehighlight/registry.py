# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""In-memory highlight registry: identity tracking, removal, interaction binding.

Maps highlight id → (AppliedHighlight, wrapper element, handlers). Removing a
highlight unwraps its element in place: the wrapper disappears and its text
merges back into the neighbouring text slots, so the container serializes
exactly as it did before that highlight was applied.

Removal tolerates external mutation. An entry whose element was detached
from the tree (or re-wrapped by someone else) is dropped from the registry
without touching the tree.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

import lxml.html

from pagehighlight import AppliedHighlight
from pagehighlight.content import ContentNode

logger = logging.getLogger(__name__)

HIGHLIGHT_ID_ATTR = "data-highlight-id"

Handler = Callable[[AppliedHighlight], None]


def is_highlight_element(el: lxml.html.HtmlElement) -> bool:
    return isinstance(el.tag, str) and el.get(HIGHLIGHT_ID_ATTR) is not None


def enclosing_highlight(el: lxml.html.HtmlElement) -> lxml.html.HtmlElement | None:
    """The highlight wrapper containing *el* (or *el* itself), if any."""
    current = el
    while current is not None:
        if is_highlight_element(current):
            return current
        current = current.getparent()
    return None


@dataclass(slots=True)
class _Entry:
    highlight: AppliedHighlight
    element: lxml.html.HtmlElement
    handlers: list[Handler] = field(default_factory=list)


class HighlightRegistry:
    """Process-local registry of applied highlights for one session."""

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, highlight_id: object) -> bool:
        return highlight_id in self._entries

    def __iter__(self) -> Iterator[AppliedHighlight]:
        return iter([entry.highlight for entry in self._entries.values()])

    def add(self, highlight: AppliedHighlight, element: lxml.html.HtmlElement) -> None:
        if highlight.id in self._entries:
            raise ValueError(f"Duplicate highlight id: {highlight.id}")
        self._entries[highlight.id] = _Entry(highlight=highlight, element=element)

    def get(self, highlight_id: str) -> AppliedHighlight | None:
        entry = self._entries.get(highlight_id)
        return entry.highlight if entry else None

    def element_of(self, highlight_id: str) -> lxml.html.HtmlElement | None:
        entry = self._entries.get(highlight_id)
        return entry.element if entry else None

    def for_container(self, container: ContentNode) -> list[AppliedHighlight]:
        return [e.highlight for e in self._entries.values() if e.highlight.container_ref == container]

    def active_texts(self, container: ContentNode) -> set[str]:
        """Normalized texts currently highlighted in *container*."""
        return {h.text.strip().lower() for h in self.for_container(container)}

    # ---- interaction ----

    def bind(self, highlight_id: str, handler: Handler) -> None:
        """Register an interaction handler, run when the highlight is activated.

        Raises:
            KeyError: If *highlight_id* is not registered.
        """
        self._entries[highlight_id].handlers.append(handler)

    def activate(self, highlight_id: str) -> bool:
        """Click semantics: remove the highlight, then notify its handlers.

        Returns False for an unknown id.
        """
        entry = self._entries.get(highlight_id)
        if entry is None:
            return False
        self.remove(highlight_id)
        for handler in entry.handlers:
            handler(entry.highlight)
        return True

    # ---- removal ----

    def remove(self, highlight_id: str) -> bool:
        """Unwrap one highlight and forget it. Returns False for an unknown id."""
        entry = self._entries.pop(highlight_id, None)
        if entry is None:
            return False
        if not _unwrap(entry.element, highlight_id):
            logger.debug("Highlight %s no longer in the tree, dropped from registry", highlight_id)
        return True

    def clear(self, container: ContentNode | None = None) -> int:
        """Remove every highlight (or every highlight in *container*); returns the count."""
        ids = [
            hid
            for hid, entry in self._entries.items()
            if container is None or entry.highlight.container_ref == container
        ]
        # Reverse application order so nested-position unwraps never see a stale parent.
        for hid in reversed(ids):
            self.remove(hid)
        if ids:
            logger.info("Cleared %d highlight(s)", len(ids))
        return len(ids)

    def snapshot(self) -> list[dict[str, str]]:
        """Plain-data view of every active highlight, for external persistence."""
        return [
            {
                "id": h.id,
                "text": h.text,
                "tier": h.tier.value,
                "container": h.container_ref.path(),
                "created_at": h.created_at.isoformat(),
            }
            for h in self
        ]


def _unwrap(element: lxml.html.HtmlElement, highlight_id: str) -> bool:
    if element.getparent() is None:
        return False
    if element.get(HIGHLIGHT_ID_ATTR) != highlight_id:
        return False
    element.drop_tag()
    return True
