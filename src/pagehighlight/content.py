# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Content-tree abstraction and its lxml adapter.

Container discovery and scoring only read the tree through ``ContentNode``;
a host UI adapts its live rendering tree to that protocol. ``LxmlNode`` is
the bundled adapter over ``lxml.html`` and is also what the span applier
mutates, since annotation needs real text slots to split.

Node identity is element identity: two ``LxmlNode`` wrappers compare equal
only when they wrap the same lxml element.
"""

from __future__ import annotations

import html as html_lib
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import lxml.html
from lxml import etree

from pagehighlight.errors import ContentError

logger = logging.getLogger(__name__)

HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})


@runtime_checkable
class ContentNode(Protocol):
    """Read-only view of one element in a page's content tree."""

    @property
    def tag(self) -> str: ...

    @property
    def class_name(self) -> str: ...

    @property
    def element_id(self) -> str: ...

    def get(self, name: str, default: str = "") -> str: ...

    def text_content(self) -> str: ...

    def children(self) -> list[ContentNode]: ...

    def parent(self) -> ContentNode | None: ...

    def iter_descendants(self) -> Iterator[ContentNode]: ...

    def root(self) -> ContentNode: ...

    def path(self) -> str: ...


@dataclass(frozen=True, slots=True)
class LxmlNode:
    """``ContentNode`` over an ``lxml.html`` element."""

    element: lxml.html.HtmlElement

    @property
    def tag(self) -> str:
        tag = self.element.tag
        return tag.lower() if isinstance(tag, str) else ""

    @property
    def class_name(self) -> str:
        return self.element.get("class") or ""

    @property
    def element_id(self) -> str:
        return self.element.get("id") or ""

    def get(self, name: str, default: str = "") -> str:
        value = self.element.get(name)
        return default if value is None else value

    def text_content(self) -> str:
        return self.element.text_content()

    def children(self) -> list[LxmlNode]:
        return [LxmlNode(child) for child in self.element if isinstance(child.tag, str)]

    def parent(self) -> LxmlNode | None:
        parent = self.element.getparent()
        return LxmlNode(parent) if parent is not None else None

    def iter_descendants(self) -> Iterator[LxmlNode]:
        """Element descendants in document order (comments and PIs skipped)."""
        for el in self.element.iterdescendants():
            if isinstance(el.tag, str):
                yield LxmlNode(el)

    def root(self) -> LxmlNode:
        return LxmlNode(self.element.getroottree().getroot())

    def path(self) -> str:
        return self.element.getroottree().getpath(self.element)

    def inner_markup(self) -> str:
        """Serialized children, without the element's own tag."""
        el = self.element
        parts = [html_lib.escape(el.text, quote=False)] if el.text else []
        parts.extend(lxml.html.tostring(child, encoding="unicode") for child in el)
        return "".join(parts)


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def parse_document(html: str) -> LxmlNode:
    """Parse a full HTML document and return its root ``<html>`` node."""
    if not html or not html.strip():
        raise ContentError("Document is empty")
    try:
        doc = lxml.html.document_fromstring(html)
    except (etree.ParserError, ValueError) as e:
        raise ContentError(f"Cannot parse document: {e}") from e
    return LxmlNode(doc)


def parse_fragment(markup: str) -> LxmlNode:
    """Parse an opaque markup string into a detached ``<div>`` wrapper node."""
    try:
        wrapper = lxml.html.fragment_fromstring(markup or "", create_parent="div")
    except (etree.ParserError, ValueError) as e:
        raise ContentError(f"Cannot parse fragment: {e}") from e
    return LxmlNode(wrapper)


def body_of(node: LxmlNode) -> LxmlNode:
    """Return the document ``<body>``, or the root when there is none."""
    root = node.root()
    body = root.element.find(".//body")
    return LxmlNode(body) if body is not None else root


def find_start_point(node: LxmlNode, needle: str) -> LxmlNode | None:
    """Deepest element under *node* whose text contains *needle* (case-insensitive).

    Descends through the first matching child at each level, which mirrors
    the common ancestor of a user selection of *needle*.
    """
    target = " ".join(needle.split()).lower()
    if not target:
        return None

    def _contains(n: LxmlNode) -> bool:
        return target in " ".join(n.text_content().split()).lower()

    if not _contains(node):
        return None
    current = node
    while True:
        nxt = next((child for child in current.children() if _contains(child)), None)
        if nxt is None:
            return current
        current = nxt
