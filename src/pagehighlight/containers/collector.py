# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Candidate main-content container discovery.

Three strategies, in priority order, de-duplicated by node identity:
  1. Semantic match: article/main tags, role=main, conventional body classes
  2. Ancestor walk: from the start point up to (not including) <body>
  3. Text density: div/section/article with many chars per child element,
     longest text first

Every strategy shares one validity filter (enough text, enough words, has
child elements, not navigation/boilerplate). The first ``max_candidates``
unique nodes win, so strategy 1 results always come first.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from pagehighlight import CandidateContainer
from pagehighlight.config import HighlightConfig
from pagehighlight.content import HEADING_TAGS, ContentNode

logger = logging.getLogger(__name__)

# ---- Strategy 1: (kind, value) in selector order ----
# kind: "tag" = tag name, "role" = role attribute, "class" = class token
_SEMANTIC_MATCHERS: tuple[tuple[str, str], ...] = (
    ("tag", "article"),
    ("tag", "main"),
    ("role", "main"),
    ("class", "article"),
    ("class", "post"),
    ("class", "content"),
    ("class", "entry"),
    ("class", "blog-post"),
    ("class", "article-content"),
    ("class", "post-content"),
    ("class", "entry-content"),
    ("class", "story-content"),
    ("class", "news-content"),
)

# ---- Strategy 2 stop tags ----
_WALK_STOP_TAGS = frozenset({"body", "html"})

# ---- Strategy 3 ----
_DENSE_TAGS = frozenset({"div", "section", "article"})

# ---- Boilerplate block-list (substring match on tag, class, id) ----
_BOILERPLATE_TERMS: tuple[str, ...] = (
    "nav",
    "menu",
    "header",
    "footer",
    "sidebar",
    "aside",
    "widget",
    "comment",
    "social",
    "share",
    "related",
    "recommend",
    "ad",
)


def is_boilerplate(tag: str, class_name: str = "", element_id: str = "") -> bool:
    """Navigation/boilerplate heuristic over tag name, class and id."""
    fields = (tag.lower(), class_name.lower(), element_id.lower())
    for value in fields:
        if not value:
            continue
        if any(term in value for term in _BOILERPLATE_TERMS):
            return True
    return False


def is_valid_candidate(node: ContentNode, config: HighlightConfig | None = None) -> bool:
    """Validity filter applied to every strategy's output."""
    cfg = config or HighlightConfig()
    text = node.text_content().strip()
    if len(text) <= cfg.min_text_length:
        return False
    if len(text.split()) <= cfg.min_word_count:
        return False
    if not node.children():
        return False
    return not is_boilerplate(node.tag, node.class_name, node.element_id)


def describe(node: ContentNode, order: int = 0, preview_chars: int = 300) -> CandidateContainer:
    """Extract the structural features the scorer and oracle work from."""
    text = node.text_content().strip()
    paragraphs = 0
    headings = 0
    for desc in node.iter_descendants():
        if desc.tag == "p":
            paragraphs += 1
        elif desc.tag in HEADING_TAGS:
            headings += 1
    return CandidateContainer(
        ref=node,
        text_length=len(text),
        word_count=len(text.split()),
        child_count=len(node.children()),
        tag_hint=node.tag,
        class_hint=node.class_name,
        id_hint=node.element_id,
        paragraph_count=paragraphs,
        heading_count=headings,
        order=order,
        preview=text[:preview_chars],
    )


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def _matches_semantic(node: ContentNode, kind: str, value: str) -> bool:
    if kind == "tag":
        return node.tag == value
    if kind == "role":
        return node.get("role").strip().lower() == value
    return value in node.class_name.split()


def _semantic_nodes(root: ContentNode) -> Iterator[ContentNode]:
    # One full pass per selector, matching querySelectorAll order per selector.
    for kind, value in _SEMANTIC_MATCHERS:
        for node in _with_self(root):
            if _matches_semantic(node, kind, value):
                yield node


def _ancestor_nodes(start: ContentNode) -> Iterator[ContentNode]:
    current: ContentNode | None = start
    while current is not None and current.tag not in _WALK_STOP_TAGS:
        yield current
        current = current.parent()


def _text_dense_nodes(root: ContentNode, config: HighlightConfig) -> list[ContentNode]:
    scored: list[tuple[int, ContentNode]] = []
    for node in _with_self(root):
        if node.tag not in _DENSE_TAGS:
            continue
        raw = node.text_content()
        text_length = len(raw.strip())
        child_count = len(node.children())
        if child_count == 0 or text_length <= config.dense_min_length:
            continue
        if text_length / child_count > config.dense_min_ratio:
            scored.append((len(raw), node))
    scored.sort(key=lambda item: item[0], reverse=True)  # stable: document order on ties
    return [node for _, node in scored]


def _with_self(root: ContentNode) -> Iterator[ContentNode]:
    yield root
    yield from root.iter_descendants()


# ---------------------------------------------------------------------------
# Collector
# ---------------------------------------------------------------------------


def collect_candidates(start: ContentNode, config: HighlightConfig | None = None) -> list[CandidateContainer]:
    """Enumerate up to ``max_candidates`` plausible containers for *start*."""
    cfg = config or HighlightConfig()
    root = start.root()
    seen: set[ContentNode] = set()
    found: list[CandidateContainer] = []

    def _strategies() -> Iterator[tuple[str, ContentNode]]:
        for node in _semantic_nodes(root):
            yield "semantic", node
        for node in _ancestor_nodes(start):
            yield "ancestor", node
        for node in _text_dense_nodes(root, cfg):
            yield "density", node

    for strategy, node in _strategies():
        if node in seen:
            continue
        seen.add(node)
        if not is_valid_candidate(node, cfg):
            continue
        found.append(describe(node, order=len(found), preview_chars=cfg.preview_chars))
        logger.debug("Candidate %d via %s: <%s class=%r>", len(found) - 1, strategy, node.tag, node.class_name)
        if len(found) >= cfg.max_candidates:
            break

    logger.debug("Collected %d container candidate(s)", len(found))
    return found


class CandidateCollector:
    """Configured wrapper around :func:`collect_candidates`."""

    def __init__(self, config: HighlightConfig | None = None) -> None:
        self.config = config or HighlightConfig()

    def collect(self, start: ContentNode) -> list[CandidateContainer]:
        return collect_candidates(start, self.config)
