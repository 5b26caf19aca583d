# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""LLM-backed container oracle.

Renders candidate summaries into a prompt, sends it through a caller-supplied
completion function and reads a bare zero-based index back. Any failure is
raised as ``OracleError``; the selector owns the fallback.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Protocol

from pagehighlight import CandidateSummary
from pagehighlight.errors import OracleError
from pagehighlight.spans.classifier import CompletionFn

logger = logging.getLogger(__name__)

_ORACLE_TEMPERATURE = 0.1
_ORACLE_MAX_TOKENS = 50

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


class ContainerOracle(Protocol):
    """External decision service picking one candidate by index."""

    async def select_best(self, candidates: Sequence[CandidateSummary]) -> int: ...


def build_oracle_prompt(candidates: Sequence[CandidateSummary]) -> str:
    blocks = []
    for info in candidates:
        blocks.append(
            f"Container {info.index}:\n"
            f"- Tag: <{info.tag}>\n"
            f'- Class: "{info.class_name}"\n'
            f'- ID: "{info.element_id}"\n'
            f"- Text length: {info.text_length} characters\n"
            f"- Word count: {info.word_count} words\n"
            f"- Children: {info.child_count} elements\n"
            f'- Content preview: "{info.preview_text}"'
        )
    listing = "\n\n".join(blocks)
    return (
        "You are an expert at identifying article content on web pages. "
        f"I have {len(candidates)} potential containers that might contain the main article content. "
        "Analyze them and select the BEST ONE that contains the main article/blog post/news story content.\n\n"
        f"Container options:\n\n{listing}\n\n"
        "SELECTION CRITERIA:\n"
        "1. Contains main article/story content (not navigation, sidebar, comments, etc.)\n"
        "2. Has substantial readable text (paragraphs, not just links/menus)\n"
        "3. Likely to be the primary content the user came to read\n"
        "4. Not advertisements, headers, footers, or navigation\n\n"
        "Respond with ONLY the index number (0, 1, 2, etc.) of the best container. No explanation needed."
    )


def parse_oracle_index(raw: str) -> int:
    """Read the leading integer of an oracle reply.

    Raises:
        OracleError: If the reply does not start with an integer.
    """
    m = _LEADING_INT_RE.match(raw or "")
    if m is None:
        raise OracleError(f"Oracle reply is not an index: {raw[:40]!r}")
    return int(m.group(1))


class PromptOracle:
    """``ContainerOracle`` over an LLM completion function."""

    def __init__(self, complete: CompletionFn) -> None:
        self._complete = complete

    async def select_best(self, candidates: Sequence[CandidateSummary]) -> int:
        prompt = build_oracle_prompt(candidates)
        try:
            raw = await self._complete(prompt, temperature=_ORACLE_TEMPERATURE, max_tokens=_ORACLE_MAX_TOKENS)
        except OracleError:
            raise
        except Exception as e:
            raise OracleError(f"Oracle request failed: {e}") from e
        index = parse_oracle_index(raw)
        logger.debug("Oracle picked index %d of %d", index, len(candidates))
        return index
