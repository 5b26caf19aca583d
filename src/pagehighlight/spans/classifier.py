# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Classifier boundary: payload schema, response parsing, prompt adapter.

The classifier is an external service returning ``{tier: [phrase, ...]}``.
Replies are loosely typed model output, so parsing is lenient about shape
and strict about content:
- code fences and prose around the JSON object are stripped
- a tier key that is missing or not an array counts as empty
- elements that are not strings, or trim to <= 2 chars, are dropped
Only a reply with no parsable JSON object raises ``ClassificationError``.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Awaitable, Mapping
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from pagehighlight import Span, Tier
from pagehighlight.errors import ClassificationError

logger = logging.getLogger(__name__)

_MIN_PHRASE_CHARS = 3  # phrases trimming to 2 chars or fewer are noise

_CLASSIFY_TEMPERATURE = 0.1
_CLASSIFY_MAX_TOKENS = 2048

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


class ClassifierPayload(BaseModel):
    """Tiered phrase lists; current five-tier keys plus legacy ``low``."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    critical: list[str] = []
    high: list[str] = []
    medium_high: list[str] = []
    medium: list[str] = []
    supporting: list[str] = []
    low: list[str] = []

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_phrases(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        phrases = []
        for item in value:
            if not isinstance(item, str):
                continue
            text = item.strip()
            if len(text) >= _MIN_PHRASE_CHARS:
                phrases.append(text)
        return phrases

    def to_spans(self) -> list[Span]:
        """Flatten to spans, highest tier first, classifier order within a tier."""
        spans: list[Span] = []
        for tier in Tier:
            spans.extend(Span(text=text, tier=tier) for text in getattr(self, tier.value))
        return spans

    @property
    def is_empty(self) -> bool:
        return not any(getattr(self, tier.value) for tier in Tier)


def spans_from_payload(data: Mapping[str, Any]) -> list[Span]:
    """Spans from an already-decoded payload mapping."""
    try:
        payload = ClassifierPayload.model_validate(dict(data))
    except ValidationError as e:
        raise ClassificationError(f"Invalid classifier payload: {e.error_count()} error(s)") from e
    return payload.to_spans()


def parse_classifier_response(raw: str) -> list[Span]:
    """Parse raw classifier text into spans.

    Raises:
        ClassificationError: If no JSON object can be decoded from *raw*.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise ClassificationError("Empty classifier response", raw=raw if isinstance(raw, str) else "")

    cleaned = _FENCE_RE.sub("", raw).strip()
    m = _JSON_OBJECT_RE.search(cleaned)
    if m is None:
        raise ClassificationError("No JSON object in classifier response", raw=raw[:200])
    try:
        data = json.loads(m.group(0))
    except json.JSONDecodeError as e:
        raise ClassificationError(f"Unparsable classifier response: {e.msg}", raw=raw[:200]) from e
    if not isinstance(data, dict):
        raise ClassificationError("Classifier response is not an object", raw=raw[:200])

    spans = spans_from_payload(data)
    logger.debug("Parsed %d span(s) from classifier response", len(spans))
    return spans


# ---------------------------------------------------------------------------
# Classifier protocol + prompt adapter
# ---------------------------------------------------------------------------


class SpanClassifier(Protocol):
    """External service proposing tiered phrases for a text."""

    async def classify(self, text: str) -> list[Span]: ...


class CompletionFn(Protocol):
    """Async text completion: one prompt in, raw model text out."""

    def __call__(self, prompt: str, *, temperature: float, max_tokens: int) -> Awaitable[str]: ...


def build_highlight_prompt(content: str) -> str:
    return (
        "You are an expert content analyst. Analyze this text and identify the most important phrases "
        "and sentences for highlighting. Focus on DISTINCT, NON-OVERLAPPING selections that capture key "
        "information.\n\n"
        f"Text to analyze:\n{content}\n\n"
        "IMPORTANT RULES:\n"
        "1. Select COMPLETE phrases or sentences, not single words\n"
        "2. NO OVERLAPPING selections - each highlight must be completely separate\n"
        "3. Focus on quality over quantity - select only the most important content\n"
        "4. Aim for 20-40 total highlights maximum\n"
        "5. Each selection should be meaningful and distinct\n"
        "6. Copy every selection EXACTLY as it appears in the text\n\n"
        "CATEGORIZATION (5 levels):\n"
        "CRITICAL: Core concepts, main thesis, essential conclusions (5-8 selections)\n"
        "HIGH: Important arguments, key evidence, major points (6-10 selections)\n"
        "MEDIUM-HIGH: Supporting details, explanations, examples (5-8 selections)\n"
        "MEDIUM: Additional context, clarifications (4-8 selections)\n"
        "SUPPORTING: Background info, minor details (3-6 selections)\n\n"
        "Return ONLY a JSON object with this format:\n"
        "{\n"
        '  "critical": ["distinct phrase 1", "distinct phrase 2"],\n'
        '  "high": ["distinct phrase 1", "distinct phrase 2"],\n'
        '  "medium_high": ["distinct phrase 1", "distinct phrase 2"],\n'
        '  "medium": ["distinct phrase 1", "distinct phrase 2"],\n'
        '  "supporting": ["distinct phrase 1", "distinct phrase 2"]\n'
        "}"
    )


class PromptClassifier:
    """``SpanClassifier`` over an LLM completion function."""

    def __init__(self, complete: CompletionFn) -> None:
        self._complete = complete

    async def classify(self, text: str) -> list[Span]:
        prompt = build_highlight_prompt(text)
        try:
            raw = await self._complete(prompt, temperature=_CLASSIFY_TEMPERATURE, max_tokens=_CLASSIFY_MAX_TOKENS)
        except ClassificationError:
            raise
        except Exception as e:
            raise ClassificationError(f"Classifier request failed: {e}") from e
        return parse_classifier_response(raw)
