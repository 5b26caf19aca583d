# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for classifier payload parsing and the prompt classifier adapter."""

from __future__ import annotations

import json

import pytest

from pagehighlight import Tier
from pagehighlight.errors import ClassificationError
from pagehighlight.spans.classifier import (
    ClassifierPayload,
    PromptClassifier,
    build_highlight_prompt,
    parse_classifier_response,
    spans_from_payload,
)
from tests._highlight_helpers import FakeCompletion

# ---------------------------------------------------------------------------
# Payload schema
# ---------------------------------------------------------------------------


class TestClassifierPayload:
    def test_all_tiers(self):
        payload = ClassifierPayload.model_validate(
            {
                "critical": ["main thesis here"],
                "high": ["key evidence"],
                "medium_high": ["an example"],
                "medium": ["some context"],
                "supporting": ["background"],
            }
        )
        spans = payload.to_spans()
        assert [s.tier for s in spans] == [Tier.CRITICAL, Tier.HIGH, Tier.MEDIUM_HIGH, Tier.MEDIUM, Tier.SUPPORTING]
        assert [s.priority for s in spans] == [5, 4, 3, 2, 1]

    def test_legacy_keys(self):
        spans = spans_from_payload({"high": ["alpha phrase"], "medium": ["beta phrase"], "low": ["gamma phrase"]})
        assert [(s.text, s.tier) for s in spans] == [
            ("alpha phrase", Tier.HIGH),
            ("beta phrase", Tier.MEDIUM),
            ("gamma phrase", Tier.LOW),
        ]
        assert spans[-1].priority == 1

    def test_missing_and_non_array_tiers_empty(self):
        payload = ClassifierPayload.model_validate({"critical": "not a list", "high": None, "medium": {"a": 1}})
        assert payload.is_empty
        assert payload.to_spans() == []

    def test_non_string_and_short_items_dropped(self):
        spans = spans_from_payload({"critical": ["ok phrase", 42, None, "ab", "  xy  ", "abc", ["nested"]]})
        assert [s.text for s in spans] == ["ok phrase", "abc"]

    def test_items_trimmed(self):
        (only,) = spans_from_payload({"high": ["   padded phrase \n"]})
        assert only.text == "padded phrase"

    def test_unknown_keys_ignored(self):
        assert spans_from_payload({"summary": ["whatever text"], "critical": []}) == []

    def test_order_within_tier_kept(self):
        spans = spans_from_payload({"medium": ["first one", "second one", "third one"]})
        assert [s.text for s in spans] == ["first one", "second one", "third one"]


# ---------------------------------------------------------------------------
# Raw response parsing
# ---------------------------------------------------------------------------


class TestParseClassifierResponse:
    def test_plain_json(self):
        spans = parse_classifier_response(json.dumps({"critical": ["The cell is the basic unit of life"]}))
        assert spans[0].tier == Tier.CRITICAL

    def test_code_fenced(self):
        raw = '```json\n{"high": ["mitochondria produce energy"]}\n```'
        (only,) = parse_classifier_response(raw)
        assert only.text == "mitochondria produce energy"

    def test_prose_around_object(self):
        raw = 'Here are the highlights:\n{"medium": ["cell theory"]}\nHope this helps!'
        assert [s.text for s in parse_classifier_response(raw)] == ["cell theory"]

    def test_object_without_tiers_is_empty(self):
        assert parse_classifier_response('{"note": "nothing useful"}') == []

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "   ",
            "I could not find anything.",
            "{not: valid json}",
            '["critical", "high"]',
        ],
    )
    def test_unparsable_raises(self, raw: str):
        with pytest.raises(ClassificationError):
            parse_classifier_response(raw)

    def test_error_keeps_raw_excerpt(self):
        with pytest.raises(ClassificationError) as exc_info:
            parse_classifier_response("no json here")
        assert exc_info.value.raw == "no json here"


# ---------------------------------------------------------------------------
# Prompt adapter
# ---------------------------------------------------------------------------


class TestPromptClassifier:
    def test_prompt_contains_text_and_format(self):
        prompt = build_highlight_prompt("Cells are small.")
        assert "Text to analyze:\nCells are small." in prompt
        assert '"medium_high"' in prompt
        assert "NO OVERLAPPING" in prompt

    @pytest.mark.asyncio
    async def test_classify(self):
        complete = FakeCompletion('```json\n{"critical": ["basic unit of life"]}\n```')
        spans = await PromptClassifier(complete).classify("The cell is the basic unit of life.")
        assert [(s.text, s.tier) for s in spans] == [("basic unit of life", Tier.CRITICAL)]
        (call,) = complete.calls
        assert call["temperature"] == 0.1
        assert call["max_tokens"] == 2048

    @pytest.mark.asyncio
    async def test_transport_error_wrapped(self):
        classifier = PromptClassifier(FakeCompletion(error=TimeoutError("slow")))
        with pytest.raises(ClassificationError, match="Classifier request failed"):
            await classifier.classify("text")

    @pytest.mark.asyncio
    async def test_bad_reply_raises(self):
        with pytest.raises(ClassificationError):
            await PromptClassifier(FakeCompletion("sorry")).classify("text")
