# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for span deduplication and containment-overlap resolution."""

from __future__ import annotations

from pagehighlight import Tier
from pagehighlight.spans.resolver import ConflictResolver, dedupe_spans, resolve_conflicts, spans_overlap
from tests._highlight_helpers import span


class TestSpansOverlap:
    def test_containment_either_way(self):
        assert spans_overlap("basic unit", "The cell is the basic unit of life")
        assert spans_overlap("The cell is the basic unit of life", "basic unit")

    def test_case_and_padding_ignored(self):
        assert spans_overlap("  BASIC Unit ", "the basic unit of life")

    def test_disjoint(self):
        assert not spans_overlap("mitochondria produce energy", "basic unit of life")


class TestDedupe:
    def test_highest_priority_kept(self):
        out = dedupe_spans([span("Energy", Tier.MEDIUM), span("energy", Tier.CRITICAL)])
        assert [(s.text, s.tier) for s in out] == [("energy", Tier.CRITICAL)]

    def test_equal_priority_first_seen_kept(self):
        out = dedupe_spans([span("Cell theory", Tier.SUPPORTING), span("cell theory", Tier.LOW)])
        assert [(s.text, s.tier) for s in out] == [("Cell theory", Tier.SUPPORTING)]

    def test_blank_dropped(self):
        assert dedupe_spans([span("   ", Tier.HIGH)]) == []


class TestResolveConflicts:
    def test_cell_biology_example(self):
        spans = [
            span("The cell is the basic unit of life", Tier.CRITICAL),
            span("basic unit of life", Tier.MEDIUM),
            span("mitochondria produce energy", Tier.HIGH),
        ]
        out = resolve_conflicts(spans)
        assert [s.text for s in out] == ["The cell is the basic unit of life", "mitochondria produce energy"]

    def test_higher_priority_substring_beats_longer_text(self):
        out = resolve_conflicts(
            [span("The cell is the basic unit of life", Tier.MEDIUM), span("basic unit", Tier.HIGH)]
        )
        assert [s.text for s in out] == ["basic unit"]

    def test_equal_priority_longer_wins(self):
        out = resolve_conflicts([span("unit of life", Tier.HIGH), span("the basic unit of life", Tier.HIGH)])
        assert [s.text for s in out] == ["the basic unit of life"]

    def test_order_independent_winner(self):
        a = span("unit of life", Tier.HIGH)
        b = span("the basic unit of life", Tier.HIGH)
        assert resolve_conflicts([a, b]) == resolve_conflicts([b, a])

    def test_greedy_not_maximum_cardinality(self):
        # One CRITICAL span that contains two lower spans wins over both.
        out = resolve_conflicts(
            [
                span("cells divide and grow", Tier.CRITICAL),
                span("cells divide", Tier.MEDIUM),
                span("and grow", Tier.MEDIUM),
            ]
        )
        assert [s.text for s in out] == ["cells divide and grow"]

    def test_chain_resolution(self):
        # "c" is dropped by "b", which is dropped by "a"; "c" does not come back.
        out = resolve_conflicts(
            [
                span("alpha beta gamma", Tier.CRITICAL),
                span("beta gamma", Tier.HIGH),
                span("gamma", Tier.MEDIUM),
            ]
        )
        assert [s.text for s in out] == ["alpha beta gamma"]

    def test_duplicates_then_overlaps(self):
        out = resolve_conflicts(
            [
                span("energy", Tier.SUPPORTING),
                span("ENERGY", Tier.HIGH),
                span("mitochondria produce energy", Tier.MEDIUM),
            ]
        )
        assert [(s.text, s.tier) for s in out] == [("ENERGY", Tier.HIGH)]

    def test_output_keeps_first_seen_order(self):
        out = resolve_conflicts(
            [
                span("zeta phrase", Tier.SUPPORTING),
                span("alpha phrase", Tier.CRITICAL),
                span("mid phrase", Tier.MEDIUM),
            ]
        )
        assert [s.text for s in out] == ["zeta phrase", "alpha phrase", "mid phrase"]

    def test_empty(self):
        assert resolve_conflicts([]) == []

    def test_resolver_wrapper(self):
        spans = [span("energy", Tier.HIGH), span("energy", Tier.LOW)]
        assert ConflictResolver().resolve(spans) == resolve_conflicts(spans)
