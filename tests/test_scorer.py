# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for deterministic container scoring and ranking."""

from __future__ import annotations

import pytest

from pagehighlight.containers.scorer import best_candidate, rank_candidates, score_candidate
from tests._highlight_helpers import make_candidate


class TestScoreComponents:
    def test_length_bonus(self):
        assert score_candidate(make_candidate(tag="p", text_length=1234)) == pytest.approx(12.34)

    def test_length_bonus_capped(self):
        assert score_candidate(make_candidate(tag="p", text_length=1_000_000)) == 50.0

    @pytest.mark.parametrize("tag,bonus", [("article", 20), ("main", 15), ("section", 10), ("div", 5), ("p", 0)])
    def test_tag_bonus(self, tag: str, bonus: float):
        assert score_candidate(make_candidate(tag=tag, text_length=0)) == bonus

    @pytest.mark.parametrize(
        "class_name,bonus",
        [
            ("article-body", 15),
            ("blog-post", 15),
            ("main-content", 10),
            ("entry", 10),
            ("story", 10),
            ("news-item", 10),
            ("post-content", 25),
            ("news-article-content", 35),
            ("plain", 0),
        ],
    )
    def test_class_bonus(self, class_name: str, bonus: float):
        assert score_candidate(make_candidate(tag="p", class_name=class_name, text_length=0)) == bonus

    def test_boilerplate_penalty(self):
        clean = score_candidate(make_candidate(tag="div", text_length=0))
        penalized = score_candidate(make_candidate(tag="div", element_id="site-footer", text_length=0))
        assert clean - penalized == 30

    def test_paragraph_and_heading_weights(self):
        c = make_candidate(tag="p", text_length=0, paragraphs=4, headings=2)
        assert score_candidate(c) == 4 * 2 + 2 * 3


class TestRanking:
    def test_article_beats_nav(self):
        nav = make_candidate(tag="nav", text_length=300, word_count=50, order=0)
        article = make_candidate(tag="article", class_name="post-content", text_length=5400, word_count=900, order=1)
        best = best_candidate([nav, article])
        assert best is not None
        assert best.tag_hint == "article"

    def test_ties_keep_discovery_order(self):
        a = make_candidate(tag="div", order=0)
        b = make_candidate(tag="div", order=1)
        ranked = rank_candidates([b, a])
        assert [c.order for c in ranked] == [0, 1]

    def test_scores_filled_in(self):
        ranked = rank_candidates([make_candidate(tag="main", text_length=500)])
        assert ranked[0].score == pytest.approx(20.0)

    def test_input_not_mutated(self):
        c = make_candidate(tag="article")
        rank_candidates([c])
        assert c.score == 0.0

    def test_deterministic_across_runs(self):
        candidates = [
            make_candidate(tag="div", class_name="content", text_length=2000, paragraphs=3, order=0),
            make_candidate(tag="section", text_length=2500, order=1),
            make_candidate(tag="article", text_length=800, headings=1, order=2),
        ]
        first = [c.order for c in rank_candidates(candidates)]
        for _ in range(10):
            assert [c.order for c in rank_candidates(candidates)] == first

    def test_empty(self):
        assert best_candidate([]) is None
        assert rank_candidates([]) == []
