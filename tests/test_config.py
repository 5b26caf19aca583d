# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for HighlightConfig validation and environment overrides."""

from __future__ import annotations

import dataclasses

import pytest

from pagehighlight.config import HighlightConfig


class TestDefaults:
    def test_defaults(self):
        cfg = HighlightConfig()
        assert cfg.classify_timeout == 30.0
        assert cfg.oracle_timeout == 10.0
        assert cfg.use_oracle is True
        assert cfg.max_candidates == 5
        assert cfg.min_text_length == 200
        assert cfg.min_word_count == 30
        assert cfg.preview_chars == 300
        assert cfg.min_selection_chars == 5

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            HighlightConfig().max_candidates = 3  # type: ignore[misc]

    def test_replace(self):
        cfg = HighlightConfig().replace(max_candidates=2)
        assert cfg.max_candidates == 2
        assert cfg.classify_timeout == 30.0


class TestValidation:
    @pytest.mark.parametrize(
        "field,value",
        [
            ("classify_timeout", 0),
            ("oracle_timeout", -1.0),
            ("max_candidates", 0),
            ("min_text_length", -1),
            ("min_word_count", -5),
            ("dense_min_ratio", 0),
            ("dense_min_length", -1),
            ("preview_chars", 0),
            ("min_selection_chars", -1),
        ],
    )
    def test_invalid(self, field: str, value):
        with pytest.raises(ValueError, match=field):
            HighlightConfig(**{field: value})


class TestFromEnv:
    def test_reads_variables(self):
        cfg = HighlightConfig.from_env(
            {
                "PAGEHIGHLIGHT_CLASSIFY_TIMEOUT": "12.5",
                "PAGEHIGHLIGHT_ORACLE_TIMEOUT": "3",
                "PAGEHIGHLIGHT_MAX_CANDIDATES": "3",
                "PAGEHIGHLIGHT_USE_ORACLE": "off",
            }
        )
        assert cfg.classify_timeout == 12.5
        assert cfg.oracle_timeout == 3.0
        assert cfg.max_candidates == 3
        assert cfg.use_oracle is False

    @pytest.mark.parametrize("raw", ["1", "true", "YES", "on"])
    def test_truthy(self, raw: str):
        assert HighlightConfig.from_env({"PAGEHIGHLIGHT_USE_ORACLE": raw}).use_oracle is True

    def test_blank_ignored(self):
        cfg = HighlightConfig.from_env({"PAGEHIGHLIGHT_MAX_CANDIDATES": "  "})
        assert cfg.max_candidates == 5

    def test_unparsable_names_variable(self):
        with pytest.raises(ValueError, match="PAGEHIGHLIGHT_MAX_CANDIDATES"):
            HighlightConfig.from_env({"PAGEHIGHLIGHT_MAX_CANDIDATES": "many"})

    def test_bad_boolean(self):
        with pytest.raises(ValueError, match="PAGEHIGHLIGHT_USE_ORACLE"):
            HighlightConfig.from_env({"PAGEHIGHLIGHT_USE_ORACLE": "maybe"})

    def test_out_of_range_still_validated(self):
        with pytest.raises(ValueError, match="classify_timeout"):
            HighlightConfig.from_env({"PAGEHIGHLIGHT_CLASSIFY_TIMEOUT": "0"})

    def test_overrides_win(self):
        cfg = HighlightConfig.from_env({"PAGEHIGHLIGHT_MAX_CANDIDATES": "3"}, max_candidates=4)
        assert cfg.max_candidates == 4

    def test_process_environment(self, monkeypatch):
        monkeypatch.setenv("PAGEHIGHLIGHT_ORACLE_TIMEOUT", "2")
        assert HighlightConfig.from_env().oracle_timeout == 2.0
