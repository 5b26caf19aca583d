# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Immutable engine configuration with environment overrides."""

from __future__ import annotations

import dataclasses
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_ENV_PREFIX = "PAGEHIGHLIGHT_"
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True, slots=True)
class HighlightConfig:
    """Thresholds and time budgets for one highlighting session."""

    classify_timeout: float = 30.0  # seconds, external classifier call
    oracle_timeout: float = 10.0  # seconds, container oracle call
    use_oracle: bool = True  # only effective when an oracle is supplied
    max_candidates: int = 5
    min_text_length: int = 200  # candidate validity: stripped chars, exclusive
    min_word_count: int = 30  # candidate validity: words, exclusive
    dense_min_ratio: float = 100.0  # text-density scan: chars per child element
    dense_min_length: int = 500  # text-density scan: absolute chars
    preview_chars: int = 300  # oracle preview length
    min_selection_chars: int = 5  # selections at or below this are ignored

    def __post_init__(self) -> None:
        if self.classify_timeout <= 0:
            raise ValueError(f"classify_timeout must be > 0, got {self.classify_timeout}")
        if self.oracle_timeout <= 0:
            raise ValueError(f"oracle_timeout must be > 0, got {self.oracle_timeout}")
        if self.max_candidates <= 0:
            raise ValueError(f"max_candidates must be > 0, got {self.max_candidates}")
        if self.min_text_length < 0:
            raise ValueError(f"min_text_length must be >= 0, got {self.min_text_length}")
        if self.min_word_count < 0:
            raise ValueError(f"min_word_count must be >= 0, got {self.min_word_count}")
        if self.dense_min_ratio <= 0:
            raise ValueError(f"dense_min_ratio must be > 0, got {self.dense_min_ratio}")
        if self.dense_min_length < 0:
            raise ValueError(f"dense_min_length must be >= 0, got {self.dense_min_length}")
        if self.preview_chars <= 0:
            raise ValueError(f"preview_chars must be > 0, got {self.preview_chars}")
        if self.min_selection_chars < 0:
            raise ValueError(f"min_selection_chars must be >= 0, got {self.min_selection_chars}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> HighlightConfig:
        """Build a config from ``PAGEHIGHLIGHT_*`` variables; blank values are ignored.

        Raises:
            ValueError: If a variable is present but cannot be parsed.
        """
        env = os.environ if environ is None else environ
        values: dict = {}

        for name, parse in (
            ("classify_timeout", float),
            ("oracle_timeout", float),
            ("max_candidates", int),
            ("use_oracle", _parse_bool),
        ):
            raw = env.get(_ENV_PREFIX + name.upper(), "").strip()
            if not raw:
                continue
            try:
                values[name] = parse(raw)
            except ValueError as e:
                raise ValueError(f"{_ENV_PREFIX}{name.upper()}: {e}") from None

        values.update(overrides)
        if values:
            logger.debug("Config overrides: %s", sorted(values))
        return cls(**values)

    def replace(self, **changes) -> HighlightConfig:
        return dataclasses.replace(self, **changes)


def _parse_bool(raw: str) -> bool:
    low = raw.lower()
    if low in _TRUE_VALUES:
        return True
    if low in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean {raw!r}")
