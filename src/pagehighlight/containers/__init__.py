# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Main-content container discovery, scoring and selection."""

from __future__ import annotations

from pagehighlight.containers.collector import (
    CandidateCollector,
    collect_candidates,
    describe,
    is_boilerplate,
    is_valid_candidate,
)
from pagehighlight.containers.oracle import ContainerOracle, PromptOracle
from pagehighlight.containers.scorer import best_candidate, rank_candidates, score_candidate
from pagehighlight.containers.selector import (
    ContainerChoice,
    ContainerSelector,
    HeuristicSelector,
    OracleSelector,
    build_selector,
)

__all__ = [
    "CandidateCollector",
    "ContainerChoice",
    "ContainerOracle",
    "ContainerSelector",
    "HeuristicSelector",
    "OracleSelector",
    "PromptOracle",
    "best_candidate",
    "build_selector",
    "collect_candidates",
    "describe",
    "is_boilerplate",
    "is_valid_candidate",
    "rank_candidates",
    "score_candidate",
]
