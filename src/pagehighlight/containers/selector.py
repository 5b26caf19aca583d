# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Container selection strategies.

Two implementations of one interface, chosen by configuration:
- HeuristicSelector: highest structural score, discovery order on ties
- OracleSelector: asks an external oracle, bounded by a timeout, and falls back
  to the heuristic on timeout, error, or an out-of-range index

Zero candidates → the start point itself; one candidate → that candidate.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from pagehighlight import CandidateContainer
from pagehighlight.config import HighlightConfig
from pagehighlight.containers.oracle import ContainerOracle
from pagehighlight.containers.scorer import rank_candidates
from pagehighlight.content import ContentNode
from pagehighlight.errors import OracleError, OracleTimeout

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ContainerChoice:
    """Chosen container plus how it was chosen."""

    node: ContentNode
    method: str  # "start_point" | "single" | "oracle" | "heuristic"
    candidate: CandidateContainer | None = None
    ranked: tuple[CandidateContainer, ...] = field(default=())
    fallback_reason: str = ""


class ContainerSelector(Protocol):
    async def select(self, start: ContentNode, candidates: Sequence[CandidateContainer]) -> ContainerChoice: ...


def _trivial_choice(start: ContentNode, candidates: Sequence[CandidateContainer]) -> ContainerChoice | None:
    if not candidates:
        logger.debug("No container candidates, using start point <%s>", start.tag)
        return ContainerChoice(node=start, method="start_point")
    if len(candidates) == 1:
        return ContainerChoice(node=candidates[0].ref, method="single", candidate=candidates[0])
    return None


class HeuristicSelector:
    """Deterministic selection by :func:`rank_candidates`."""

    def choose(
        self,
        start: ContentNode,
        candidates: Sequence[CandidateContainer],
        *,
        fallback_reason: str = "",
    ) -> ContainerChoice:
        trivial = _trivial_choice(start, candidates)
        if trivial is not None:
            return trivial
        ranked = tuple(rank_candidates(candidates))
        best = ranked[0]
        logger.debug("Heuristic picked <%s class=%r> score=%.1f", best.tag_hint, best.class_hint, best.score)
        return ContainerChoice(
            node=best.ref,
            method="heuristic",
            candidate=best,
            ranked=ranked,
            fallback_reason=fallback_reason,
        )

    async def select(self, start: ContentNode, candidates: Sequence[CandidateContainer]) -> ContainerChoice:
        return self.choose(start, candidates)


class OracleSelector:
    """Oracle-first selection with the heuristic as deterministic fallback."""

    def __init__(
        self,
        oracle: ContainerOracle,
        *,
        timeout: float = 10.0,
        preview_chars: int = 300,
        fallback: HeuristicSelector | None = None,
    ) -> None:
        self._oracle = oracle
        self._timeout = timeout
        self._preview_chars = preview_chars
        self._fallback = fallback or HeuristicSelector()

    async def select(self, start: ContentNode, candidates: Sequence[CandidateContainer]) -> ContainerChoice:
        trivial = _trivial_choice(start, candidates)
        if trivial is not None:
            return trivial
        try:
            index = await self._ask(candidates)
        except OracleError as e:
            logger.warning("Container oracle failed, using heuristic: %s", e)
            return self._fallback.choose(start, candidates, fallback_reason=str(e))

        chosen = candidates[index]
        logger.info("Oracle selected container %d: <%s class=%r>", index, chosen.tag_hint, chosen.class_hint)
        return ContainerChoice(node=chosen.ref, method="oracle", candidate=chosen)

    async def _ask(self, candidates: Sequence[CandidateContainer]) -> int:
        summaries = [c.summary(i, self._preview_chars) for i, c in enumerate(candidates)]
        try:
            index = await asyncio.wait_for(self._oracle.select_best(summaries), timeout=self._timeout)
        except TimeoutError:
            raise OracleTimeout(f"Oracle timed out after {self._timeout}s", timeout=self._timeout) from None
        except OracleError:
            raise
        except Exception as e:
            raise OracleError(f"Oracle raised {type(e).__name__}: {e}") from e

        if isinstance(index, bool) or not isinstance(index, int):
            raise OracleError(f"Oracle returned non-integer index {index!r}")
        if not 0 <= index < len(candidates):
            raise OracleError(f"Oracle index {index} out of range for {len(candidates)} candidates")
        return index


def build_selector(config: HighlightConfig, oracle: ContainerOracle | None = None) -> ContainerSelector:
    """Oracle-backed selector when configured and supplied, heuristic otherwise."""
    if config.use_oracle and oracle is not None:
        return OracleSelector(oracle, timeout=config.oracle_timeout, preview_chars=config.preview_chars)
    return HeuristicSelector()
