# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Page Highlight: tiered key-phrase highlighting for web page content.

Picks the most plausible main-content container on a page and annotates it with
non-overlapping highlight spans proposed by an external classifier:
- containers: candidate discovery, structural scoring, optional oracle tie-break
- spans: classifier payload parsing, conflict resolution, in-place application
- registry: identity tracking so every highlight stays removable
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .content import ContentNode


class Tier(StrEnum):
    """Classifier tier, highest importance first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM_HIGH = "medium_high"
    MEDIUM = "medium"
    SUPPORTING = "supporting"
    LOW = "low"  # legacy three-tier payloads


TIER_PRIORITY: dict[Tier, int] = {
    Tier.CRITICAL: 5,
    Tier.HIGH: 4,
    Tier.MEDIUM_HIGH: 3,
    Tier.MEDIUM: 2,
    Tier.SUPPORTING: 1,
    Tier.LOW: 1,
}


@dataclass(frozen=True, slots=True)
class Span:
    """A classifier-proposed phrase to highlight."""

    text: str
    tier: Tier

    @property
    def priority(self) -> int:
        return TIER_PRIORITY[self.tier]

    @property
    def normalized(self) -> str:
        return self.text.strip().lower()


@dataclass(frozen=True, slots=True)
class CandidateSummary:
    """Bounded description of a candidate container, as shown to an oracle."""

    index: int
    tag: str
    class_name: str
    element_id: str
    text_length: int
    word_count: int
    child_count: int
    preview_text: str


@dataclass(frozen=True, slots=True)
class CandidateContainer:
    """Structural features of one plausible main-content container."""

    ref: ContentNode = field(compare=False)
    text_length: int
    word_count: int
    child_count: int
    tag_hint: str
    class_hint: str
    id_hint: str = ""
    paragraph_count: int = 0
    heading_count: int = 0
    order: int = 0  # discovery index, used as the final tie-break
    preview: str = ""  # stripped text, already cut to a bounded length
    score: float = 0.0

    def summary(self, index: int, preview_chars: int = 300) -> CandidateSummary:
        preview = self.preview[:preview_chars]
        if self.text_length > preview_chars:
            preview += "..."
        return CandidateSummary(
            index=index,
            tag=self.tag_hint,
            class_name=self.class_hint,
            element_id=self.id_hint,
            text_length=self.text_length,
            word_count=self.word_count,
            child_count=self.child_count,
            preview_text=preview,
        )


@dataclass(frozen=True, slots=True)
class AppliedHighlight:
    """One rendered highlight occurrence, owned by the registry until removed."""

    id: str
    text: str
    tier: Tier
    container_ref: ContentNode = field(compare=False)
    created_at: datetime


@dataclass
class ApplyResult:
    """Outcome of applying a resolved span set to one container."""

    markup: str
    highlights: list[AppliedHighlight] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # span texts with zero matches

    @property
    def total_applied(self) -> int:
        return len(self.highlights)

    @property
    def tier_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for item in self.highlights:
            counts[item.tier.value] = counts.get(item.tier.value, 0) + 1
        return counts


class OutcomeStatus(StrEnum):
    """Final state of one highlighting request."""

    APPLIED = "applied"
    NO_MATCHES = "no_matches"  # spans resolved but none occur in the container
    NO_PHRASES = "no_phrases"  # classifier returned nothing usable
    CLASSIFICATION_FAILED = "classification_failed"
    STALE = "stale"  # superseded before the classifier answered
    IGNORED = "ignored"  # selection too short to classify


@dataclass
class HighlightOutcome:
    """What the host UI needs to render after one request."""

    status: OutcomeStatus
    request_id: str
    container: ContentNode | None = None
    result: ApplyResult | None = None
    message: str = ""  # user-facing notice for non-applied outcomes
    timings: dict[str, float] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def total_applied(self) -> int:
        return self.result.total_applied if self.result else 0
