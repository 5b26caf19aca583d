# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Page Highlight exception hierarchy.

All errors inherit from HighlightError. Only ClassificationError is meant to
reach a request boundary; oracle failures are absorbed by the heuristic
fallback, and "no candidate" / "no matches" are outcomes, not exceptions.
"""

from __future__ import annotations


class HighlightError(Exception):
    """Base exception for all Page Highlight errors."""


class ClassificationError(HighlightError):
    """Classifier unreachable, timed out, or returned an unparsable payload."""

    def __init__(self, message: str, *, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class OracleError(HighlightError):
    """Container oracle failed or answered with an unusable index."""


class OracleTimeout(OracleError):
    """Container oracle did not answer within its time budget."""

    def __init__(self, message: str, *, timeout: float = 0.0) -> None:
        super().__init__(message)
        self.timeout = timeout


class ContentError(HighlightError):
    """Markup could not be parsed into a content tree."""
