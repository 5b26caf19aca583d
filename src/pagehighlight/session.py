# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Highlight session: one explicit engine instance per page.

Runs one request end to end:
  selection → classification → resolution → application

Only the classifier (and optionally the container oracle) suspends. Every
request takes a token and captures the container it chose; when the
classifier answers, the result is applied only if that request is still the
latest and its container is still the session's active one. Superseded
requests are discarded on arrival, never cancelled.

Nothing in the tree is mutated before the applier runs, so a failed or stale
request leaves the page untouched.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import uuid

from pagehighlight import HighlightOutcome, OutcomeStatus
from pagehighlight.config import HighlightConfig
from pagehighlight.containers.collector import CandidateCollector
from pagehighlight.containers.oracle import ContainerOracle
from pagehighlight.containers.selector import build_selector
from pagehighlight.content import LxmlNode
from pagehighlight.errors import ClassificationError
from pagehighlight.logging_config import request_context
from pagehighlight.pipeline_timer import PipelineTimer
from pagehighlight.registry import HighlightRegistry, enclosing_highlight
from pagehighlight.spans.applier import SpanApplier
from pagehighlight.spans.classifier import SpanClassifier
from pagehighlight.spans.resolver import resolve_conflicts

logger = logging.getLogger(__name__)

MSG_NO_PHRASES = "AI could not identify key phrases in the selected text."
MSG_NO_MATCHES = "No key phrases found in the page content."
MSG_FAILED = "AI highlighting failed: {reason}"
MSG_STALE = "Selection changed before highlighting finished."


class HighlightSession:
    """Explicit per-page highlighting engine."""

    def __init__(
        self,
        classifier: SpanClassifier,
        *,
        config: HighlightConfig | None = None,
        oracle: ContainerOracle | None = None,
        registry: HighlightRegistry | None = None,
    ) -> None:
        self.config = config or HighlightConfig()
        self.classifier = classifier
        self.registry = registry if registry is not None else HighlightRegistry()
        self.collector = CandidateCollector(self.config)
        self.selector = build_selector(self.config, oracle)
        self.applier = SpanApplier(self.registry)
        self._tokens = itertools.count(1)
        self._latest = 0
        self._active_container: LxmlNode | None = None

    @property
    def active_container(self) -> LxmlNode | None:
        return self._active_container

    def invalidate(self) -> None:
        """Mark every in-flight request stale (navigation, selection cleared)."""
        self._latest = next(self._tokens)
        self._active_container = None

    async def highlight(self, selected_text: str, start: LxmlNode) -> HighlightOutcome:
        """Highlight key phrases of the container around *start*.

        Classification failures and timeouts become ``classification_failed``
        outcomes; they are never raised.
        """
        request_id = uuid.uuid4().hex[:8]
        if len(selected_text.strip()) <= self.config.min_selection_chars:
            return HighlightOutcome(status=OutcomeStatus.IGNORED, request_id=request_id)

        token = next(self._tokens)
        self._latest = token
        timer = PipelineTimer()
        with request_context(request_id):
            return await self._run(token, request_id, start, timer)

    async def _run(self, token: int, request_id: str, start: LxmlNode, timer: PipelineTimer) -> HighlightOutcome:
        def outcome(status: OutcomeStatus, **kwargs) -> HighlightOutcome:
            return HighlightOutcome(status=status, request_id=request_id, timings=timer.finalize(), **kwargs)

        # ---- selection ----
        timer.stage("selection")
        owner = enclosing_highlight(start.element)
        if owner is not None and owner.getparent() is not None:
            start = LxmlNode(owner.getparent())
        candidates = self.collector.collect(start)
        choice = await self.selector.select(start, candidates)
        container = choice.node
        if token != self._latest:
            logger.info("Request superseded during container selection, discarding")
            return outcome(OutcomeStatus.STALE, message=MSG_STALE)
        self._active_container = container
        meta = {"method": choice.method, "candidates": len(candidates)}
        if choice.fallback_reason:
            meta["fallback_reason"] = choice.fallback_reason

        # ---- classification ----
        timer.stage("classification")
        try:
            raw_spans = await asyncio.wait_for(
                self.classifier.classify(container.text_content()),
                timeout=self.config.classify_timeout,
            )
        except TimeoutError:
            logger.warning("Classifier timed out after %.1fs: %s", self.config.classify_timeout, timer.timeout_report())
            return outcome(
                OutcomeStatus.CLASSIFICATION_FAILED,
                container=container,
                message=MSG_FAILED.format(reason=f"timed out after {self.config.classify_timeout:g}s"),
                metadata=meta,
            )
        except ClassificationError as e:
            logger.warning("Classification failed: %s", e)
            return outcome(
                OutcomeStatus.CLASSIFICATION_FAILED,
                container=container,
                message=MSG_FAILED.format(reason=e),
                metadata=meta,
            )
        except Exception as e:
            logger.warning("Classifier raised %s: %s", type(e).__name__, e)
            return outcome(
                OutcomeStatus.CLASSIFICATION_FAILED,
                container=container,
                message=MSG_FAILED.format(reason=e),
                metadata=meta,
            )

        if token != self._latest or self._active_container != container:
            logger.info("Discarding stale classification result for <%s>", container.tag)
            return outcome(OutcomeStatus.STALE, container=container, message=MSG_STALE, metadata=meta)

        # ---- resolution ----
        timer.stage("resolution")
        spans = resolve_conflicts(raw_spans)
        meta["spans_in"] = len(raw_spans)
        meta["spans_resolved"] = len(spans)
        if not spans:
            return outcome(OutcomeStatus.NO_PHRASES, container=container, message=MSG_NO_PHRASES, metadata=meta)

        # ---- application ----
        timer.stage("application")
        result = self.applier.apply(container, spans)
        if result.total_applied == 0:
            return outcome(
                OutcomeStatus.NO_MATCHES,
                container=container,
                result=result,
                message=MSG_NO_MATCHES,
                metadata=meta,
            )

        logger.info("Highlighted %d occurrence(s) in <%s>: %s", result.total_applied, container.tag, result.tier_counts)
        return outcome(OutcomeStatus.APPLIED, container=container, result=result, metadata=meta)

    # ---- lifecycle ----

    def remove(self, highlight_id: str) -> bool:
        return self.registry.remove(highlight_id)

    def clear(self) -> int:
        return self.registry.clear()
