# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import pagehighlight  # noqa: F401
except ImportError:
    raise ImportError("pagehighlight is not installed. Run: pip install -e '.[dev]'") from None

import pytest

from pagehighlight.registry import HighlightRegistry


@pytest.fixture
def registry() -> HighlightRegistry:
    return HighlightRegistry()


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep host PAGEHIGHLIGHT_* variables out of config-dependent tests."""
    import os

    for name in list(os.environ):
        if name.startswith("PAGEHIGHLIGHT_"):
            monkeypatch.delenv(name, raising=False)
