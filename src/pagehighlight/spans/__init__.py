# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Classifier spans: payload parsing, conflict resolution, application."""
