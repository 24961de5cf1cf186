# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grading domain package.

This package provides attendance-driven grade recomputation with
per-cycle idempotence.
"""

from src.domains.grading.service import (
    MAX_GRADE,
    MIN_GRADE,
    GradingService,
    apply_grade_rule,
)

__all__ = [
    "GradingService",
    "apply_grade_rule",
    "MIN_GRADE",
    "MAX_GRADE",
]
