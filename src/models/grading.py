# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade recompute schemas."""

from pydantic import BaseModel, Field


class GradeRecomputeResult(BaseModel):
    """Result of recomputing one enrollment's grade within a cycle.

    ``applied`` is False for a no-op (no grade, or no attendance).
    ``previous_grade`` is the grade as it stood before the cycle.
    """

    enrollment_id: int
    cycle_id: str
    applied: bool
    previous_grade: int | None = None
    new_grade: int | None = None
    attendance_percentage: float | None = None
    reason: str | None = None

    @property
    def changed(self) -> bool:
        """Check whether the rule moved the grade away from its pre-cycle value."""
        return self.applied and self.previous_grade != self.new_grade


class RecomputePassSummary(BaseModel):
    """Totals for a recompute pass over many enrollments."""

    cycle_id: str
    processed: int = 0
    adjusted: int = 0
    skipped: int = 0
    results: list[GradeRecomputeResult] = Field(default_factory=list)
