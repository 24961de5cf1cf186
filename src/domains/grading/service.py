# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade adjustment engine.

Recomputes an enrollment's grade from its attendance statistics:

- attendance >= 90%: grade + 5, capped at 100
- attendance <  75%: grade - 10, floored at 0
- otherwise unchanged

Each recompute belongs to a named cycle. The first recompute of an
enrollment in a cycle records the grade it started from in the
``grade_adjustments`` ledger; every later recompute in the same cycle
starts from that stored grade, so repeating a cycle never compounds the
adjustment. Scheduling cycles is left to the caller.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import GradingSettings
from src.domains.attendance.service import AttendanceService
from src.domains.enrollment.service import EnrollmentNotFoundError
from src.infrastructure.database.connection import StorageUnavailableError
from src.infrastructure.database.models import Enrollment, GradeAdjustment
from src.models.common import EnrollmentStatus
from src.models.grading import GradeRecomputeResult, RecomputePassSummary

logger = logging.getLogger(__name__)

MIN_GRADE = 0
MAX_GRADE = 100


def apply_grade_rule(
    grade: int,
    attendance_percentage: float,
    rules: GradingSettings | None = None,
) -> int:
    """Apply the attendance rule table to a grade.

    Args:
        grade: Grade in 0..100.
        attendance_percentage: Attendance in 0..100.
        rules: Thresholds and deltas. Defaults to GradingSettings().

    Returns:
        Adjusted grade, always within 0..100.

    Raises:
        ValueError: If grade is outside 0..100.
    """
    if not MIN_GRADE <= grade <= MAX_GRADE:
        raise ValueError(f"Grade {grade} is outside {MIN_GRADE}..{MAX_GRADE}")

    rules = rules or GradingSettings()

    if attendance_percentage >= rules.high_attendance_threshold:
        return min(MAX_GRADE, grade + rules.bonus)
    if attendance_percentage < rules.low_attendance_threshold:
        return max(MIN_GRADE, grade - rules.penalty)
    return grade


class GradingService:
    """Service for recomputing grades from attendance.

    Attributes:
        db: Async database session.
        rules: Grade adjustment rule table.
    """

    def __init__(self, db: AsyncSession, rules: GradingSettings | None = None) -> None:
        self.db = db
        self.rules = rules or GradingSettings()

    async def recompute_grade(self, enrollment_id: int, cycle_id: str) -> GradeRecomputeResult:
        """Recompute one enrollment's grade within a cycle.

        Args:
            enrollment_id: Enrollment identifier.
            cycle_id: Recompute cycle name (e.g. ``"2025-fall-final"``).

        Returns:
            The recompute result; ``applied`` is False for a no-op.

        Raises:
            EnrollmentNotFoundError: If enrollment not found.
            StorageUnavailableError: If the record store fails.
        """
        try:
            return await self._recompute(enrollment_id, cycle_id)
        except IntegrityError:
            # Another worker opened the ledger entry first; start from it
            await self.db.rollback()
        try:
            return await self._recompute(enrollment_id, cycle_id)
        except IntegrityError as e:
            await self.db.rollback()
            raise StorageUnavailableError("Grade recompute could not be committed", e) from e

    async def run_recompute_pass(
        self,
        cycle_id: str,
        course_id: int | None = None,
    ) -> RecomputePassSummary:
        """Recompute every graded, non-withdrawn enrollment once for a cycle.

        Args:
            cycle_id: Recompute cycle name.
            course_id: Optionally limit the pass to one course.

        Returns:
            Totals and per-enrollment results.
        """
        query = select(Enrollment.id).where(
            Enrollment.status != EnrollmentStatus.WITHDRAWN.value,
            Enrollment.grade.is_not(None),
        )
        if course_id is not None:
            query = query.where(Enrollment.course_id == course_id)
        query = query.order_by(Enrollment.id)

        result = await self.db.execute(query)
        enrollment_ids = list(dict.fromkeys(result.scalars().all()))

        summary = RecomputePassSummary(cycle_id=cycle_id)
        for enrollment_id in enrollment_ids:
            try:
                outcome = await self.recompute_grade(enrollment_id, cycle_id)
            except EnrollmentNotFoundError:
                # Removed while the pass was running
                summary.skipped += 1
                continue

            summary.processed += 1
            summary.results.append(outcome)
            if outcome.changed:
                summary.adjusted += 1
            elif not outcome.applied:
                summary.skipped += 1

        logger.info(
            "Recompute pass finished: cycle=%s, course=%s, processed=%d, adjusted=%d, skipped=%d",
            cycle_id,
            course_id,
            summary.processed,
            summary.adjusted,
            summary.skipped,
        )
        return summary

    async def _recompute(self, enrollment_id: int, cycle_id: str) -> GradeRecomputeResult:
        enrollment = await self._get_enrollment(enrollment_id)
        adjustment = await self._get_adjustment(enrollment_id, cycle_id)

        base_grade = adjustment.grade_before if adjustment else enrollment.grade
        if base_grade is None:
            return GradeRecomputeResult(
                enrollment_id=enrollment_id,
                cycle_id=cycle_id,
                applied=False,
                reason="no_grade",
            )

        stats = await AttendanceService(self.db).stats(enrollment.student_id, enrollment.course_id)
        if not stats.has_records:
            return GradeRecomputeResult(
                enrollment_id=enrollment_id,
                cycle_id=cycle_id,
                applied=False,
                previous_grade=base_grade,
                new_grade=enrollment.grade,
                reason="no_attendance",
            )

        percentage = stats.attendance_percentage
        new_grade = apply_grade_rule(base_grade, percentage, self.rules)

        if adjustment is None:
            self.db.add(
                GradeAdjustment(
                    enrollment_id=enrollment_id,
                    cycle_id=cycle_id,
                    grade_before=base_grade,
                    grade_after=new_grade,
                    attendance_percentage=percentage,
                )
            )
            await self.db.flush()
        elif adjustment.grade_after != new_grade or adjustment.attendance_percentage != percentage:
            adjustment.grade_after = new_grade
            adjustment.attendance_percentage = percentage

        if enrollment.grade != new_grade:
            enrollment.grade = new_grade

        try:
            await self.db.commit()
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StorageUnavailableError("Grade recompute could not be committed", e) from e

        if base_grade != new_grade:
            logger.info(
                "Grade adjusted: enrollment=%s, cycle=%s, %d -> %d, attendance=%.1f%%",
                enrollment_id,
                cycle_id,
                base_grade,
                new_grade,
                percentage,
            )

        return GradeRecomputeResult(
            enrollment_id=enrollment_id,
            cycle_id=cycle_id,
            applied=True,
            previous_grade=base_grade,
            new_grade=new_grade,
            attendance_percentage=percentage,
        )

    async def _get_enrollment(self, enrollment_id: int) -> Enrollment:
        query = select(Enrollment).where(Enrollment.id == enrollment_id)
        result = await self.db.execute(query)
        enrollment = result.scalar_one_or_none()

        if not enrollment:
            raise EnrollmentNotFoundError(f"Enrollment {enrollment_id} not found")

        return enrollment

    async def _get_adjustment(self, enrollment_id: int, cycle_id: str) -> GradeAdjustment | None:
        query = select(GradeAdjustment).where(
            GradeAdjustment.enrollment_id == enrollment_id,
            GradeAdjustment.cycle_id == cycle_id,
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()
