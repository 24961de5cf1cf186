# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Risk service combining stored grades with fresh attendance statistics.

Read-only; consumed by reporting.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.attendance.service import AttendanceService
from src.domains.enrollment.service import EnrollmentNotFoundError
from src.domains.risk.classifier import classify
from src.infrastructure.database.models import Enrollment
from src.models.common import EnrollmentStatus
from src.models.risk import RiskAssessment


class RiskService:
    """Service for assessing enrollments.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self._attendance = AttendanceService(db)

    async def assess(self, enrollment_id: int) -> RiskAssessment:
        """Assess one enrollment.

        Raises:
            EnrollmentNotFoundError: If enrollment not found.
        """
        result = await self.db.execute(select(Enrollment).where(Enrollment.id == enrollment_id))
        enrollment = result.scalar_one_or_none()
        if not enrollment:
            raise EnrollmentNotFoundError(f"Enrollment {enrollment_id} not found")

        return await self._assess(enrollment)

    async def assess_course(self, course_id: int) -> list[RiskAssessment]:
        """Assess all non-withdrawn enrollments of a course."""
        query = (
            select(Enrollment)
            .where(
                Enrollment.course_id == course_id,
                Enrollment.status != EnrollmentStatus.WITHDRAWN.value,
            )
            .order_by(Enrollment.id)
        )
        result = await self.db.execute(query)
        return [await self._assess(e) for e in result.scalars().all()]

    async def _assess(self, enrollment: Enrollment) -> RiskAssessment:
        stats = await self._attendance.stats(enrollment.student_id, enrollment.course_id)
        percentage = stats.attendance_percentage

        risk_status = None
        if enrollment.grade is not None and percentage is not None:
            risk_status = classify(enrollment.grade, percentage)

        return RiskAssessment(
            enrollment_id=enrollment.id,
            student_id=enrollment.student_id,
            course_id=enrollment.course_id,
            grade=enrollment.grade,
            attendance_percentage=percentage,
            risk_status=risk_status,
        )
