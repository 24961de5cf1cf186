# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance service for recording events and aggregating statistics.

Statistics are recomputed from the attendance records on every call and
never cached. Records are append-only.
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import AttendanceRecord, Course, Student
from src.models.attendance import AttendanceRecordResponse, AttendanceStats
from src.models.common import AttendanceStatus
from src.utils.datetime import ensure_utc

logger = logging.getLogger(__name__)


class AttendanceServiceError(Exception):
    """Base exception for attendance service errors."""

    pass


class AttendanceTargetNotFoundError(AttendanceServiceError):
    """Raised when the student or course of an attendance event does not exist."""

    pass


class DuplicateAttendanceError(AttendanceServiceError):
    """Raised when attendance for the same student, course and date exists."""

    pass


def attendance_percentage(present_count: int, total: int) -> float | None:
    """Compute present_count / total * 100, or None when total is zero."""
    if total <= 0:
        return None
    return present_count * 100 / total


class AttendanceService:
    """Service for attendance events and statistics.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def stats(self, student_id: int, course_id: int) -> AttendanceStats:
        """Aggregate attendance for a (student, course) pair.

        Args:
            student_id: Student identifier.
            course_id: Course identifier.

        Returns:
            Counts and attendance percentage (None when no records exist).
        """
        query = select(
            func.count(
                case((AttendanceRecord.status == AttendanceStatus.PRESENT.value, 1))
            ),
            func.count(
                case((AttendanceRecord.status == AttendanceStatus.ABSENT.value, 1))
            ),
            func.count(
                case((AttendanceRecord.status == AttendanceStatus.LATE.value, 1))
            ),
        ).where(
            AttendanceRecord.student_id == student_id,
            AttendanceRecord.course_id == course_id,
        )
        result = await self.db.execute(query)
        present, absent, late = (int(v or 0) for v in result.one())
        total = present + absent + late

        return AttendanceStats(
            student_id=student_id,
            course_id=course_id,
            present_count=present,
            absent_count=absent,
            late_count=late,
            total=total,
            attendance_percentage=attendance_percentage(present, total),
        )

    async def record(
        self,
        student_id: int,
        course_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        remarks: str | None = None,
    ) -> AttendanceRecordResponse:
        """Append an attendance event.

        Args:
            student_id: Student identifier.
            course_id: Course identifier.
            attendance_date: Session date.
            status: Present, absent or late.
            remarks: Optional note.

        Returns:
            The stored record.

        Raises:
            AttendanceTargetNotFoundError: If student or course does not exist.
            DuplicateAttendanceError: If the date is already recorded for the pair.
        """
        await self._ensure_exists(Student, student_id, "Student")
        await self._ensure_exists(Course, course_id, "Course")

        record = AttendanceRecord(
            student_id=student_id,
            course_id=course_id,
            attendance_date=attendance_date,
            status=status.value,
            remarks=remarks,
        )
        self.db.add(record)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateAttendanceError(
                f"Attendance for student {student_id} in course {course_id} "
                f"on {attendance_date} already recorded"
            ) from e

        await self.db.refresh(record)
        logger.debug(
            "Recorded attendance: student=%s, course=%s, date=%s, status=%s",
            student_id,
            course_id,
            attendance_date,
            status.value,
        )
        return self._to_response(record)

    async def history(self, student_id: int, course_id: int) -> list[AttendanceRecordResponse]:
        """List attendance events for a pair ordered by date."""
        query = (
            select(AttendanceRecord)
            .where(
                AttendanceRecord.student_id == student_id,
                AttendanceRecord.course_id == course_id,
            )
            .order_by(AttendanceRecord.attendance_date)
        )
        result = await self.db.execute(query)
        return [self._to_response(r) for r in result.scalars().all()]

    async def _ensure_exists(self, model: type, entity_id: int, label: str) -> None:
        result = await self.db.execute(select(model.id).where(model.id == entity_id))
        if result.scalar_one_or_none() is None:
            raise AttendanceTargetNotFoundError(f"{label} {entity_id} not found")

    def _to_response(self, record: AttendanceRecord) -> AttendanceRecordResponse:
        return AttendanceRecordResponse(
            id=record.id,
            student_id=record.student_id,
            course_id=record.course_id,
            attendance_date=record.attendance_date,
            status=AttendanceStatus(record.status),
            remarks=record.remarks,
            created_at=ensure_utc(record.created_at),
        )
