# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Archival service for removing students without losing their history.

Removal is one transaction:

1. Snapshot the student, its attendance records and its enrollments into
   the archive tables and flush them.
2. Delete the student; enrollments, attendance records and grade ledger
   entries go with it through ``ON DELETE CASCADE``.
3. Re-evaluate the occupancy of every course the student held a seat in.

If step 1 fails nothing is deleted. The student's gate is held exclusively
and its row is locked FOR UPDATE, so no admission of the student can commit
between the snapshot and the delete. The admission slots of all affected
courses are held for the whole transaction.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.domains.course.capacity import CapacityStateMachine
from src.domains.enrollment.locks import CourseLockRegistry, default_lock_timeout
from src.domains.student.service import StudentNotFoundError
from src.infrastructure.database.connection import StorageUnavailableError
from src.infrastructure.database.models import (
    ArchivedAttendance,
    ArchivedEnrollment,
    ArchivedStudent,
    AttendanceRecord,
    Course,
    Enrollment,
    Student,
)
from src.models.archival import RemovalResult
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class ArchivalServiceError(Exception):
    """Base exception for archival service errors."""

    pass


class ArchiveWriteFailedError(ArchivalServiceError):
    """Raised when the archive snapshot cannot be written.

    The student and its records are left unchanged.

    Attributes:
        original_error: The underlying database error.
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.original_error = original_error


class ArchivalService:
    """Service for archiving and removing students.

    Attributes:
        db: Async database session.
        locks: Student gates and course admission slots shared with admission.
        lock_timeout: Seconds to wait for the student gate and each course slot.
    """

    def __init__(
        self,
        db: AsyncSession,
        locks: CourseLockRegistry,
        lock_timeout: float | None = None,
    ) -> None:
        self.db = db
        self.locks = locks
        self.lock_timeout = default_lock_timeout() if lock_timeout is None else lock_timeout

    async def remove_student(self, student_id: int, removed_by: str) -> RemovalResult:
        """Archive a student's records, then delete the student.

        Args:
            student_id: Student identifier.
            removed_by: Identity of the actor, stored with the archive.

        Returns:
            Summary of what was archived and which courses were touched.

        Raises:
            StudentNotFoundError: If student not found.
            ArchiveWriteFailedError: If the snapshot cannot be written.
            StorageUnavailableError: If the delete cannot be committed.
            AdmissionSlotTimeout: If the student gate or a course slot is not
                acquired in time.
        """
        async with self.locks.hold_student(student_id, self.lock_timeout, exclusive=True):
            # Stable from here: admissions of this student wait on the gate
            course_codes = await self._course_codes(student_id)
            async with self.locks.hold_many(course_codes, self.lock_timeout):
                return await self._archive_and_delete(student_id, removed_by)

    async def _archive_and_delete(self, student_id: int, removed_by: str) -> RemovalResult:
        student = await self._get_student(student_id)
        # Read after the row lock so admissions committed by other processes are included
        enrollments = await self._get_enrollments(student_id)
        attendance = await self._get_attendance(student_id)
        archived_at = utc_now()

        try:
            archived = ArchivedStudent(
                student_id=student.id,
                first_name=student.first_name,
                last_name=student.last_name,
                date_of_birth=student.date_of_birth,
                email=student.email,
                phone=student.phone,
                status=student.status,
                archived_at=archived_at,
                archived_by=removed_by,
            )
            archived.attendance = [
                ArchivedAttendance(
                    attendance_record_id=record.id,
                    student_id=record.student_id,
                    course_id=record.course_id,
                    attendance_date=record.attendance_date,
                    status=record.status,
                    remarks=record.remarks,
                    archived_at=archived_at,
                    archived_by=removed_by,
                )
                for record in attendance
            ]
            archived.enrollments = [
                ArchivedEnrollment(
                    enrollment_id=enrollment.id,
                    student_id=enrollment.student_id,
                    course_id=enrollment.course_id,
                    course_code=enrollment.course.code,
                    enrollment_date=enrollment.enrollment_date,
                    grade=enrollment.grade,
                    status=enrollment.status,
                    archived_at=archived_at,
                    archived_by=removed_by,
                )
                for enrollment in enrollments
            ]
            self.db.add(archived)
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "Archive write failed, student kept: student=%s, by=%s, error=%s",
                student_id,
                removed_by,
                e,
            )
            raise ArchiveWriteFailedError(
                f"Could not archive student {student_id}", e
            ) from e

        courses: dict[int, Course] = {e.course.id: e.course for e in enrollments}

        try:
            await self.db.delete(student)
            await self.db.flush()

            capacity = CapacityStateMachine(self.db)
            for course in courses.values():
                await capacity.evaluate(course)

            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StorageUnavailableError(f"Removal of student {student_id} could not be committed", e) from e

        logger.info(
            "Removed student: student=%s, archived=%s, attendance=%d, enrollments=%d, by=%s",
            student_id,
            archived.id,
            len(attendance),
            len(enrollments),
            removed_by,
        )

        return RemovalResult(
            student_id=student_id,
            archived_student_id=archived.id,
            archived_attendance_count=len(attendance),
            archived_enrollment_count=len(enrollments),
            affected_courses=sorted(course.code for course in courses.values()),
            archived_at=archived_at,
            removed_by=removed_by,
        )

    async def _course_codes(self, student_id: int) -> set[str]:
        query = (
            select(Course.code)
            .join(Enrollment, Enrollment.course_id == Course.id)
            .where(Enrollment.student_id == student_id)
        )
        result = await self.db.execute(query)
        return set(result.scalars().all())

    async def _get_student(self, student_id: int) -> Student:
        query = select(Student).where(Student.id == student_id).with_for_update()
        result = await self.db.execute(query)
        student = result.scalar_one_or_none()

        if not student:
            raise StudentNotFoundError(f"Student {student_id} not found")

        return student

    async def _get_enrollments(self, student_id: int) -> list[Enrollment]:
        query = (
            select(Enrollment)
            .options(selectinload(Enrollment.course))
            .where(Enrollment.student_id == student_id)
            .order_by(Enrollment.id)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def _get_attendance(self, student_id: int) -> list[AttendanceRecord]:
        query = (
            select(AttendanceRecord)
            .where(AttendanceRecord.student_id == student_id)
            .order_by(AttendanceRecord.attendance_date, AttendanceRecord.id)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())
