# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service for admitting students to capacity-limited courses.

This module provides the EnrollmentService class for:
- Admission (eligibility, duplicate and capacity checks plus insert as one
  unit of work per course)
- Withdrawal, completion and removal of enrollments
- Recording the base grade of an enrollment

Every mutation that changes a course's active count runs while holding the
course's admission slot and re-evaluates the course's occupancy state
before commit.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.domains.course.capacity import CapacityStateMachine, count_active_enrollments
from src.domains.enrollment.locks import (
    AdmissionSlotTimeout,
    CourseLockRegistry,
    default_lock_timeout,
)
from src.infrastructure.database.connection import StorageUnavailableError
from src.infrastructure.database.models import Course, Enrollment, Student
from src.models.common import EnrollmentStatus, StudentStatus
from src.models.course import CapacityTransition, normalize_course_code
from src.models.enrollment import (
    AdmissionResult,
    EnrollmentResponse,
    RejectionReason,
)
from src.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class EnrollmentServiceError(Exception):
    """Base exception for enrollment service errors."""

    pass


class AdmissionRejectedError(EnrollmentServiceError):
    """Base for failed admission preconditions.

    Converted into a rejected AdmissionResult by EnrollmentService.enroll.
    """

    reason: RejectionReason


class IneligibleStudentError(AdmissionRejectedError):
    """Raised when the student does not exist or is not active."""

    reason = RejectionReason.INELIGIBLE_STUDENT


class UnknownCourseError(AdmissionRejectedError):
    """Raised when no course has the requested code."""

    reason = RejectionReason.UNKNOWN_COURSE


class DuplicateEnrollmentError(AdmissionRejectedError):
    """Raised when the student already holds an active enrollment in the course."""

    reason = RejectionReason.DUPLICATE_ENROLLMENT


class CourseFullError(AdmissionRejectedError):
    """Raised when the course has no free seat."""

    reason = RejectionReason.COURSE_FULL


class NotEnrolledError(EnrollmentServiceError):
    """Raised when student is not enrolled in course."""

    pass


class EnrollmentNotFoundError(EnrollmentServiceError):
    """Raised when enrollment is not found."""

    pass


class InvalidGradeError(EnrollmentServiceError):
    """Raised when a grade is outside 0..100."""

    pass


class EnrollmentService:
    """Service for managing enrollments.

    Attributes:
        db: Async database session, one per request.
        locks: Per-course admission slots shared by all requests.
        lock_timeout: Seconds to wait for a course's admission slot.
    """

    def __init__(
        self,
        db: AsyncSession,
        locks: CourseLockRegistry,
        lock_timeout: float | None = None,
    ) -> None:
        """Initialize enrollment service.

        Args:
            db: Async database session.
            locks: Shared lock registry.
            lock_timeout: Bounded wait for the admission slot; defaults to
                ADMISSION_LOCK_TIMEOUT_SECONDS.
        """
        self.db = db
        self.locks = locks
        self.lock_timeout = default_lock_timeout() if lock_timeout is None else lock_timeout

    async def enroll(
        self,
        student_id: int,
        course_code: str,
        enrolled_by: str | None = None,
    ) -> AdmissionResult:
        """Admit a student to a course.

        Preconditions are checked in order (eligibility, course, duplicate,
        capacity) while holding the student's gate (shared) and the course's
        admission slot, and the insert commits in the same transaction as the
        capacity read.

        Args:
            student_id: Student identifier.
            course_code: Course code.
            enrolled_by: ID of user performing enrollment.

        Returns:
            Enrolled result, or rejected result with its reason.

        Raises:
            StorageUnavailableError: If the record store fails; nothing is committed.
        """
        code = normalize_course_code(course_code)

        try:
            async with (
                self.locks.hold_student(student_id, self.lock_timeout),
                self.locks.hold(code, self.lock_timeout),
            ):
                try:
                    enrollment, transition = await self._admit(student_id, code)
                except AdmissionRejectedError as e:
                    await self.db.rollback()
                    logger.info(
                        "Admission rejected: student=%s, course=%s, reason=%s, by=%s",
                        student_id,
                        code,
                        e.reason.value,
                        enrolled_by,
                    )
                    return AdmissionResult.rejected(student_id, code, e.reason, str(e))
        except AdmissionSlotTimeout as e:
            return AdmissionResult.rejected(
                student_id,
                code,
                RejectionReason.TIMEOUT,
                str(e),
            )

        logger.info(
            "Enrolled student: student=%s, course=%s, enrollment=%s, seats=%d/%d, by=%s",
            student_id,
            code,
            enrollment.id,
            transition.active_count,
            transition.max_capacity,
            enrolled_by,
        )

        return AdmissionResult.enrolled(
            self._to_response(enrollment, code),
            transition.current_state,
        )

    async def withdraw(
        self,
        student_id: int,
        course_code: str,
        withdrawn_by: str | None = None,
    ) -> EnrollmentResponse:
        """Withdraw a student from a course, releasing the seat.

        Args:
            student_id: Student identifier.
            course_code: Course code.
            withdrawn_by: ID of user performing withdrawal.

        Returns:
            Updated enrollment.

        Raises:
            NotEnrolledError: If student has no active enrollment in the course.
            AdmissionSlotTimeout: If the course's slot is not acquired in time.
            StorageUnavailableError: If the record store fails.
        """
        code = normalize_course_code(course_code)

        async with self.locks.hold(code, self.lock_timeout):
            try:
                query = (
                    select(Enrollment)
                    .join(Course, Enrollment.course_id == Course.id)
                    .options(selectinload(Enrollment.course))
                    .where(
                        Enrollment.student_id == student_id,
                        Course.code == code,
                        Enrollment.status != EnrollmentStatus.WITHDRAWN.value,
                    )
                )
                result = await self.db.execute(query)
                enrollment = result.scalar_one_or_none()

                if not enrollment:
                    await self.db.rollback()
                    raise NotEnrolledError(f"Student {student_id} is not enrolled in {code}")

                enrollment.status = EnrollmentStatus.WITHDRAWN.value
                enrollment.withdrawn_at = utc_now()
                await CapacityStateMachine(self.db).evaluate(enrollment.course)
                await self.db.commit()
            except SQLAlchemyError as e:
                await self.db.rollback()
                raise StorageUnavailableError("Withdrawal could not be committed", e) from e

        logger.info(
            "Withdrew student: student=%s, course=%s, by=%s",
            student_id,
            code,
            withdrawn_by,
        )

        return self._to_response(enrollment, code)

    async def complete(self, enrollment_id: int) -> EnrollmentResponse:
        """Mark an enrollment as completed. The seat stays occupied.

        Raises:
            EnrollmentNotFoundError: If enrollment not found.
            NotEnrolledError: If the enrollment is not currently enrolled.
        """
        enrollment = await self._get_enrollment(enrollment_id)
        if enrollment.status != EnrollmentStatus.ENROLLED.value:
            raise NotEnrolledError(
                f"Enrollment {enrollment_id} is {enrollment.status}, not enrolled"
            )

        enrollment.status = EnrollmentStatus.COMPLETED.value
        await self._commit("Completion could not be committed")

        logger.info("Completed enrollment: enrollment=%s", enrollment_id)
        return self._to_response(enrollment, enrollment.course.code)

    async def record_grade(self, enrollment_id: int, grade: int) -> EnrollmentResponse:
        """Record the base grade of an enrollment.

        Args:
            enrollment_id: Enrollment identifier.
            grade: Grade in 0..100.

        Raises:
            InvalidGradeError: If grade is out of range.
            EnrollmentNotFoundError: If enrollment not found.
        """
        if not 0 <= grade <= 100:
            raise InvalidGradeError(f"Grade {grade} is outside 0..100")

        enrollment = await self._get_enrollment(enrollment_id)
        enrollment.grade = grade
        await self._commit("Grade could not be committed")

        logger.info("Recorded grade: enrollment=%s, grade=%d", enrollment_id, grade)
        return self._to_response(enrollment, enrollment.course.code)

    async def remove_enrollment(
        self,
        enrollment_id: int,
        removed_by: str | None = None,
    ) -> CapacityTransition:
        """Permanently delete an enrollment record.

        Args:
            enrollment_id: Enrollment identifier.
            removed_by: ID of user performing removal.

        Returns:
            The course's capacity transition after the delete.

        Raises:
            EnrollmentNotFoundError: If enrollment not found.
            AdmissionSlotTimeout: If the course's slot is not acquired in time.
        """
        enrollment = await self._get_enrollment(enrollment_id)
        course = enrollment.course

        async with self.locks.hold(course.code, self.lock_timeout):
            try:
                await self.db.delete(enrollment)
                transition = await CapacityStateMachine(self.db).evaluate(course)
                await self.db.commit()
            except SQLAlchemyError as e:
                await self.db.rollback()
                raise StorageUnavailableError("Enrollment removal could not be committed", e) from e

        logger.info(
            "Removed enrollment: enrollment=%s, course=%s, by=%s",
            enrollment_id,
            course.code,
            removed_by,
        )
        return transition

    async def get_enrollment(self, enrollment_id: int) -> EnrollmentResponse:
        """Get enrollment details.

        Raises:
            EnrollmentNotFoundError: If enrollment not found.
        """
        enrollment = await self._get_enrollment(enrollment_id)
        return self._to_response(enrollment, enrollment.course.code)

    async def list_course_enrollments(
        self,
        course_code: str,
        status: EnrollmentStatus | None = None,
    ) -> list[EnrollmentResponse]:
        """List enrollments of a course, oldest first.

        Args:
            course_code: Course code.
            status: Optional status filter.
        """
        code = normalize_course_code(course_code)
        query = (
            select(Enrollment)
            .join(Course, Enrollment.course_id == Course.id)
            .where(Course.code == code)
        )
        if status:
            query = query.where(Enrollment.status == status.value)
        query = query.order_by(Enrollment.id)

        result = await self.db.execute(query)
        return [self._to_response(e, code) for e in result.scalars().all()]

    async def _admit(
        self,
        student_id: int,
        course_code: str,
    ) -> tuple[Enrollment, CapacityTransition]:
        """Run the admission unit of work. Caller holds the course slot.

        Raises:
            AdmissionRejectedError: On the first failed precondition.
            StorageUnavailableError: If the record store fails.
        """
        try:
            student = await self._get_student(student_id)
            if student is None or student.status != StudentStatus.ACTIVE.value:
                status = student.status if student else "missing"
                raise IneligibleStudentError(
                    f"Student {student_id} is not eligible for admission ({status})"
                )

            course = await self._get_course_for_update(course_code)
            if course is None:
                raise UnknownCourseError(f"Course {course_code} not found")

            if await self._get_active_enrollment(student.id, course.id):
                raise DuplicateEnrollmentError(
                    f"Student {student_id} is already enrolled in {course_code}"
                )

            active_count = await count_active_enrollments(self.db, course.id)
            if active_count >= course.max_capacity:
                raise CourseFullError(
                    f"Course {course_code} is full ({active_count}/{course.max_capacity})"
                )

            enrollment = Enrollment(
                student_id=student.id,
                course_id=course.id,
                enrollment_date=utc_now(),
                status=EnrollmentStatus.ENROLLED.value,
            )
            self.db.add(enrollment)
            try:
                await self.db.flush()
            except IntegrityError as e:
                # Active-pair unique index caught a concurrent writer
                raise DuplicateEnrollmentError(
                    f"Student {student_id} is already enrolled in {course_code}"
                ) from e

            transition = await CapacityStateMachine(self.db).evaluate(course)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StorageUnavailableError("Admission could not be committed", e) from e

        return enrollment, transition

    async def _commit(self, message: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StorageUnavailableError(message, e) from e

    async def _get_student(self, student_id: int) -> Student | None:
        # FOR SHARE: a concurrent removal's FOR UPDATE waits for this admission
        query = select(Student).where(Student.id == student_id).with_for_update(read=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _get_course_for_update(self, course_code: str) -> Course | None:
        """Get course by code, locking its row until the transaction ends."""
        query = select(Course).where(Course.code == course_code).with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _get_active_enrollment(self, student_id: int, course_id: int) -> Enrollment | None:
        query = select(Enrollment).where(
            Enrollment.student_id == student_id,
            Enrollment.course_id == course_id,
            Enrollment.status != EnrollmentStatus.WITHDRAWN.value,
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _get_enrollment(self, enrollment_id: int) -> Enrollment:
        """Get enrollment with its course loaded.

        Raises:
            EnrollmentNotFoundError: If not found.
        """
        query = (
            select(Enrollment)
            .options(selectinload(Enrollment.course))
            .where(Enrollment.id == enrollment_id)
        )
        result = await self.db.execute(query)
        enrollment = result.scalar_one_or_none()

        if not enrollment:
            raise EnrollmentNotFoundError(f"Enrollment {enrollment_id} not found")

        return enrollment

    def _to_response(self, enrollment: Enrollment, course_code: str) -> EnrollmentResponse:
        return EnrollmentResponse(
            id=enrollment.id,
            student_id=enrollment.student_id,
            course_id=enrollment.course_id,
            course_code=course_code,
            enrollment_date=ensure_utc(enrollment.enrollment_date),
            grade=enrollment.grade,
            status=EnrollmentStatus(enrollment.status),
            withdrawn_at=ensure_utc(enrollment.withdrawn_at),
        )
