# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student service for registering students and changing their status.

Suspending or deactivating a student blocks new admissions; existing
enrollments are left as they are.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import Student
from src.models.common import StudentStatus
from src.models.student import StudentCreateRequest, StudentResponse
from src.utils.datetime import ensure_utc

logger = logging.getLogger(__name__)


class StudentServiceError(Exception):
    """Base exception for student service errors."""

    pass


class StudentNotFoundError(StudentServiceError):
    """Raised when student is not found."""

    pass


class DuplicateEmailError(StudentServiceError):
    """Raised when a student email is already registered."""

    pass


class StudentService:
    """Service for managing student records.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create_student(self, request: StudentCreateRequest) -> StudentResponse:
        """Register a student.

        Args:
            request: Student data.

        Returns:
            Created student.

        Raises:
            DuplicateEmailError: If the email is already registered.
        """
        student = Student(
            first_name=request.first_name,
            last_name=request.last_name,
            email=request.email.lower(),
            date_of_birth=request.date_of_birth,
            phone=request.phone,
            status=request.status.value,
        )
        self.db.add(student)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateEmailError(f"Email {request.email} already registered") from e

        await self.db.refresh(student)
        logger.info("Created student: id=%s, status=%s", student.id, student.status)
        return self._to_response(student)

    async def get_student(self, student_id: int) -> StudentResponse:
        """Get student details.

        Raises:
            StudentNotFoundError: If not found.
        """
        return self._to_response(await self._get_student(student_id))

    async def set_status(
        self,
        student_id: int,
        status: StudentStatus,
        changed_by: str | None = None,
    ) -> StudentResponse:
        """Change a student's status.

        Args:
            student_id: Student identifier.
            status: New status.
            changed_by: ID of user performing the change.

        Raises:
            StudentNotFoundError: If not found.
        """
        student = await self._get_student(student_id)
        previous = student.status
        student.status = status.value
        await self.db.commit()

        logger.info(
            "Student status changed: student=%s, %s -> %s, by=%s",
            student_id,
            previous,
            status.value,
            changed_by,
        )
        return self._to_response(student)

    async def _get_student(self, student_id: int) -> Student:
        query = select(Student).where(Student.id == student_id)
        result = await self.db.execute(query)
        student = result.scalar_one_or_none()

        if not student:
            raise StudentNotFoundError(f"Student {student_id} not found")

        return student

    def _to_response(self, student: Student) -> StudentResponse:
        return StudentResponse(
            id=student.id,
            first_name=student.first_name,
            last_name=student.last_name,
            email=student.email,
            date_of_birth=student.date_of_birth,
            phone=student.phone,
            status=StudentStatus(student.status),
            created_at=ensure_utc(student.created_at),
        )
