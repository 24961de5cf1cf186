# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course service for registering and looking up courses.

Occupancy is never accepted from callers; a new course starts OPEN and is
re-evaluated by the capacity state machine.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.course.capacity import CapacityStateMachine, count_active_enrollments
from src.infrastructure.database.models import Course
from src.models.course import CourseCreateRequest, CourseResponse, normalize_course_code

logger = logging.getLogger(__name__)


class CourseServiceError(Exception):
    """Base exception for course service errors."""

    pass


class CourseNotFoundError(CourseServiceError):
    """Raised when course is not found."""

    pass


class DuplicateCourseCodeError(CourseServiceError):
    """Raised when a course code is already taken."""

    pass


class CourseService:
    """Service for managing course records.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create_course(self, request: CourseCreateRequest) -> CourseResponse:
        """Register a course.

        Args:
            request: Course data.

        Returns:
            Created course.

        Raises:
            DuplicateCourseCodeError: If the code already exists.
        """
        course = Course(
            code=normalize_course_code(request.code),
            title=request.title,
            credits=request.credits,
            max_capacity=request.max_capacity,
        )
        self.db.add(course)
        try:
            await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateCourseCodeError(f"Course code {course.code} already exists") from e

        await CapacityStateMachine(self.db).evaluate(course)
        await self.db.commit()

        logger.info("Created course: code=%s, capacity=%d", course.code, course.max_capacity)

        return await self._to_response(course)

    async def get_course(self, course_code: str) -> CourseResponse:
        """Get course details by code.

        Raises:
            CourseNotFoundError: If not found.
        """
        course = await self.get_course_model(course_code)
        return await self._to_response(course)

    async def get_course_model(self, course_code: str) -> Course:
        """Get course model by code.

        Raises:
            CourseNotFoundError: If not found.
        """
        query = select(Course).where(Course.code == normalize_course_code(course_code))
        result = await self.db.execute(query)
        course = result.scalar_one_or_none()

        if not course:
            raise CourseNotFoundError(f"Course {course_code} not found")

        return course

    async def _to_response(self, course: Course) -> CourseResponse:
        active = await count_active_enrollments(self.db, course.id)
        return CourseResponse(
            id=course.id,
            code=course.code,
            title=course.title,
            credits=course.credits,
            max_capacity=course.max_capacity,
            occupancy_state=course.occupancy_state,
            active_enrollments=active,
        )
