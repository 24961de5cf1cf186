# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Engine wiring for the admission and academic-standing services.

AcademicEngine owns the settings, the sessionmaker and the shared lock
registry. Each call runs in its own unit of work (get_session), so concurrent
calls behave like independent workers, and binds its acting identity to the
log context only for the duration of the call.

Example:
    engine = await AcademicEngine.start(get_settings())
    result = await engine.enroll(student_id=42, course_code="CS101", actor="registrar-7")
    await engine.close()
"""

from __future__ import annotations

from datetime import date
from typing import AsyncContextManager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.config.settings import Settings
from src.domains.archival.service import ArchivalService
from src.domains.attendance.service import AttendanceService
from src.domains.enrollment.locks import CourseLockRegistry
from src.domains.enrollment.service import EnrollmentService
from src.domains.grading.service import GradingService
from src.domains.risk.service import RiskService
from src.infrastructure.database import connection
from src.models.archival import RemovalResult
from src.models.attendance import AttendanceRecordResponse, AttendanceStats
from src.models.common import AttendanceStatus
from src.models.enrollment import AdmissionResult, EnrollmentResponse
from src.models.grading import GradeRecomputeResult, RecomputePassSummary
from src.models.risk import RiskAssessment
from src.utils.logging import bound_context, get_logger, setup_logging

logger = get_logger(__name__)


class AcademicEngine:
    """Facade over the engine's services.

    Attributes:
        settings: Application settings.
        sessionmaker: Session factory for the record store.
        locks: Per-course admission slots shared by all calls.
    """

    def __init__(
        self,
        settings: Settings,
        sessionmaker: async_sessionmaker[AsyncSession],
        locks: CourseLockRegistry | None = None,
    ) -> None:
        self.settings = settings
        self.sessionmaker = sessionmaker
        self.locks = locks or CourseLockRegistry()

    @classmethod
    async def start(cls, settings: Settings, create_schema: bool = False) -> "AcademicEngine":
        """Configure logging, connect the record store and build the engine.

        Args:
            settings: Application settings.
            create_schema: Create missing tables (local runs and tests).
        """
        setup_logging(settings)
        await connection.init_database(settings)
        if create_schema:
            await connection.create_schema()

        logger.info("academic_engine_started", environment=settings.environment)
        return cls(settings, connection.get_sessionmaker())

    async def close(self) -> None:
        """Dispose of the record store connection pool."""
        await connection.close_database()

    async def enroll(
        self,
        student_id: int,
        course_code: str,
        actor: str | None = None,
    ) -> AdmissionResult:
        """Admit a student to a course. See EnrollmentService.enroll."""
        with bound_context(actor=actor, operation="enroll"):
            async with self._session() as session:
                return await self._enrollment(session).enroll(student_id, course_code, actor)

    async def withdraw(
        self,
        student_id: int,
        course_code: str,
        actor: str | None = None,
    ) -> EnrollmentResponse:
        """Withdraw a student from a course. See EnrollmentService.withdraw."""
        with bound_context(actor=actor, operation="withdraw"):
            async with self._session() as session:
                return await self._enrollment(session).withdraw(student_id, course_code, actor)

    async def record_attendance(
        self,
        student_id: int,
        course_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        remarks: str | None = None,
    ) -> AttendanceRecordResponse:
        """Append an attendance event."""
        async with self._session() as session:
            return await AttendanceService(session).record(
                student_id, course_id, attendance_date, status, remarks
            )

    async def stats(self, student_id: int, course_id: int) -> AttendanceStats:
        """Aggregate attendance for a (student, course) pair."""
        async with self._session() as session:
            return await AttendanceService(session).stats(student_id, course_id)

    async def recompute_grade(self, enrollment_id: int, cycle_id: str) -> GradeRecomputeResult:
        """Recompute one enrollment's grade within a cycle."""
        async with self._session() as session:
            return await GradingService(session, self.settings.grading).recompute_grade(
                enrollment_id, cycle_id
            )

    async def run_recompute_pass(
        self,
        cycle_id: str,
        course_id: int | None = None,
    ) -> RecomputePassSummary:
        """Recompute all graded enrollments once for a cycle."""
        async with self._session() as session:
            return await GradingService(session, self.settings.grading).run_recompute_pass(
                cycle_id, course_id
            )

    async def assess(self, enrollment_id: int) -> RiskAssessment:
        """Classify one enrollment's risk status."""
        async with self._session() as session:
            return await RiskService(session).assess(enrollment_id)

    async def remove_student(self, student_id: int, actor: str) -> RemovalResult:
        """Archive and remove a student. See ArchivalService.remove_student."""
        with bound_context(actor=actor, operation="remove_student"):
            async with self._session() as session:
                service = ArchivalService(
                    session,
                    self.locks,
                    self.settings.admission.lock_timeout_seconds,
                )
                return await service.remove_student(student_id, actor)

    def _enrollment(self, session: AsyncSession) -> EnrollmentService:
        return EnrollmentService(
            session,
            self.locks,
            self.settings.admission.lock_timeout_seconds,
        )

    def _session(self) -> AsyncContextManager[AsyncSession]:
        return connection.get_session(self.sessionmaker)
