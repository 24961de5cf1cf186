# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for database integration tests.

Each test gets a fresh SQLite file database (aiosqlite driver, foreign keys
on) with the full schema, plus factories for students and courses.
"""

import itertools
from collections.abc import Awaitable, Callable
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from src.core.config.settings import AdmissionSettings, DatabaseSettings, Settings
from src.domains.course.service import CourseService
from src.domains.enrollment.locks import CourseLockRegistry
from src.domains.enrollment.service import EnrollmentService
from src.domains.student.service import StudentService
from src.infrastructure.database.connection import (
    create_database_engine,
    create_schema,
    create_sessionmaker,
)
from src.models.common import StudentStatus
from src.models.course import CourseCreateRequest, CourseResponse
from src.models.student import StudentCreateRequest, StudentResponse


@pytest.fixture
def database_url(tmp_path) -> str:
    """SQLite URL for a per-test database file."""
    return f"sqlite+aiosqlite:///{tmp_path / 'registrar_test.db'}"


@pytest.fixture
def test_settings(database_url: str) -> Settings:
    """Settings pointing at the per-test database."""
    return Settings(
        environment="test",
        log_level="DEBUG",
        database=DatabaseSettings(url_override=database_url),
        admission=AdmissionSettings(lock_timeout_seconds=2.0),
    )


@pytest_asyncio.fixture
async def db_engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine with the schema in place."""
    engine = create_database_engine(database_url)
    await create_schema(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Sessionmaker bound to the test engine."""
    return create_sessionmaker(db_engine)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create async session for tests."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def lock_registry() -> CourseLockRegistry:
    """Lock registry shared by every service in a test."""
    return CourseLockRegistry()


@pytest.fixture
def make_student(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[StudentResponse]]:
    """Factory creating students in their own session."""
    counter = itertools.count(1)

    async def _make(status: StudentStatus = StudentStatus.ACTIVE) -> StudentResponse:
        n = next(counter)
        async with session_factory() as session:
            return await StudentService(session).create_student(
                StudentCreateRequest(
                    first_name="Student",
                    last_name=f"Number{n}",
                    email=f"student{n}@example.edu",
                    status=status,
                )
            )

    return _make


@pytest.fixture
def make_course(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[CourseResponse]]:
    """Factory creating courses in their own session."""

    async def _make(code: str = "CS101", max_capacity: int = 30, credits: int = 4) -> CourseResponse:
        async with session_factory() as session:
            return await CourseService(session).create_course(
                CourseCreateRequest(
                    code=code,
                    title=f"Course {code}",
                    credits=credits,
                    max_capacity=max_capacity,
                )
            )

    return _make


@pytest.fixture
def enroll(
    session_factory: async_sessionmaker[AsyncSession],
    lock_registry: CourseLockRegistry,
):
    """Run one admission as an independent worker with its own session."""

    async def _enroll(student_id: int, course_code: str, lock_timeout: float = 2.0):
        async with session_factory() as session:
            service = EnrollmentService(session, lock_registry, lock_timeout)
            return await service.enroll(student_id, course_code, enrolled_by="test-registrar")

    return _enroll
