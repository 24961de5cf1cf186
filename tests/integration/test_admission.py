# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for admission against a real record store."""

import asyncio

import pytest
from sqlalchemy import func, select

from src.domains.course.service import CourseService
from src.domains.enrollment.service import EnrollmentService, NotEnrolledError
from src.infrastructure.database.models import Enrollment
from src.models.common import EnrollmentStatus, OccupancyState, StudentStatus
from src.models.enrollment import AdmissionOutcome, RejectionReason


async def _active_count(session_factory, course_id: int) -> int:
    async with session_factory() as session:
        result = await session.execute(
            select(func.count(Enrollment.id)).where(
                Enrollment.course_id == course_id,
                Enrollment.status != EnrollmentStatus.WITHDRAWN.value,
            )
        )
        return result.scalar_one()


async def _occupancy(session_factory, code: str) -> OccupancyState:
    async with session_factory() as session:
        course = await CourseService(session).get_course(code)
        return course.occupancy_state


@pytest.mark.integration
class TestAdmission:
    """Tests for single admission requests."""

    @pytest.mark.asyncio
    async def test_enroll_success(self, make_student, make_course, enroll):
        """Test an active student is admitted to an open course."""
        student = await make_student()
        await make_course("CS101", max_capacity=2)

        result = await enroll(student.id, "cs101")

        assert result.outcome == AdmissionOutcome.ENROLLED
        assert result.is_enrolled
        assert result.enrollment is not None
        assert result.enrollment.course_code == "CS101"
        assert result.enrollment.status == EnrollmentStatus.ENROLLED
        assert result.enrollment.grade is None
        assert result.occupancy_state == OccupancyState.OPEN

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [StudentStatus.SUSPENDED, StudentStatus.INACTIVE])
    async def test_enroll_ineligible_student(self, make_student, make_course, enroll, session_factory, status):
        """Test non-active students are rejected and nothing is written."""
        student = await make_student(status=status)
        course = await make_course("CS101")

        result = await enroll(student.id, "CS101")

        assert result.outcome == AdmissionOutcome.REJECTED
        assert result.reason == RejectionReason.INELIGIBLE_STUDENT
        assert await _active_count(session_factory, course.id) == 0

    @pytest.mark.asyncio
    async def test_enroll_missing_student_is_ineligible(self, make_course, enroll):
        """Test an unknown student id is reported as ineligible."""
        await make_course("CS101")

        result = await enroll(9999, "CS101")

        assert result.reason == RejectionReason.INELIGIBLE_STUDENT

    @pytest.mark.asyncio
    async def test_eligibility_checked_before_course(self, make_student, enroll):
        """Test an ineligible student on an unknown course reports eligibility first."""
        student = await make_student(status=StudentStatus.SUSPENDED)

        result = await enroll(student.id, "NOPE999")

        assert result.reason == RejectionReason.INELIGIBLE_STUDENT

    @pytest.mark.asyncio
    async def test_enroll_unknown_course(self, make_student, enroll):
        """Test unknown course codes are rejected."""
        student = await make_student()

        result = await enroll(student.id, "NOPE999")

        assert result.reason == RejectionReason.UNKNOWN_COURSE

    @pytest.mark.asyncio
    async def test_enroll_duplicate(self, make_student, make_course, enroll, session_factory):
        """Test a second admission for the same pair is rejected."""
        student = await make_student()
        course = await make_course("CS101")

        first = await enroll(student.id, "CS101")
        second = await enroll(student.id, "CS101")

        assert first.is_enrolled
        assert second.reason == RejectionReason.DUPLICATE_ENROLLMENT
        assert await _active_count(session_factory, course.id) == 1

    @pytest.mark.asyncio
    async def test_enroll_course_full(self, make_student, make_course, enroll):
        """Test admission stops at max_capacity and the course turns full."""
        first = await make_student()
        second = await make_student()
        await make_course("CS101", max_capacity=1)

        ok = await enroll(first.id, "CS101")
        full = await enroll(second.id, "CS101")

        assert ok.occupancy_state == OccupancyState.FULL
        assert full.reason == RejectionReason.COURSE_FULL
        assert not full.is_retryable

    @pytest.mark.asyncio
    async def test_enroll_timeout_when_slot_held(self, make_student, make_course, enroll, lock_registry, session_factory):
        """Test a held admission slot produces a retryable timeout."""
        student = await make_student()
        course = await make_course("CS101")

        async with lock_registry.hold("CS101", timeout=1.0):
            result = await enroll(student.id, "CS101", lock_timeout=0.05)

        assert result.reason == RejectionReason.TIMEOUT
        assert result.is_retryable
        assert await _active_count(session_factory, course.id) == 0

        retry = await enroll(student.id, "CS101")
        assert retry.is_enrolled


@pytest.mark.integration
class TestConcurrentAdmission:
    """Tests for concurrent admission requests."""

    @pytest.mark.asyncio
    async def test_two_students_race_for_last_seat(self, make_student, make_course, enroll, session_factory):
        """Test exactly one of two concurrent requests wins a single seat."""
        student_a = await make_student()
        student_b = await make_student()
        course = await make_course("CS101", max_capacity=1)

        results = await asyncio.gather(
            enroll(student_a.id, "CS101"),
            enroll(student_b.id, "CS101"),
        )

        outcomes = sorted(r.outcome.value for r in results)
        assert outcomes == ["enrolled", "rejected"]
        rejected = next(r for r in results if not r.is_enrolled)
        assert rejected.reason == RejectionReason.COURSE_FULL
        assert await _active_count(session_factory, course.id) == 1

    @pytest.mark.asyncio
    @pytest.mark.slow
    async def test_capacity_never_exceeded(self, make_student, make_course, enroll, session_factory):
        """Test N concurrent requests beyond the remaining seats fill exactly the capacity."""
        students = [await make_student() for _ in range(10)]
        course = await make_course("CS101", max_capacity=3)

        results = await asyncio.gather(*(enroll(s.id, "CS101") for s in students))

        enrolled = [r for r in results if r.is_enrolled]
        rejected = [r for r in results if not r.is_enrolled]
        assert len(enrolled) == 3
        assert {r.reason for r in rejected} == {RejectionReason.COURSE_FULL}
        assert await _active_count(session_factory, course.id) == 3
        assert await _occupancy(session_factory, "CS101") == OccupancyState.FULL

    @pytest.mark.asyncio
    async def test_concurrent_duplicates_admit_once(self, make_student, make_course, enroll, session_factory):
        """Test concurrent requests for the same pair create one enrollment."""
        student = await make_student()
        course = await make_course("CS101", max_capacity=10)

        results = await asyncio.gather(*(enroll(student.id, "CS101") for _ in range(5)))

        assert sum(r.is_enrolled for r in results) == 1
        assert {r.reason for r in results if not r.is_enrolled} == {
            RejectionReason.DUPLICATE_ENROLLMENT
        }
        assert await _active_count(session_factory, course.id) == 1

    @pytest.mark.asyncio
    async def test_other_course_not_blocked(self, make_student, make_course, enroll, lock_registry):
        """Test a held slot for one course does not delay another course."""
        student = await make_student()
        await make_course("CS101")
        await make_course("MATH200")

        async with lock_registry.hold("CS101", timeout=1.0):
            result = await enroll(student.id, "MATH200", lock_timeout=0.05)

        assert result.is_enrolled


@pytest.mark.integration
class TestEnrollmentMutations:
    """Tests for withdrawal, completion, grades and removal."""

    @pytest.mark.asyncio
    async def test_withdraw_reopens_full_course(self, make_student, make_course, enroll, session_factory, lock_registry):
        """Test withdrawal drops a full course back to open and frees the seat."""
        first = await make_student()
        second = await make_student()
        await make_course("CS101", max_capacity=1)
        await enroll(first.id, "CS101")

        async with session_factory() as session:
            withdrawn = await EnrollmentService(session, lock_registry).withdraw(first.id, "CS101")

        assert withdrawn.status == EnrollmentStatus.WITHDRAWN
        assert withdrawn.withdrawn_at is not None
        assert await _occupancy(session_factory, "CS101") == OccupancyState.OPEN

        result = await enroll(second.id, "CS101")
        assert result.is_enrolled
        assert result.occupancy_state == OccupancyState.FULL

    @pytest.mark.asyncio
    async def test_re_enroll_after_withdrawal(self, make_student, make_course, enroll, session_factory, lock_registry):
        """Test a withdrawn student can be admitted again."""
        student = await make_student()
        await make_course("CS101")
        await enroll(student.id, "CS101")

        async with session_factory() as session:
            await EnrollmentService(session, lock_registry).withdraw(student.id, "CS101")

        again = await enroll(student.id, "CS101")

        assert again.is_enrolled
        async with session_factory() as session:
            history = await EnrollmentService(session, lock_registry).list_course_enrollments("CS101")
        assert [e.status for e in history] == [EnrollmentStatus.WITHDRAWN, EnrollmentStatus.ENROLLED]

    @pytest.mark.asyncio
    async def test_withdraw_not_enrolled(self, make_student, make_course, session_factory, lock_registry):
        """Test withdrawing without an active enrollment fails."""
        student = await make_student()
        await make_course("CS101")

        async with session_factory() as session:
            with pytest.raises(NotEnrolledError):
                await EnrollmentService(session, lock_registry).withdraw(student.id, "CS101")

    @pytest.mark.asyncio
    async def test_completed_enrollment_keeps_seat(self, make_student, make_course, enroll, session_factory, lock_registry):
        """Test completed enrollments still count toward capacity."""
        first = await make_student()
        second = await make_student()
        await make_course("CS101", max_capacity=1)
        admitted = await enroll(first.id, "CS101")

        async with session_factory() as session:
            completed = await EnrollmentService(session, lock_registry).complete(admitted.enrollment.id)

        assert completed.status == EnrollmentStatus.COMPLETED
        result = await enroll(second.id, "CS101")
        assert result.reason == RejectionReason.COURSE_FULL

    @pytest.mark.asyncio
    async def test_remove_enrollment_reopens_course(self, make_student, make_course, enroll, session_factory, lock_registry):
        """Test deleting an enrollment re-derives the course state."""
        student = await make_student()
        await make_course("CS101", max_capacity=1)
        admitted = await enroll(student.id, "CS101")

        async with session_factory() as session:
            transition = await EnrollmentService(session, lock_registry).remove_enrollment(
                admitted.enrollment.id, removed_by="admin"
            )

        assert transition.changed is True
        assert transition.previous_state == OccupancyState.FULL
        assert transition.current_state == OccupancyState.OPEN
        assert transition.active_count == 0

    @pytest.mark.asyncio
    async def test_record_grade(self, make_student, make_course, enroll, session_factory, lock_registry):
        """Test recording a base grade."""
        student = await make_student()
        await make_course("CS101")
        admitted = await enroll(student.id, "CS101")

        async with session_factory() as session:
            updated = await EnrollmentService(session, lock_registry).record_grade(admitted.enrollment.id, 88)

        assert updated.grade == 88
