# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for database models.

Tests model definitions, constraints, and helper properties.
"""

import pytest

from src.infrastructure.database.models import (
    ArchivedAttendance,
    ArchivedEnrollment,
    ArchivedStudent,
    AttendanceRecord,
    Course,
    Enrollment,
    GradeAdjustment,
    Student,
)
from src.infrastructure.database.models.base import Base, TimestampMixin
from src.models.common import OccupancyState


class TestBase:
    """Test base model functionality."""

    def test_base_inherits_declarative_base(self):
        """Verify Base is a declarative base."""
        assert hasattr(Base, "metadata")
        assert hasattr(Base, "registry")

    def test_timestamp_mixin_has_timestamps(self):
        """Verify TimestampMixin has created_at and updated_at fields."""
        assert hasattr(TimestampMixin, "created_at")
        assert hasattr(TimestampMixin, "updated_at")

    def test_all_tables_registered(self):
        """Verify every record store table is in the metadata."""
        assert set(Base.metadata.tables) == {
            "students",
            "courses",
            "enrollments",
            "attendance_records",
            "grade_adjustments",
            "archived_students",
            "archived_attendance",
            "archived_enrollments",
        }


class TestAcademicModels:
    """Test live academic record models."""

    def test_student_helpers(self):
        """Verify Student name and eligibility helpers."""
        student = Student(first_name="Ada", last_name="Lovelace", email="ada@example.edu", status="active")

        assert student.full_name == "Ada Lovelace"
        assert student.is_active is True

        student.status = "suspended"
        assert student.is_active is False

    def test_course_occupancy_state_is_read_only(self):
        """Verify occupancy_state has no setter."""
        course = Course(code="CS101", title="Intro", credits=4, max_capacity=2)

        assert course.occupancy_state == OccupancyState.OPEN
        with pytest.raises(AttributeError):
            course.occupancy_state = OccupancyState.FULL  # type: ignore[misc]

    def test_enrollment_is_active(self):
        """Verify withdrawn enrollments release their seat."""
        assert Enrollment(status="enrolled").is_active is True
        assert Enrollment(status="completed").is_active is True
        assert Enrollment(status="withdrawn").is_active is False

    def test_active_pair_index_is_partial_and_unique(self):
        """Verify one non-withdrawn enrollment per student and course."""
        index = next(i for i in Enrollment.__table__.indexes if i.name == "uq_enrollments_active_pair")

        assert index.unique is True
        assert [c.name for c in index.columns] == ["student_id", "course_id"]
        assert "withdrawn" in str(index.dialect_options["postgresql"]["where"])
        assert "withdrawn" in str(index.dialect_options["sqlite"]["where"])

    def test_child_foreign_keys_cascade(self):
        """Verify deleting a student or course cascades to its records."""
        for model in (Enrollment, AttendanceRecord):
            for fk in model.__table__.foreign_keys:
                assert fk.ondelete == "CASCADE"
        for fk in GradeAdjustment.__table__.foreign_keys:
            assert fk.ondelete == "CASCADE"

    def test_attendance_unique_per_date(self):
        """Verify one attendance record per student, course and date."""
        names = {c.name for c in AttendanceRecord.__table__.constraints}

        assert "uq_attendance_records_student_course_date" in names

    def test_grade_adjustment_unique_per_cycle(self):
        """Verify one ledger entry per enrollment and cycle."""
        names = {c.name for c in GradeAdjustment.__table__.constraints}

        assert "uq_grade_adjustments_enrollment_cycle" in names


class TestArchiveModels:
    """Test archive snapshot models."""

    @pytest.mark.parametrize("model", [ArchivedStudent, ArchivedAttendance, ArchivedEnrollment])
    def test_no_foreign_keys_to_live_tables(self, model):
        """Verify archive rows survive deletion of the live records."""
        live_tables = {"students", "courses", "enrollments", "attendance_records"}

        referenced = {fk.column.table.name for fk in model.__table__.foreign_keys}

        assert not referenced & live_tables

    def test_archived_enrollment_keeps_course_code(self):
        """Verify the course code is snapshotted with the enrollment."""
        assert "course_code" in ArchivedEnrollment.__table__.columns
