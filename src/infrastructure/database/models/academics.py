# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic record models.

Students, courses, enrollments, attendance events and the grade adjustment
ledger. Enrollments, attendance and adjustments are removed by the database
when their parent row is deleted (``ON DELETE CASCADE``).
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin
from src.models.common import (
    EnrollmentStatus,
    OccupancyState,
    StudentStatus,
)
from src.utils.datetime import utc_now

_ACTIVE_ENROLLMENT = text("status <> 'withdrawn'")


class Student(Base, TimestampMixin):
    """A student record."""

    __tablename__ = "students"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=StudentStatus.ACTIVE.value,
    )

    enrollments: Mapped[list[Enrollment]] = relationship(
        back_populates="student",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    attendance_records: Mapped[list[AttendanceRecord]] = relationship(
        back_populates="student",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'inactive', 'suspended')",
            name="status_valid",
        ),
        # Archive rows key on student_id; ids must never be reused
        {"sqlite_autoincrement": True},
    )

    @property
    def full_name(self) -> str:
        """Return first and last name joined."""
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active(self) -> bool:
        """Check whether the student may be admitted to courses."""
        return self.status == StudentStatus.ACTIVE.value

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, email={self.email}, status={self.status})>"


class Course(Base, TimestampMixin):
    """A capacity-limited course.

    ``occupancy_state`` is derived from the enrollment count and is written
    only by :class:`src.domains.course.capacity.CapacityStateMachine`.
    """

    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    credits: Mapped[int] = mapped_column(Integer, nullable=False)
    max_capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    _occupancy_state: Mapped[str] = mapped_column(
        "occupancy_state",
        String(10),
        nullable=False,
        default=OccupancyState.OPEN.value,
    )

    enrollments: Mapped[list[Enrollment]] = relationship(
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    attendance_records: Mapped[list[AttendanceRecord]] = relationship(
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("credits > 0", name="credits_positive"),
        CheckConstraint("max_capacity > 0", name="max_capacity_positive"),
        CheckConstraint(
            "occupancy_state IN ('open', 'full')",
            name="occupancy_state_valid",
        ),
    )

    @property
    def occupancy_state(self) -> OccupancyState:
        """Current derived occupancy state."""
        return OccupancyState(self._occupancy_state or OccupancyState.OPEN.value)

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, code={self.code}, state={self._occupancy_state})>"


class Enrollment(Base, TimestampMixin):
    """Links one student to one course.

    At most one non-withdrawn enrollment may exist per (student, course).
    """

    __tablename__ = "enrollments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    course_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
    )
    enrollment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    grade: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=EnrollmentStatus.ENROLLED.value,
    )
    withdrawn_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    student: Mapped[Student] = relationship(back_populates="enrollments")
    course: Mapped[Course] = relationship(back_populates="enrollments")
    grade_adjustments: Mapped[list[GradeAdjustment]] = relationship(
        back_populates="enrollment",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint(
            "grade IS NULL OR (grade >= 0 AND grade <= 100)",
            name="grade_range",
        ),
        CheckConstraint(
            "status IN ('enrolled', 'completed', 'withdrawn')",
            name="status_valid",
        ),
        Index(
            "uq_enrollments_active_pair",
            "student_id",
            "course_id",
            unique=True,
            postgresql_where=_ACTIVE_ENROLLMENT,
            sqlite_where=_ACTIVE_ENROLLMENT,
        ),
        Index("ix_enrollments_course_status", "course_id", "status"),
    )

    @property
    def is_active(self) -> bool:
        """Check whether this enrollment occupies a seat."""
        return self.status != EnrollmentStatus.WITHDRAWN.value

    def __repr__(self) -> str:
        return (
            f"<Enrollment(id={self.id}, student={self.student_id}, "
            f"course={self.course_id}, status={self.status})>"
        )


class AttendanceRecord(Base, TimestampMixin):
    """A single attendance event. Append-only."""

    __tablename__ = "attendance_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    course_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
    )
    attendance_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    student: Mapped[Student] = relationship(back_populates="attendance_records")
    course: Mapped[Course] = relationship(back_populates="attendance_records")

    __table_args__ = (
        UniqueConstraint(
            "student_id",
            "course_id",
            "attendance_date",
            name="uq_attendance_records_student_course_date",
        ),
        CheckConstraint(
            "status IN ('present', 'absent', 'late')",
            name="status_valid",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<AttendanceRecord(student={self.student_id}, course={self.course_id}, "
            f"date={self.attendance_date}, status={self.status})>"
        )


class GradeAdjustment(Base, TimestampMixin):
    """Ledger entry for one enrollment in one recompute cycle.

    ``grade_before`` is the grade as it stood when the cycle first touched
    the enrollment; every recompute in the same cycle starts from it.
    """

    __tablename__ = "grade_adjustments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    enrollment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("enrollments.id", ondelete="CASCADE"),
        nullable=False,
    )
    cycle_id: Mapped[str] = mapped_column(String(64), nullable=False)
    grade_before: Mapped[int] = mapped_column(Integer, nullable=False)
    grade_after: Mapped[int] = mapped_column(Integer, nullable=False)
    attendance_percentage: Mapped[float] = mapped_column(Float, nullable=False)

    enrollment: Mapped[Enrollment] = relationship(back_populates="grade_adjustments")

    __table_args__ = (
        UniqueConstraint(
            "enrollment_id",
            "cycle_id",
            name="uq_grade_adjustments_enrollment_cycle",
        ),
    )
