# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Archive snapshot models.

Written once by the archival coordinator immediately before a student is
removed and never modified afterwards. Archive rows carry the original ids
but no foreign keys to live tables, so they survive the cascade.
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base
from src.utils.datetime import utc_now


class ArchivedStudent(Base):
    """Snapshot of a removed student."""

    __tablename__ = "archived_students"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    archived_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    archived_by: Mapped[str] = mapped_column(String(100), nullable=False)

    attendance: Mapped[list[ArchivedAttendance]] = relationship(
        back_populates="archived_student",
        cascade="all, delete-orphan",
    )
    enrollments: Mapped[list[ArchivedEnrollment]] = relationship(
        back_populates="archived_student",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<ArchivedStudent(student_id={self.student_id}, archived_by={self.archived_by})>"


class ArchivedAttendance(Base):
    """Snapshot of one attendance record of a removed student."""

    __tablename__ = "archived_attendance"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    archived_student_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("archived_students.id", ondelete="CASCADE"),
        nullable=False,
    )
    attendance_record_id: Mapped[int] = mapped_column(Integer, nullable=False)
    student_id: Mapped[int] = mapped_column(Integer, nullable=False)
    course_id: Mapped[int] = mapped_column(Integer, nullable=False)
    attendance_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    archived_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    archived_by: Mapped[str] = mapped_column(String(100), nullable=False)

    archived_student: Mapped[ArchivedStudent] = relationship(back_populates="attendance")


class ArchivedEnrollment(Base):
    """Snapshot of one enrollment of a removed student."""

    __tablename__ = "archived_enrollments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    archived_student_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("archived_students.id", ondelete="CASCADE"),
        nullable=False,
    )
    enrollment_id: Mapped[int] = mapped_column(Integer, nullable=False)
    student_id: Mapped[int] = mapped_column(Integer, nullable=False)
    course_id: Mapped[int] = mapped_column(Integer, nullable=False)
    course_code: Mapped[str] = mapped_column(String(20), nullable=False)
    enrollment_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    grade: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    archived_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    archived_by: Mapped[str] = mapped_column(String(100), nullable=False)

    archived_student: Mapped[ArchivedStudent] = relationship(back_populates="enrollments")
