# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for the record store."""

from src.infrastructure.database.models.academics import (
    AttendanceRecord,
    Course,
    Enrollment,
    GradeAdjustment,
    Student,
)
from src.infrastructure.database.models.archive import (
    ArchivedAttendance,
    ArchivedEnrollment,
    ArchivedStudent,
)
from src.infrastructure.database.models.base import Base, TimestampMixin

__all__ = [
    "Base",
    "TimestampMixin",
    # Academic records
    "Student",
    "Course",
    "Enrollment",
    "AttendanceRecord",
    "GradeAdjustment",
    # Archive
    "ArchivedStudent",
    "ArchivedAttendance",
    "ArchivedEnrollment",
]
