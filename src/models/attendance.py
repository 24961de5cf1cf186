# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance schemas."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from src.models.common import AttendanceStatus


class AttendanceRecordResponse(BaseModel):
    """A single attendance event."""

    id: int
    student_id: int
    course_id: int
    attendance_date: date
    status: AttendanceStatus
    remarks: str | None = None
    created_at: datetime


class AttendanceStats(BaseModel):
    """Presence statistics for one (student, course) pair.

    ``attendance_percentage`` is None (N/A) when no events exist.
    """

    student_id: int
    course_id: int
    present_count: int = 0
    absent_count: int = 0
    late_count: int = 0
    total: int = 0
    attendance_percentage: float | None = Field(default=None, ge=0, le=100)

    @property
    def has_records(self) -> bool:
        """Check whether any attendance was recorded."""
        return self.total > 0
