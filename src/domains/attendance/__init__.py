# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance domain package.

This package provides attendance recording and per-student-per-course
statistics.
"""

from src.domains.attendance.service import (
    AttendanceService,
    AttendanceServiceError,
    AttendanceTargetNotFoundError,
    DuplicateAttendanceError,
    attendance_percentage,
)

__all__ = [
    "AttendanceService",
    "AttendanceServiceError",
    "AttendanceTargetNotFoundError",
    "DuplicateAttendanceError",
    "attendance_percentage",
]
