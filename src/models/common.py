# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared enums for the admission engine.

Values are the lowercase strings stored in the database.
"""

from enum import Enum


class StudentStatus(str, Enum):
    """Student lifecycle status. Only ACTIVE students may be admitted."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class OccupancyState(str, Enum):
    """Derived course occupancy state."""

    OPEN = "open"
    FULL = "full"


class EnrollmentStatus(str, Enum):
    """Enrollment status.

    ENROLLED and COMPLETED both occupy a seat; WITHDRAWN releases it.
    """

    ENROLLED = "enrolled"
    COMPLETED = "completed"
    WITHDRAWN = "withdrawn"


class AttendanceStatus(str, Enum):
    """Attendance event status. LATE does not count as present."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class RiskStatus(str, Enum):
    """Academic standing label derived from grade and attendance."""

    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"
