# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Risk classification from grade and attendance.

Rules, first match wins:

    CRITICAL  grade < 60 and attendance < 75
    WARNING   grade < 70 or  attendance < 80
    GOOD      otherwise
"""

from src.models.common import RiskStatus

CRITICAL_GRADE = 60
CRITICAL_ATTENDANCE = 75.0
WARNING_GRADE = 70
WARNING_ATTENDANCE = 80.0


def classify(grade: float, attendance_percentage: float) -> RiskStatus:
    """Classify academic standing.

    Args:
        grade: Grade in 0..100.
        attendance_percentage: Attendance in 0..100.

    Returns:
        Exactly one of GOOD, WARNING or CRITICAL.
    """
    if grade < CRITICAL_GRADE and attendance_percentage < CRITICAL_ATTENDANCE:
        return RiskStatus.CRITICAL
    if grade < WARNING_GRADE or attendance_percentage < WARNING_ATTENDANCE:
        return RiskStatus.WARNING
    return RiskStatus.GOOD
