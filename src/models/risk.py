# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Risk assessment schemas."""

from pydantic import BaseModel

from src.models.common import RiskStatus


class RiskAssessment(BaseModel):
    """Academic standing of one enrollment.

    ``risk_status`` is None when the grade is unset or no attendance exists.
    """

    enrollment_id: int
    student_id: int
    course_id: int
    grade: int | None
    attendance_percentage: float | None
    risk_status: RiskStatus | None
