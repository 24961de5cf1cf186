# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment request/response schemas and admission results."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from src.models.common import EnrollmentStatus, OccupancyState


class AdmissionOutcome(str, Enum):
    """Top-level result of an admission request."""

    ENROLLED = "enrolled"
    REJECTED = "rejected"


class RejectionReason(str, Enum):
    """Why an admission request was rejected.

    TIMEOUT is retryable by the caller; the others are business outcomes.
    """

    INELIGIBLE_STUDENT = "ineligible_student"
    UNKNOWN_COURSE = "unknown_course"
    DUPLICATE_ENROLLMENT = "duplicate_enrollment"
    COURSE_FULL = "course_full"
    TIMEOUT = "timeout"


class EnrollmentResponse(BaseModel):
    """Enrollment details."""

    id: int
    student_id: int
    course_id: int
    course_code: str
    enrollment_date: datetime
    grade: int | None
    status: EnrollmentStatus
    withdrawn_at: datetime | None = None


class AdmissionResult(BaseModel):
    """Typed result of an admission request."""

    outcome: AdmissionOutcome
    student_id: int
    course_code: str
    enrollment: EnrollmentResponse | None = None
    occupancy_state: OccupancyState | None = None
    reason: RejectionReason | None = None
    message: str | None = None

    @property
    def is_enrolled(self) -> bool:
        """Check whether the request created an enrollment."""
        return self.outcome == AdmissionOutcome.ENROLLED

    @property
    def is_retryable(self) -> bool:
        """Check whether the caller may retry the same request."""
        return self.reason == RejectionReason.TIMEOUT

    @classmethod
    def enrolled(
        cls,
        enrollment: EnrollmentResponse,
        occupancy_state: OccupancyState,
    ) -> "AdmissionResult":
        """Build a successful admission result."""
        return cls(
            outcome=AdmissionOutcome.ENROLLED,
            student_id=enrollment.student_id,
            course_code=enrollment.course_code,
            enrollment=enrollment,
            occupancy_state=occupancy_state,
        )

    @classmethod
    def rejected(
        cls,
        student_id: int,
        course_code: str,
        reason: RejectionReason,
        message: str | None = None,
    ) -> "AdmissionResult":
        """Build a rejected admission result."""
        return cls(
            outcome=AdmissionOutcome.REJECTED,
            student_id=student_id,
            course_code=course_code,
            reason=reason,
            message=message,
        )
