# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment domain package.

This package provides student admission management including:
- Admission with eligibility, duplicate and capacity checks
- Per-course admission slots with bounded waits
- Enrollment withdrawal, completion and removal
"""

from src.domains.enrollment.locks import AdmissionSlotTimeout, CourseLockRegistry
from src.domains.enrollment.service import (
    AdmissionRejectedError,
    CourseFullError,
    DuplicateEnrollmentError,
    EnrollmentNotFoundError,
    EnrollmentService,
    EnrollmentServiceError,
    IneligibleStudentError,
    InvalidGradeError,
    NotEnrolledError,
    UnknownCourseError,
)

__all__ = [
    "AdmissionSlotTimeout",
    "CourseLockRegistry",
    "EnrollmentService",
    "EnrollmentServiceError",
    "AdmissionRejectedError",
    "IneligibleStudentError",
    "UnknownCourseError",
    "DuplicateEnrollmentError",
    "CourseFullError",
    "NotEnrolledError",
    "EnrollmentNotFoundError",
    "InvalidGradeError",
]
