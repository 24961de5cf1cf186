# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic schemas and shared enums for the admission engine."""

from src.models.archival import RemovalResult
from src.models.attendance import AttendanceRecordResponse, AttendanceStats
from src.models.common import (
    AttendanceStatus,
    EnrollmentStatus,
    OccupancyState,
    RiskStatus,
    StudentStatus,
)
from src.models.course import CapacityTransition, CourseCreateRequest, CourseResponse
from src.models.enrollment import (
    AdmissionOutcome,
    AdmissionResult,
    EnrollmentResponse,
    RejectionReason,
)
from src.models.grading import GradeRecomputeResult, RecomputePassSummary
from src.models.risk import RiskAssessment
from src.models.student import StudentCreateRequest, StudentResponse

__all__ = [
    # Enums
    "AttendanceStatus",
    "EnrollmentStatus",
    "OccupancyState",
    "RiskStatus",
    "StudentStatus",
    # Students and courses
    "StudentCreateRequest",
    "StudentResponse",
    "CourseCreateRequest",
    "CourseResponse",
    "CapacityTransition",
    # Enrollment
    "AdmissionOutcome",
    "AdmissionResult",
    "EnrollmentResponse",
    "RejectionReason",
    # Attendance, grading, risk
    "AttendanceRecordResponse",
    "AttendanceStats",
    "GradeRecomputeResult",
    "RecomputePassSummary",
    "RiskAssessment",
    # Archival
    "RemovalResult",
]
