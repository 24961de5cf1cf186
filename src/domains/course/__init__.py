# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course domain package.

This package provides:
- Course registration and lookup
- The occupancy (capacity) state machine
"""

from src.domains.course.capacity import (
    CapacityStateMachine,
    count_active_enrollments,
    derive_state,
)
from src.domains.course.service import (
    CourseNotFoundError,
    CourseService,
    CourseServiceError,
    DuplicateCourseCodeError,
)

__all__ = [
    "CapacityStateMachine",
    "count_active_enrollments",
    "derive_state",
    "CourseService",
    "CourseServiceError",
    "CourseNotFoundError",
    "DuplicateCourseCodeError",
]
