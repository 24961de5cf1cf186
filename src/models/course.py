# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course request/response schemas and capacity transitions."""

from pydantic import BaseModel, Field

from src.models.common import OccupancyState


def normalize_course_code(course_code: str) -> str:
    """Normalize a course code for lookups and lock keys."""
    return course_code.strip().upper()


class CourseCreateRequest(BaseModel):
    """Request to register a course."""

    code: str = Field(min_length=1, max_length=20)
    title: str = Field(min_length=1, max_length=200)
    credits: int = Field(gt=0)
    max_capacity: int = Field(gt=0)


class CourseResponse(BaseModel):
    """Course details with its current occupancy."""

    id: int
    code: str
    title: str
    credits: int
    max_capacity: int
    occupancy_state: OccupancyState
    active_enrollments: int


class CapacityTransition(BaseModel):
    """Outcome of evaluating a course's occupancy state.

    ``changed`` is False when the stored state already matched the count.
    """

    course_id: int
    course_code: str
    previous_state: OccupancyState
    current_state: OccupancyState
    active_count: int
    max_capacity: int
    changed: bool
