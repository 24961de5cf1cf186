# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student removal schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class RemovalResult(BaseModel):
    """Result of archiving and removing a student."""

    student_id: int
    archived_student_id: int
    archived_attendance_count: int
    archived_enrollment_count: int
    affected_courses: list[str] = Field(default_factory=list)
    archived_at: datetime
    removed_by: str
