# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student request/response schemas."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from src.models.common import StudentStatus


class StudentCreateRequest(BaseModel):
    """Request to register a student record."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    date_of_birth: date | None = None
    phone: str | None = Field(default=None, max_length=30)
    status: StudentStatus = StudentStatus.ACTIVE


class StudentResponse(BaseModel):
    """Student details."""

    id: int
    first_name: str
    last_name: str
    email: str
    date_of_birth: date | None
    phone: str | None
    status: StudentStatus
    created_at: datetime
