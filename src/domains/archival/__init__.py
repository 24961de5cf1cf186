# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Archival domain package.

This package provides archive-then-delete removal of students.
"""

from src.domains.archival.service import (
    ArchivalService,
    ArchivalServiceError,
    ArchiveWriteFailedError,
)

__all__ = [
    "ArchivalService",
    "ArchivalServiceError",
    "ArchiveWriteFailedError",
]
