# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for the admission engine.

Each domain module provides a service that runs one unit of work over an
async database session.

Domains:
    enrollment: Admission, withdrawal and per-course admission slots.
    course: Course records and the occupancy state machine.
    student: Student records and status changes.
    attendance: Attendance events and statistics.
    grading: Attendance-driven grade recompute cycles.
    risk: Good/Warning/Critical classification.
    archival: Archive-then-delete student removal.
"""
