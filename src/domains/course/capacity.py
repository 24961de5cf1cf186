# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course capacity state machine.

A course is FULL iff its non-withdrawn enrollment count is at least its
max_capacity, OPEN otherwise. The state is re-derived from the count inside
the caller's transaction after every enrollment mutation; it is never set
from outside this module.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import Course, Enrollment
from src.models.common import EnrollmentStatus, OccupancyState
from src.models.course import CapacityTransition

logger = logging.getLogger(__name__)


def derive_state(active_count: int, max_capacity: int) -> OccupancyState:
    """Derive the occupancy state for a count and capacity."""
    if active_count >= max_capacity:
        return OccupancyState.FULL
    return OccupancyState.OPEN


async def count_active_enrollments(db: AsyncSession, course_id: int) -> int:
    """Count non-withdrawn enrollments of a course in the current transaction."""
    query = select(func.count(Enrollment.id)).where(
        Enrollment.course_id == course_id,
        Enrollment.status != EnrollmentStatus.WITHDRAWN.value,
    )
    result = await db.execute(query)
    return int(result.scalar_one())


class CapacityStateMachine:
    """Evaluates and stores a course's occupancy state.

    Attributes:
        db: Async database session of the enclosing unit of work.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def evaluate(self, course: Course) -> CapacityTransition:
        """Re-derive the course's occupancy state from its enrollment count.

        Pending changes in the session are flushed first so the count sees
        them. When the stored state already matches, nothing is written.

        Args:
            course: Course to evaluate, attached to this session.

        Returns:
            The transition (``changed`` False for a no-op).
        """
        await self.db.flush()
        active_count = await count_active_enrollments(self.db, course.id)

        previous = course.occupancy_state
        current = derive_state(active_count, course.max_capacity)
        changed = previous != current

        if changed:
            course._occupancy_state = current.value
            await self.db.flush()
            logger.info(
                "Course occupancy changed: course=%s, %s -> %s, count=%d, capacity=%d",
                course.code,
                previous.value,
                current.value,
                active_count,
                course.max_capacity,
            )

        return CapacityTransition(
            course_id=course.id,
            course_code=course.code,
            previous_state=previous,
            current_state=current,
            active_count=active_count,
            max_capacity=course.max_capacity,
            changed=changed,
        )
