# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Per-course admission slots and per-student gates.

Each course code maps to its own asyncio.Lock. Holding the lock is the
exclusive section for "count active enrollments, then insert". Requests for
different courses never share a lock, so they proceed in parallel.

Each student maps to a shared/exclusive gate. Admissions hold it shared, so
one student's requests for different courses still run in parallel; student
removal holds it exclusively, so no admission for that student can commit
between the archive snapshot and the delete. Gates are always taken before
course slots.

Example:
    registry = CourseLockRegistry()

    async with registry.hold_student(42, timeout=5.0):
        async with registry.hold("CS101", timeout=5.0):
            ...  # check-and-insert for CS101
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable

from src.core.config import get_settings
from src.models.course import normalize_course_code

logger = logging.getLogger(__name__)


def default_lock_timeout() -> float:
    """Configured bounded wait for slots and gates (ADMISSION_LOCK_TIMEOUT_SECONDS)."""
    return get_settings().admission.lock_timeout_seconds


class AdmissionSlotTimeout(Exception):
    """Raised when a course slot or student gate is not acquired in time.

    Attributes:
        course_code: Course whose slot was contended, if any.
        student_id: Student whose gate was contended, if any.
        timeout: Seconds waited.
    """

    def __init__(
        self,
        course_code: str | None,
        timeout: float,
        student_id: int | None = None,
    ) -> None:
        slot = course_code if course_code is not None else f"student {student_id}"
        super().__init__(f"Timed out after {timeout:.2f}s waiting for admission slot of {slot}")
        self.course_code = course_code
        self.student_id = student_id
        self.timeout = timeout


class StudentGate:
    """Shared/exclusive gate for one student's records.

    A waiting exclusive holder blocks new shared holders, so a removal is not
    starved by a steady stream of admissions.
    """

    def __init__(self) -> None:
        self._condition = asyncio.Condition()
        self._shared = 0
        self._exclusive = False
        self._exclusive_waiting = 0

    @property
    def is_held(self) -> bool:
        return self._exclusive or self._shared > 0

    @property
    def is_exclusive(self) -> bool:
        return self._exclusive

    async def acquire_shared(self) -> None:
        async with self._condition:
            await self._condition.wait_for(
                lambda: not self._exclusive and not self._exclusive_waiting
            )
            self._shared += 1

    async def release_shared(self) -> None:
        async with self._condition:
            self._shared -= 1
            self._condition.notify_all()

    async def acquire_exclusive(self) -> None:
        async with self._condition:
            self._exclusive_waiting += 1
            try:
                await self._condition.wait_for(
                    lambda: not self._exclusive and self._shared == 0
                )
            finally:
                self._exclusive_waiting -= 1
                # Shared waiters blocked behind this one may proceed on timeout
                self._condition.notify_all()
            self._exclusive = True

    async def release_exclusive(self) -> None:
        async with self._condition:
            self._exclusive = False
            self._condition.notify_all()


class CourseLockRegistry:
    """Registry of per-course locks and per-student gates shared by all workers in a process."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._gates: dict[int, StudentGate] = {}

    def lock_for(self, course_code: str) -> asyncio.Lock:
        """Get (creating on first use) the lock for a course.

        Args:
            course_code: Course code, normalized before use.

        Returns:
            The course's lock.
        """
        key = normalize_course_code(course_code)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks.setdefault(key, asyncio.Lock())
        return lock

    def gate_for(self, student_id: int) -> StudentGate:
        return self._gates.setdefault(student_id, StudentGate())

    def is_held(self, course_code: str) -> bool:
        """Check whether a course's admission slot is currently held."""
        key = normalize_course_code(course_code)
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, course_code: str, timeout: float) -> AsyncIterator[None]:
        """Hold a course's admission slot.

        Args:
            course_code: Course to lock.
            timeout: Maximum seconds to wait for the slot.

        Raises:
            AdmissionSlotTimeout: If the slot is not acquired within timeout.
        """
        lock = self.lock_for(course_code)
        try:
            await asyncio.wait_for(lock.acquire(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Admission slot timeout: course=%s, timeout=%.2fs",
                course_code,
                timeout,
            )
            raise AdmissionSlotTimeout(normalize_course_code(course_code), timeout) from None
        try:
            yield
        finally:
            lock.release()

    @asynccontextmanager
    async def hold_many(self, course_codes: Iterable[str], timeout: float) -> AsyncIterator[None]:
        """Hold several courses' admission slots at once.

        Slots are acquired in sorted code order so two holders never wait
        on each other. Already-acquired slots are released on timeout.

        Args:
            course_codes: Courses to lock.
            timeout: Maximum seconds to wait for each slot.

        Raises:
            AdmissionSlotTimeout: If any slot is not acquired within timeout.
        """
        codes = sorted({normalize_course_code(code) for code in course_codes})
        acquired: list[asyncio.Lock] = []
        try:
            for code in codes:
                lock = self.lock_for(code)
                try:
                    await asyncio.wait_for(lock.acquire(), timeout=timeout)
                except asyncio.TimeoutError:
                    raise AdmissionSlotTimeout(code, timeout) from None
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    @asynccontextmanager
    async def hold_student(
        self,
        student_id: int,
        timeout: float,
        exclusive: bool = False,
    ) -> AsyncIterator[None]:
        """Hold a student's gate, shared for admissions or exclusive for removal.

        Raises:
            AdmissionSlotTimeout: If the gate is not acquired within timeout.
        """
        gate = self.gate_for(student_id)
        acquire = gate.acquire_exclusive if exclusive else gate.acquire_shared
        release = gate.release_exclusive if exclusive else gate.release_shared
        try:
            await asyncio.wait_for(acquire(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Student gate timeout: student=%s, exclusive=%s, timeout=%.2fs",
                student_id,
                exclusive,
                timeout,
            )
            raise AdmissionSlotTimeout(None, timeout, student_id=student_id) from None
        try:
            yield
        finally:
            await release()
