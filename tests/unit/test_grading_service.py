# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Grading service conflict handling."""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from src.domains.grading.service import GradingService
from src.infrastructure.database.connection import StorageUnavailableError
from src.models.grading import GradeRecomputeResult


def _ledger_conflict() -> IntegrityError:
    return IntegrityError("INSERT INTO grade_adjustments", {}, Exception("UNIQUE constraint failed"))


@pytest.fixture
def mock_db():
    """Create mock database session."""
    db = AsyncMock()
    db.rollback = AsyncMock()
    return db


class TestRecomputeConflicts:
    """Tests for ledger conflicts between concurrent workers."""

    @pytest.mark.asyncio
    async def test_single_conflict_is_retried(self, mock_db) -> None:
        """Test losing the ledger race once re-reads and succeeds."""
        expected = GradeRecomputeResult(
            enrollment_id=7, cycle_id="c1", applied=True, previous_grade=80, new_grade=85
        )
        service = GradingService(mock_db)

        with patch.object(
            GradingService, "_recompute", AsyncMock(side_effect=[_ledger_conflict(), expected])
        ):
            result = await service.recompute_grade(7, "c1")

        assert result is expected
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_repeated_conflict_raises_storage_error(self, mock_db) -> None:
        """Test a second conflict surfaces as StorageUnavailableError."""
        service = GradingService(mock_db)

        with patch.object(
            GradingService,
            "_recompute",
            AsyncMock(side_effect=[_ledger_conflict(), _ledger_conflict()]),
        ):
            with pytest.raises(StorageUnavailableError) as exc_info:
                await service.recompute_grade(7, "c1")

        assert isinstance(exc_info.value.original_error, IntegrityError)
        assert mock_db.rollback.await_count == 2
