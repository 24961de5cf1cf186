# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared fixtures for the registrar test suite.

Unit tests use these directly; the integration suite layers a temporary
SQLite record store on top in ``tests/integration/conftest.py``.
"""

from typing import Any

import pytest

from src.core.config import clear_settings_cache

MARKERS = (
    "unit: pure logic tests without a record store",
    "integration: tests against a temporary SQLite record store",
    "slow: concurrency tests that spawn many admission tasks",
)


def pytest_configure(config: pytest.Config) -> None:
    for marker in MARKERS:
        config.addinivalue_line("markers", marker)


@pytest.fixture(scope="session")
def test_environment() -> dict[str, str]:
    """Environment variables describing a test deployment."""
    return {
        "ENVIRONMENT": "test",
        "DEBUG": "true",
        "LOG_LEVEL": "DEBUG",
        "DATABASE_URL": "sqlite+aiosqlite:///./registrar_test.db",
        "ADMISSION_LOCK_TIMEOUT_SECONDS": "2.0",
    }


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Any:
    """Make every test read settings fresh."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def sample_student_data() -> dict[str, Any]:
    return {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": "ada.lovelace@example.edu",
        "phone": "+44 20 7946 0000",
    }


@pytest.fixture
def sample_course_data() -> dict[str, Any]:
    return {
        "code": "CS101",
        "title": "Introduction to Computer Science",
        "credits": 4,
        "max_capacity": 30,
    }
