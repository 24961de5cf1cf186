# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registrar configuration loaded from the environment.

Each concern reads its own prefixed variables (DATABASE_, ADMISSION_,
GRADING_); the top-level Settings groups them together with environment,
debug and log level, and can also read a local ``.env`` file.

Example:
    >>> from src.core.config import get_settings
    >>> get_settings().admission.lock_timeout_seconds
    5.0
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATABASE_PASSWORD = "registrar_password"


class DatabaseSettings(BaseSettings):
    """Record store database configuration.

    The PostgreSQL components (user, password, host, port, database) form
    the default asyncpg URL. ``DATABASE_URL`` replaces them entirely, which
    is how local runs and tests point at ``sqlite+aiosqlite:///...``.
    pool_size and max_overflow only apply to pooled server connections.
    """

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        extra="ignore",
        populate_by_name=True,
    )

    user: str = "registrar"
    password: SecretStr = SecretStr(DEFAULT_DATABASE_PASSWORD)
    host: str = "localhost"
    port: int = 5432
    database: str = "registrar"
    pool_size: int = 10
    max_overflow: int = 20
    url_override: str | None = Field(
        default=None,
        validation_alias="DATABASE_URL",
    )

    @property
    def url(self) -> str:
        """SQLAlchemy async URL for the record store."""
        if self.url_override:
            return self.url_override
        secret = self.password.get_secret_value()
        return (
            f"postgresql+asyncpg://{self.user}:{secret}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    @property
    def is_sqlite(self) -> bool:
        """True when the record store is a SQLite file or memory database."""
        return self.url.startswith("sqlite")


class AdmissionSettings(BaseSettings):
    """Admission controller configuration.

    Attributes:
        lock_timeout_seconds: Maximum time an admission request waits for
            its course's admission slot before reporting a timeout.
    """

    model_config = SettingsConfigDict(
        env_prefix="ADMISSION_",
        extra="ignore",
    )

    lock_timeout_seconds: float = Field(default=5.0, gt=0)


class GradingSettings(BaseSettings):
    """Grade adjustment rule table.

    Attributes:
        high_attendance_threshold: Attendance percentage at or above which
            the bonus applies.
        low_attendance_threshold: Attendance percentage below which the
            penalty applies.
        bonus: Points added for high attendance.
        penalty: Points removed for low attendance.
    """

    model_config = SettingsConfigDict(
        env_prefix="GRADING_",
        extra="ignore",
    )

    high_attendance_threshold: float = 90.0
    low_attendance_threshold: float = 75.0
    bonus: int = Field(default=5, ge=0)
    penalty: int = Field(default=10, ge=0)

    @model_validator(mode="after")
    def validate_thresholds(self) -> Self:
        """Ensure the low threshold does not exceed the high threshold.

        Raises:
            ValueError: If thresholds are inverted.
        """
        if self.low_attendance_threshold > self.high_attendance_threshold:
            raise ValueError(
                "GRADING_LOW_ATTENDANCE_THRESHOLD must not exceed "
                "GRADING_HIGH_ATTENDANCE_THRESHOLD"
            )
        return self


class Settings(BaseSettings):
    """Top-level registrar settings.

    Attributes:
        environment: Deployment tier; production refuses the default
            database password.
        debug: Switches log rendering to the console renderer.
        log_level: Root log level.
        database: Record store settings.
        admission: Admission controller settings.
        grading: Grade adjustment settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "test", "staging", "production"] = "development"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Each group reads its own prefix
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    admission: AdmissionSettings = Field(default_factory=AdmissionSettings)
    grading: GradingSettings = Field(default_factory=GradingSettings)

    @model_validator(mode="after")
    def reject_default_password_in_production(self) -> Self:
        """Refuse to run production against the shipped database password.

        Raises:
            ValueError: If production uses component settings with the
                default password.
        """
        uses_default_password = (
            self.database.url_override is None
            and self.database.password.get_secret_value() == DEFAULT_DATABASE_PASSWORD
        )
        if self.is_production and uses_default_password:
            raise ValueError(
                "Database password must be changed from default in production. "
                "Set DATABASE_PASSWORD or DATABASE_URL."
            )
        return self

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide Settings, loading them on first use."""
    return Settings()


def clear_settings_cache() -> None:
    """Forget the loaded Settings so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
