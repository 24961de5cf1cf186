# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registrar configuration.

Settings groups the record store, admission and grading settings, each
read from its own environment prefix.
"""

from src.core.config.settings import (
    AdmissionSettings,
    DatabaseSettings,
    GradingSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "AdmissionSettings",
    "GradingSettings",
]
