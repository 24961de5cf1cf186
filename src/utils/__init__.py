# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cross-cutting helpers: structured logging and UTC timestamps."""

from src.utils.datetime import ensure_utc, utc_now
from src.utils.logging import (
    bind_context,
    bound_context,
    clear_context,
    get_logger,
    setup_logging,
)

__all__ = [
    "bind_context",
    "bound_context",
    "clear_context",
    "ensure_utc",
    "get_logger",
    "setup_logging",
    "utc_now",
]
