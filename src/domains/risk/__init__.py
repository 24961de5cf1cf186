# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Risk domain package.

This package provides the Good/Warning/Critical classifier and
per-enrollment assessments.
"""

from src.domains.risk.classifier import classify
from src.domains.risk.service import RiskService

__all__ = [
    "classify",
    "RiskService",
]
