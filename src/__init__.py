"""Registrar admission engine.

Admits students into capacity-limited courses, aggregates attendance, and
derives grades, risk status and archives from the attendance history.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "0.1.0"
