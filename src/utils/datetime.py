# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""UTC timestamps for registrar records.

Every stored timestamp (enrollment dates, withdrawals, archive snapshots)
is timezone-aware UTC. Column defaults use utc_now; response builders pass
values read back from the record store through ensure_utc, because SQLite
returns them without tzinfo.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Normalize a stored timestamp to aware UTC.

    Naive values are taken to already be UTC; aware values are converted.
    None passes through.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
