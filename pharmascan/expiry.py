"""
Expiry classification.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Optional

DEFAULT_SOON_THRESHOLD_DAYS = 90


class ExpiryStatus(str, Enum):
    UNKNOWN = "UNKNOWN"
    EXPIRED = "EXPIRED"
    EXPIRING = "EXPIRING"
    OK = "OK"


def _as_date(value: date) -> date:
    # datetime is a date subclass; drop the time part
    if isinstance(value, datetime):
        return value.date()
    return value


def days_until(expiry: date, today: date) -> int:
    """Whole days from ``today`` to ``expiry`` (negative once expired)."""
    return (_as_date(expiry) - _as_date(today)).days


def classify_expiry(
    expiry: Optional[date],
    today: date,
    soon_threshold_days: int = DEFAULT_SOON_THRESHOLD_DAYS,
) -> ExpiryStatus:
    """
    Classify an expiry date relative to ``today``.

    - None -> UNKNOWN
    - before today -> EXPIRED
    - today up to ``soon_threshold_days`` ahead (inclusive) -> EXPIRING
    - later -> OK
    """
    if expiry is None:
        return ExpiryStatus.UNKNOWN
    remaining = days_until(expiry, today)
    if remaining < 0:
        return ExpiryStatus.EXPIRED
    if remaining <= soon_threshold_days:
        return ExpiryStatus.EXPIRING
    return ExpiryStatus.OK
