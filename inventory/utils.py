"""
Utility helpers for the inventory screens.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from pharmascan.expiry import ExpiryStatus, classify_expiry, days_until
from pharmascan.formatters.json_formatter import format_ddmmyyyy


def parse_operator_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a date typed by the operator ("30/06/2026", "2026-06-30",
    "30 Jun 2026"). Day-first for ambiguous forms. None if unparseable.
    """
    if not value or not value.strip():
        return None
    try:
        return date_parser.parse(value.strip(), dayfirst=True).date()
    except (ValueError, OverflowError):
        return None


def expiry_band(
    expiry: Optional[date],
    today: date,
    soon_threshold_days: int = 90,
    short_expiry_days: int = 30,
) -> str:
    """
    Display band on top of classify_expiry: EXPIRING splits into
    "short" (within ``short_expiry_days``) and "medium".

    Returns: unknown, expired, short, medium, ok
    """
    status = classify_expiry(expiry, today, soon_threshold_days)
    if status is not ExpiryStatus.EXPIRING:
        return status.value.lower()
    return "short" if days_until(expiry, today) <= short_expiry_days else "medium"


def months_until(expiry: date, today: date) -> int:
    """Whole calendar months left before ``expiry`` (negative once expired)."""
    delta = relativedelta(expiry, today)
    return delta.years * 12 + delta.months


__all__ = [
    "expiry_band",
    "format_ddmmyyyy",
    "months_until",
    "parse_operator_date",
]
