"""
Validation helpers for scanned barcode data.

Implements:
- GS1 Mod10 check digit calculation and GTIN validation
- GS1 YYMMDD date decoding (day 00 = last day of the stated month)
- Free-text field sanitisation (printable ASCII, length cap)

Based on GS1 General Specifications.
"""

from __future__ import annotations

import re
from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional


@dataclass
class ValidationResult:
    """Result of a validation operation."""
    valid: bool
    errors: List[str] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)


# Printable ASCII, space through tilde
PRINTABLE_ASCII = frozenset(chr(c) for c in range(0x20, 0x7F))

NUMERIC = frozenset('0123456789')

DEFAULT_FIELD_LENGTH = 20

# Two-digit years always land in this century; see DESIGN.md
CENTURY_BASE = 2000

_NON_DIGITS = re.compile(r"[^0-9]")
_DIGITS = re.compile(r"[0-9]+")


def digits_only(value: str) -> str:
    """Strip every character that is not an ASCII digit."""
    return _NON_DIGITS.sub('', value or '')


def is_digits(value: str) -> bool:
    """True for a non-empty string of ASCII digits only."""
    return bool(value) and _DIGITS.fullmatch(value) is not None


def calculate_check_digit_mod10(digits: str) -> int:
    """
    Calculate GS1 Mod10 check digit.

    From right to left, alternate multipliers 3 and 1, sum the products;
    the check digit is (10 - (sum mod 10)) mod 10.

    Args:
        digits: Numeric string without check digit

    Returns:
        Calculated check digit (0-9)
    """
    if not is_digits(digits):
        raise ValueError("Input must be a non-empty numeric string")

    total = 0
    for i, digit in enumerate(reversed(digits)):
        multiplier = 3 if i % 2 == 0 else 1
        total += int(digit) * multiplier

    return (10 - (total % 10)) % 10


def validate_check_digit(value: str) -> ValidationResult:
    """
    Validate the trailing GS1 check digit of a GTIN-8/12/13/14 style key.

    Returns:
        ValidationResult with check digit status in meta
    """
    result = ValidationResult(valid=True)

    if not is_digits(value):
        result.valid = False
        result.errors.append("Value must be numeric for check digit validation")
        return result

    if len(value) < 2:
        result.valid = False
        result.errors.append("Value too short for check digit validation")
        return result

    provided_check = int(value[-1])
    calculated_check = calculate_check_digit_mod10(value[:-1])

    result.meta['calculated_check_digit'] = calculated_check
    result.meta['provided_check_digit'] = provided_check
    result.meta['check_digit_valid'] = provided_check == calculated_check

    if provided_check != calculated_check:
        result.valid = False
        result.errors.append(
            f"Check digit mismatch: expected {calculated_check}, got {provided_check}"
        )

    return result


def validate_gtin(value: str) -> ValidationResult:
    """
    Validate a normalised GTIN: exactly 14 digits with a correct check digit.
    """
    if len(value or "") != 14 or not is_digits(value):
        return ValidationResult(valid=False, errors=["GTIN must be exactly 14 digits"])
    return validate_check_digit(value)


def last_day_of_month(year: int, month: int) -> int:
    return monthrange(year, month)[1]


def validate_date(value: str) -> ValidationResult:
    """
    Validate and decode a GS1 YYMMDD date token.

    - Year is always 20YY (no century pivot).
    - Day 00 means "last day of the stated month" (month-only expiries).
    - Month outside 1-12, or a day past the end of the month, is invalid.

    Returns:
        ValidationResult with the decoded ``date`` in meta when valid
    """
    result = ValidationResult(valid=True)

    if len(value or "") != 6 or not is_digits(value):
        result.valid = False
        result.errors.append(f"Date must be 6 digits (YYMMDD), got {value!r}")
        return result

    yy = int(value[0:2])
    mm = int(value[2:4])
    dd = int(value[4:6])
    year = CENTURY_BASE + yy

    if mm < 1 or mm > 12:
        result.valid = False
        result.errors.append(f"Invalid month: {mm}")
        return result

    max_day = last_day_of_month(year, mm)
    if dd == 0:
        result.meta['day_unspecified'] = True
        dd = max_day
    elif dd > max_day:
        result.valid = False
        result.errors.append(f"Day {dd} invalid for month {mm} in year {year}")
        return result

    result.meta['date'] = date(year, mm, dd)
    result.meta['iso_date'] = f"{year:04d}-{mm:02d}-{dd:02d}"
    return result


def decode_yymmdd(value: str) -> Optional[date]:
    """Decode a YYMMDD token to a date, or None if it does not decode."""
    result = validate_date(value)
    return result.meta['date'] if result.valid else None


def sanitize_text(value: str, max_length: int = DEFAULT_FIELD_LENGTH) -> str:
    """
    Clean a free-text field (batch, serial): drop anything outside printable
    ASCII, trim surrounding whitespace, then cap the length.
    """
    if not value:
        return ''
    cleaned = ''.join(c for c in value if c in PRINTABLE_ASCII).strip()
    return cleaned[:max_length]
