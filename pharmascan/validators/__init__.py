"""
Validation modules for the scan parser.
"""

from .validators import (
    calculate_check_digit_mod10,
    decode_yymmdd,
    digits_only,
    is_digits,
    last_day_of_month,
    sanitize_text,
    validate_check_digit,
    validate_date,
    validate_gtin,
    ValidationResult,
    PRINTABLE_ASCII,
    NUMERIC,
)

__all__ = [
    "calculate_check_digit_mod10",
    "decode_yymmdd",
    "digits_only",
    "is_digits",
    "last_day_of_month",
    "sanitize_text",
    "validate_check_digit",
    "validate_date",
    "validate_gtin",
    "ValidationResult",
    "PRINTABLE_ASCII",
    "NUMERIC",
]
