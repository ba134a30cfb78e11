"""
Expiry date extraction from OCR text.

Pack labels print expiry dates in many notations ("EXP 06/2026",
"30.06.2026", "JUN 2026", "BB 260630"). OCR output is noisy, so the text
is normalised first and then tried against an ordered list of notations.
Within a notation every occurrence is tried in text order, so a
manufacturing date or reference number printed before the expiry is
skipped. The first candidate that survives the sanity gate (year
2020-2040, a real calendar day) wins.

Month-only notations resolve to the last day of that month.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Optional, Tuple

from ..core.formats import coerce_text
from ..validators.validators import CENTURY_BASE, decode_yymmdd, last_day_of_month

logger = logging.getLogger(__name__)

MIN_YEAR = 2020
MAX_YEAR = 2040

MONTHS = {
    'JAN': 1, 'FEB': 2, 'MAR': 3, 'APR': 4, 'MAY': 5, 'JUN': 6,
    'JUL': 7, 'AUG': 8, 'SEP': 9, 'OCT': 10, 'NOV': 11, 'DEC': 12,
}

_MON = r"(JAN|FEB|MAR|APR|MAY|JUN|JUL|AUG|SEP|OCT|NOV|DEC)[A-Z]*\.?"

# A run of digits, date separators and digit look-alikes that holds at
# least one real digit and is not glued to a word.
_DIGIT_RUN = re.compile(
    r"(?<![A-Za-z])[0-9|lIOo./\-]*[0-9][0-9|lIOo./\-]*(?![A-Za-z])"
)
_CONFUSIONS = str.maketrans({'|': '1', 'l': '1', 'I': '1', 'O': '0', 'o': '0'})

Builder = Callable[[Tuple[str, ...]], Optional[date]]


def _month_end(year: int, month: int) -> date:
    return date(year, month, last_day_of_month(year, month))


def _ymd(groups: Tuple[str, ...]) -> date:
    year, month, day = groups
    return date(int(year), int(month), int(day))


def _dmy(groups: Tuple[str, ...]) -> date:
    day, month, year = groups
    return date(int(year), int(month), int(day))


def _month_year(groups: Tuple[str, ...]) -> date:
    month, year = groups
    return _month_end(int(year), int(month))


def _month_short_year(groups: Tuple[str, ...]) -> date:
    month, yy = groups
    return _month_end(CENTURY_BASE + int(yy), int(month))


def _mon_year(groups: Tuple[str, ...]) -> date:
    mon, year = groups
    return _month_end(int(year), MONTHS[mon])


def _day_mon_year(groups: Tuple[str, ...]) -> date:
    day, mon, year = groups
    return date(int(year), MONTHS[mon], int(day))


def _labelled_yymmdd(groups: Tuple[str, ...]) -> Optional[date]:
    return decode_yymmdd(groups[0])


@dataclass(frozen=True)
class DatePattern:
    """A date notation: its regex and how to turn the groups into a date."""
    name: str
    regex: re.Pattern
    build: Builder


def _pattern(name: str, regex: str, build: Builder) -> DatePattern:
    return DatePattern(name, re.compile(regex, re.ASCII), build)


DATE_PATTERNS: Tuple[DatePattern, ...] = (
    # 2026-06-30, 2026/6/30, 2026.06.30
    _pattern("iso", r"\b(\d{4})[/\-.](\d{1,2})[/\-.](\d{1,2})\b", _ymd),
    # 30/06/2026, 30-06-2026, 30.06.2026
    _pattern("day_month_year", r"\b(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{4})\b", _dmy),
    # 06/2026
    _pattern("month_year", r"\b(\d{1,2})[/\-](\d{4})\b", _month_year),
    # 06/26
    _pattern("month_short_year", r"\b(\d{1,2})[/\-](\d{2})\b", _month_short_year),
    # JUN 2026
    _pattern("mon_year", r"\b" + _MON + r"\s*(\d{4})\b", _mon_year),
    # 30 JUN 2026
    _pattern("day_mon_year", r"\b(\d{1,2})\s*" + _MON + r"\s*(\d{4})\b", _day_mon_year),
    # EXP 260630, BEST BEFORE: 260600
    _pattern(
        "labelled_yymmdd",
        r"(?:EXPIRY|EXP|BB|BEST\s*BEFORE|USE\s*BY)[:\s.]*(\d{6})(?!\d)",
        _labelled_yymmdd,
    ),
)


def _fix_digit_run(match: re.Match) -> str:
    return match.group(0).translate(_CONFUSIONS)


def normalize_ocr_text(text: Any) -> str:
    """
    Correct common OCR confusions inside numeric runs ("2O26" -> "2026",
    "l2/2026" -> "12/2026") and uppercase the result. Words such as
    "BEST BEFORE" or "OCT" are left alone.
    """
    return _DIGIT_RUN.sub(_fix_digit_run, coerce_text(text)).upper()


def _in_range(value: date) -> bool:
    return MIN_YEAR <= value.year <= MAX_YEAR


def extract_date(text: Any) -> Optional[date]:
    """
    Extract an expiry date from OCR text.

    Args:
        text: Raw OCR output, possibly multi-line

    Returns:
        The first acceptable date of the first notation that yields one, or None

    Examples:
        >>> extract_date("EXP 06/2026")
        datetime.date(2026, 6, 30)
        >>> extract_date("31/12/1999") is None
        True
    """
    normalized = normalize_ocr_text(text)
    if not normalized.strip():
        return None

    for pattern in DATE_PATTERNS:
        for match in pattern.regex.finditer(normalized):
            try:
                candidate = pattern.build(match.groups())
            except ValueError:
                # Month 13, 31 February and the like
                candidate = None
            if candidate is None or not _in_range(candidate):
                logger.debug("Discarded %s candidate %r", pattern.name, match.group(0))
                continue
            return candidate

    return None
