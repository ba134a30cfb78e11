"""
Barcode format detection.

Classifies a raw scan into one of a closed set of encoding shapes before
any field decoding happens. Decision order (first match wins):

1. Contains "(01)"                                   -> GS1_PARENTHESIZED
2. Starts with "01", longer than 16 characters, and
   the text after the GTIN slot holds 17, 21 or 10  -> GS1_POSITIONAL
3. Digit count after stripping non-digits
   (14 / 13 / 12 / 8)                                -> GTIN14 / EAN13 / LEGACY12 / EAN8
4. Anything else                                     -> UNKNOWN

A bare 14-digit "01..." string is GTIN14, not GS1: positional GS1 needs
genuine data after the GTIN slot.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet

from ..validators.validators import DEFAULT_FIELD_LENGTH, digits_only

GS = '\x1d'

# Scanner symbology identifier prefixes (ISO/IEC 15424), e.g. ]d2, ]C1, ]e0, ]Q3
SYMBOLOGY_PREFIX = re.compile(r'^\][A-Za-z][0-9A-Za-z]')

_LINE_NOISE = re.compile(r"[\r\n\t]")

# str.strip() would also eat 0x1C-0x1F, separators included
_BLANKS = " \t\r\n\x0b\x0c"


class BarcodeFormat(str, Enum):
    """Encoding shape of a scan."""
    GS1_PARENTHESIZED = "GS1_PARENTHESIZED"
    GS1_POSITIONAL = "GS1_POSITIONAL"
    GTIN14 = "GTIN14"
    EAN13 = "EAN13"
    EAN8 = "EAN8"
    LEGACY12 = "LEGACY12"
    UNKNOWN = "UNKNOWN"

    @property
    def is_gs1(self) -> bool:
        return self in (BarcodeFormat.GS1_PARENTHESIZED, BarcodeFormat.GS1_POSITIONAL)


# Plain-code digit counts, shared with the simple parser
SIMPLE_FORMAT_LENGTHS: Dict[BarcodeFormat, int] = {
    BarcodeFormat.GTIN14: 14,
    BarcodeFormat.EAN13: 13,
    BarcodeFormat.LEGACY12: 12,
    BarcodeFormat.EAN8: 8,
}

_FORMAT_BY_LENGTH = {length: fmt for fmt, length in SIMPLE_FORMAT_LENGTHS.items()}

# AI tokens whose presence after the GTIN slot marks positional GS1 data
POSITIONAL_MARKERS = ("17", "21", "10")


@dataclass
class ParseOptions:
    """
    Configuration options for detection and parsing.

    Attributes:
        gs_characters: Spellings treated as a Group Separator (normalised to 0x1D)
        strip_symbology: Drop a leading scanner symbology identifier such as ]d2
        max_field_length: Length cap for batch and serial values
    """
    gs_characters: FrozenSet[str] = field(default_factory=lambda: frozenset({
        '\x1d',      # ASCII 29 (standard GS)
        '<GS>',      # Text representation
        '{GS}',      # Text representation
        '\u241d',    # Unicode "symbol for group separator"
    }))
    strip_symbology: bool = True
    max_field_length: int = DEFAULT_FIELD_LENGTH


DEFAULT_OPTIONS = ParseOptions()


def coerce_text(raw: Any) -> str:
    """Turn whatever the scanner layer handed over into a str."""
    if raw is None:
        return ''
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode('latin-1')
    return str(raw)


def normalize_scan(raw: Any, options: ParseOptions = DEFAULT_OPTIONS) -> str:
    """
    Normalise raw scan text for detection and parsing.

    - Trims whitespace and removes CR/LF/TAB
    - Strips a symbology identifier prefix
    - Converts Group Separator spellings to ASCII 29
    - Drops leading separators (FNC1 in first position)
    """
    text = _LINE_NOISE.sub("", coerce_text(raw).strip(_BLANKS))
    if options.strip_symbology:
        text = SYMBOLOGY_PREFIX.sub('', text)
    # Longest spellings first so "<GS>" is not split by a shorter one
    for spelling in sorted(options.gs_characters, key=len, reverse=True):
        if spelling != GS:
            text = text.replace(spelling, GS)
    return text.lstrip(GS)


def classify_normalized(text: str) -> BarcodeFormat:
    """Detect the format of already-normalised scan text."""
    if not text:
        return BarcodeFormat.UNKNOWN

    if '(01)' in text:
        return BarcodeFormat.GS1_PARENTHESIZED

    if text.startswith('01') and len(text) > 16:
        remainder = text[16:]
        if any(token in remainder for token in POSITIONAL_MARKERS):
            return BarcodeFormat.GS1_POSITIONAL

    return _FORMAT_BY_LENGTH.get(len(digits_only(text)), BarcodeFormat.UNKNOWN)


def detect_format(raw: Any, options: ParseOptions = DEFAULT_OPTIONS) -> BarcodeFormat:
    """
    Classify a raw scanned string into a BarcodeFormat.

    Pure function of ``raw`` (and the options); never raises.

    Examples:
        >>> detect_format("(01)00012345678905(17)260630")
        <BarcodeFormat.GS1_PARENTHESIZED: 'GS1_PARENTHESIZED'>
        >>> detect_format("6291107439358")
        <BarcodeFormat.EAN13: 'EAN13'>
    """
    return classify_normalized(normalize_scan(raw, options))
