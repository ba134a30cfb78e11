"""
Scan pipeline: raw scan -> parsed record -> catalog match -> combined record.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .catalog import CatalogIndex, MatchResult, NO_MATCH, find_match
from .core.formats import ParseOptions
from .core.parser import ParsedBarcode, parse_barcode
from .extraction.date_extractor import extract_date

logger = logging.getLogger(__name__)

UNKNOWN_PRODUCT = "Unknown Product"


@dataclass(frozen=True)
class ScanResult:
    """A parsed scan together with its catalog match."""
    parsed: ParsedBarcode
    match: MatchResult = NO_MATCH

    @property
    def display_name(self) -> str:
        if self.match.entry is not None and self.match.entry.name:
            return self.match.entry.name
        return UNKNOWN_PRODUCT

    @property
    def reference_code(self) -> str:
        return self.match.entry.reference_code if self.match.entry is not None else ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'parsed': self.parsed.to_dict(),
            'match': {
                'confidence': self.match.confidence.value,
                'matched_key': self.match.matched_key,
                'entry': self.match.entry.to_dict() if self.match.entry else None,
            },
            'display_name': self.display_name,
        }


def backfill_expiry(parsed: ParsedBarcode, ocr_text: Any) -> ParsedBarcode:
    """
    Fill a missing expiry date from OCR text.

    Returns ``parsed`` itself when it already has an expiry or the text
    holds no date; otherwise a copy with ``expiry_source="ocr"``.
    """
    if parsed.expiry_date is not None or not ocr_text:
        return parsed
    found = extract_date(ocr_text)
    if found is None:
        return parsed
    logger.debug("Expiry %s taken from OCR text", found.isoformat())
    return dataclasses.replace(
        parsed,
        expiry_date=found,
        expiry_source="ocr",
        elements=dict(parsed.elements),
        errors=list(parsed.errors),
    )


def scan_barcode(
    raw: Any,
    index: Optional[CatalogIndex] = None,
    ocr_text: Any = None,
    options: Optional[ParseOptions] = None,
) -> ScanResult:
    """
    Run one scan through parsing, OCR backfill and catalog matching.

    Examples:
        >>> result = scan_barcode("6291107439358")
        >>> result.parsed.gtin, result.display_name
        ('06291107439358', 'Unknown Product')
    """
    parsed = parse_barcode(raw, options=options)
    if ocr_text:
        parsed = backfill_expiry(parsed, ocr_text)
    match = find_match(index, parsed.gtin) if parsed.gtin else NO_MATCH
    return ScanResult(parsed=parsed, match=match)
