"""
PharmaScan barcode interpretation engine

Turns pharmacy pack scans (GS1-128 / GS1 DataMatrix element strings,
EAN-13, EAN-8, GTIN-14) and OCR'd label text into structured, validated
tracking records, and resolves them against a reference product catalog.
"""

from .core.formats import BarcodeFormat, ParseOptions, detect_format
from .core.parser import (
    ErrorCode,
    GS1FieldParser,
    ParseError,
    ParsedBarcode,
    parse_barcode,
    parse_simple,
)
from .extraction.date_extractor import extract_date
from .catalog import (
    CatalogEntry,
    CatalogIndex,
    MatchConfidence,
    MatchResult,
    build_index,
    entries_from_rows,
    find_match,
)
from .expiry import ExpiryStatus, classify_expiry
from .tracking import TrackedUnit, create_tracked_unit, edit_tracked_unit
from .pipeline import ScanResult, backfill_expiry, scan_barcode

__version__ = "1.0.0"
__all__ = [
    "BarcodeFormat",
    "ParseOptions",
    "detect_format",
    "ErrorCode",
    "GS1FieldParser",
    "ParseError",
    "ParsedBarcode",
    "parse_barcode",
    "parse_simple",
    "extract_date",
    "CatalogEntry",
    "CatalogIndex",
    "MatchConfidence",
    "MatchResult",
    "build_index",
    "entries_from_rows",
    "find_match",
    "ExpiryStatus",
    "classify_expiry",
    "TrackedUnit",
    "create_tracked_unit",
    "edit_tracked_unit",
    "ScanResult",
    "backfill_expiry",
    "scan_barcode",
]
