"""
CLI interface for PharmaScan.

Usage:
    python -m pharmascan "<barcode text>" [options]

Options:
    --ocr-text TEXT     OCR'd label text, used when the barcode has no expiry
    --catalog PATH      JSON array of catalog rows (barcode, name, rms)
    --today YYYY-MM-DD  Reference day for the expiry status
    --soon-days N       EXPIRING window in days (default 90)
    --json              Output as JSON
    --verbose           Debug logging
"""

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from .catalog import CatalogIndex, build_index, entries_from_rows
from .expiry import DEFAULT_SOON_THRESHOLD_DAYS
from .formatters.json_formatter import format_scan_json, format_scan_result
from .pipeline import ScanResult, scan_barcode


def load_catalog(path: Path) -> CatalogIndex:
    """Read a JSON array of row mappings and index it."""
    with path.open("r", encoding="utf-8") as f:
        rows = json.load(f)
    if not isinstance(rows, list):
        raise ValueError(f"{path}: expected a JSON array of rows")
    return build_index(entries_from_rows(row for row in rows if isinstance(row, dict)))


def format_result(result: ScanResult, today: date, soon_days: int) -> str:
    """Format a scan result for display."""
    fields = format_scan_result(result, today=today, soon_threshold_days=soon_days)
    errors = fields.pop("Errors", [])

    lines = [
        "=" * 60,
        "PharmaScan Result",
        "=" * 60,
        f"Raw Input: {result.parsed.raw!r}",
        "",
    ]
    for label, value in fields.items():
        lines.append(f"  {label}: {value}")

    if errors:
        lines.extend([
            "",
            "Errors:",
            "-" * 40,
        ])
        for error in errors:
            lines.append(f"  {error}")

    return '\n'.join(lines)


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog='pharmascan',
        description='Interpret pharmacy barcode scans'
    )

    parser.add_argument(
        'barcode',
        help='Scanned barcode text'
    )

    parser.add_argument(
        '--ocr-text',
        default=None,
        help='OCR text from the pack label, used to fill a missing expiry'
    )

    parser.add_argument(
        '--catalog',
        default=None,
        help='Path to a JSON array of catalog rows'
    )

    parser.add_argument(
        '--today',
        type=date.fromisoformat,
        default=None,
        help='Reference day for expiry status (YYYY-MM-DD, default: today)'
    )

    parser.add_argument(
        '--soon-days',
        type=int,
        default=DEFAULT_SOON_THRESHOLD_DAYS,
        help='Days before expiry that count as EXPIRING'
    )

    parser.add_argument(
        '--json',
        action='store_true',
        help='Output result as JSON'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    index = None
    if args.catalog:
        try:
            index = load_catalog(Path(args.catalog))
        except (OSError, ValueError) as exc:
            print(f"Cannot load catalog: {exc}", file=sys.stderr)
            return 2

    today = args.today or date.today()
    result = scan_barcode(args.barcode, index=index, ocr_text=args.ocr_text)

    if args.json:
        print(format_scan_json(result, today=today, soon_threshold_days=args.soon_days))
    else:
        print(format_result(result, today, args.soon_days))

    # Exit code reflects whether a GTIN was extracted
    return 0 if result.parsed.usable else 1


if __name__ == '__main__':
    sys.exit(main())
