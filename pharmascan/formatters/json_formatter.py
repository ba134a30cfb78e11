"""
JSON Formatter for scan results

Provides clean JSON output with:
- Human-readable field names
- Date formatting (dd/mm/yyyy)
- Catalog match and expiry status alongside the parsed fields
"""

from __future__ import annotations

import json
from datetime import date
from typing import Any, Dict, Optional

from ..core.parser import ParsedBarcode
from ..expiry import DEFAULT_SOON_THRESHOLD_DAYS, classify_expiry, days_until
from ..pipeline import ScanResult


# AI code to human-readable name
AI_FIELD_NAMES = {
    "01": "GTIN Code",
    "11": "Production Date",
    "17": "Expiry Date",
    "10": "Batch/Lot Number",
    "21": "Serial Number",
    "37": "Count of Trade Items",
    "310": "Net Weight (kg)",
}

DATE_AIS = ("11", "17")


def format_ddmmyyyy(value: Optional[date]) -> str:
    """Format a date as dd/mm/yyyy; empty string for None."""
    if value is None:
        return ""
    return value.strftime("%d/%m/%Y")


def format_parsed_fields(parsed: ParsedBarcode, include_raw_values: bool = False) -> Dict[str, Any]:
    """
    Labelled view of the fields a barcode carried, in scan order.

    Dates are shown as dd/mm/yyyy; with ``include_raw_values`` they become
    {"formatted": ..., "raw": ...} pairs.
    """
    decoded_dates = {"11": parsed.production_date, "17": parsed.expiry_date}
    output: Dict[str, Any] = {}

    if not parsed.elements and parsed.gtin:
        # Plain codes carry no AIs
        output[AI_FIELD_NAMES["01"]] = parsed.gtin

    for ai, raw_value in parsed.elements.items():
        label = AI_FIELD_NAMES.get(ai, f"AI({ai})")
        if ai in DATE_AIS:
            formatted = format_ddmmyyyy(decoded_dates[ai]) or raw_value
            output[label] = {"formatted": formatted, "raw": raw_value} if include_raw_values else formatted
        else:
            output[label] = raw_value

    if parsed.expiry_source == "ocr" and parsed.expiry_date is not None:
        output[AI_FIELD_NAMES["17"]] = format_ddmmyyyy(parsed.expiry_date)

    return output


def format_scan_result(
    result: ScanResult,
    today: Optional[date] = None,
    soon_threshold_days: int = DEFAULT_SOON_THRESHOLD_DAYS,
    include_raw_values: bool = False,
) -> Dict[str, Any]:
    """
    Dictionary view of a scan for display or export.

    Args:
        result: Output of scan_barcode()
        today: Reference day for the expiry status (default: date.today())
        soon_threshold_days: EXPIRING window in days
        include_raw_values: Include raw date tokens next to formatted ones
    """
    parsed = result.parsed
    today = today or date.today()
    output: Dict[str, Any] = {
        "Format": parsed.format.value,
        **format_parsed_fields(parsed, include_raw_values=include_raw_values),
        "Product Name": result.display_name,
        "Reference Code": result.reference_code,
        "Match": result.match.confidence.value,
        "Expiry Status": classify_expiry(parsed.expiry_date, today, soon_threshold_days).value,
    }
    if parsed.expiry_date is not None:
        output["Days To Expiry"] = days_until(parsed.expiry_date, today)
        output["Expiry Source"] = parsed.expiry_source
    if parsed.gtin is not None:
        output["Check Digit Valid"] = parsed.gtin_check_digit_valid
    if parsed.errors:
        output["Errors"] = [f"{e.code.value}: {e.message}" for e in parsed.errors]
    return output


def format_scan_json(result: ScanResult, **kwargs: Any) -> str:
    """JSON string form of format_scan_result()."""
    return json.dumps(format_scan_result(result, **kwargs), ensure_ascii=False, indent=2)
