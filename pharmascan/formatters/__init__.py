"""
Output formatters for scan results.
"""

from .json_formatter import (
    AI_FIELD_NAMES,
    format_ddmmyyyy,
    format_parsed_fields,
    format_scan_json,
    format_scan_result,
)

__all__ = [
    "AI_FIELD_NAMES",
    "format_ddmmyyyy",
    "format_parsed_fields",
    "format_scan_json",
    "format_scan_result",
]
