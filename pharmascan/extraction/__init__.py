"""
Free-text extraction helpers (OCR output).
"""

from .date_extractor import DATE_PATTERNS, extract_date, normalize_ocr_text

__all__ = [
    "DATE_PATTERNS",
    "extract_date",
    "normalize_ocr_text",
]
