"""
Core parsing modules for the scan parser.
"""

from .ai_table import AIDescriptor, AIField, AIKind, AITrie, AI_TABLE, DEFAULT_TRIE
from .formats import (
    BarcodeFormat,
    ParseOptions,
    DEFAULT_OPTIONS,
    detect_format,
    normalize_scan,
)
from .parser import (
    ErrorCode,
    GS1FieldParser,
    ParseError,
    ParsedBarcode,
    parse_barcode,
    parse_simple,
)
