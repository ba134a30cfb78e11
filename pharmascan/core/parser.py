"""
Scan Parser

Turns raw scan text (barcode decoder output or keyboard entry) into a
structured ParsedBarcode: GTIN, expiry, batch, serial and production date.

Features:
- Parenthesized GS1 decoding: (01)GTIN(17)YYMMDD(10)BATCH(21)SERIAL
- Positional GS1 decoding with or without Group Separators
- Plain GTIN-14 / EAN-13 / EAN-8 / legacy 12-digit codes
- Never raises: unusable input yields a typed result with errors attached

Key rules:
- Fixed-length AIs consume exactly their data length
- Variable-length AIs end at the next GS (0x1D) when the scan carries one;
  otherwise at the next known AI token or end of data (a heuristic: a batch
  or serial that itself contains such a token will be cut short)
- Unrecognised data advances the cursor one character at a time
- GS1 dates are YYMMDD in 2000-2099; day 00 means last day of the month
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from .ai_table import AIDescriptor, AIField, AITrie, DEFAULT_TRIE, variable_terminators
from .formats import (
    GS,
    SIMPLE_FORMAT_LENGTHS,
    BarcodeFormat,
    DEFAULT_OPTIONS,
    ParseOptions,
    classify_normalized,
    coerce_text,
    normalize_scan,
)
from ..validators.validators import (
    digits_only,
    is_digits,
    sanitize_text,
    validate_date,
    validate_gtin,
)

logger = logging.getLogger(__name__)

GTIN_LENGTH = 14


class ErrorCode(str, Enum):
    """Error and warning codes."""
    EMPTY_INPUT = "EMPTY_INPUT"
    UNRECOGNIZED_FORMAT = "UNRECOGNIZED_FORMAT"
    INVALID_GTIN = "INVALID_GTIN"
    INVALID_DATE = "INVALID_DATE"
    TRUNCATED_DATA = "TRUNCATED_DATA"
    UNKNOWN_AI = "UNKNOWN_AI"
    DUPLICATE_AI = "DUPLICATE_AI"


@dataclass
class ParseError:
    """Represents a parsing error or warning."""
    code: ErrorCode
    message: str
    at_index: Optional[int] = None
    ai: Optional[str] = None


@dataclass
class ParsedBarcode:
    """
    Output of the parsing stage.

    Every field except ``raw`` and ``format`` is independently optional;
    absence is a normal outcome, not a failure.

    Attributes:
        raw: Original scanned text, unmodified
        format: Detected encoding shape
        gtin: 14-digit zero-padded GTIN, or None
        expiry_raw: The 6-digit YYMMDD expiry token as scanned
        expiry_date: Decoded expiry (from the barcode or backfilled from OCR)
        expiry_source: "barcode", "ocr" or None
        batch: Batch/lot, printable ASCII, at most 20 characters
        serial: Serial number, printable ASCII, at most 20 characters
        production_date_raw: The 6-digit YYMMDD production date token
        production_date: Decoded production date
        count: AI 37 count of trade items
        net_weight: AI 310 raw 6-digit value
        elements: AI -> value for every AI that was extracted, in scan order
        errors: Problems noticed while parsing
    """
    raw: str
    format: BarcodeFormat = BarcodeFormat.UNKNOWN
    gtin: Optional[str] = None
    expiry_raw: Optional[str] = None
    expiry_date: Optional[date] = None
    expiry_source: Optional[str] = None
    batch: Optional[str] = None
    serial: Optional[str] = None
    production_date_raw: Optional[str] = None
    production_date: Optional[date] = None
    count: Optional[str] = None
    net_weight: Optional[str] = None
    elements: Dict[str, str] = field(default_factory=dict)
    errors: List[ParseError] = field(default_factory=list)

    @property
    def is_gs1(self) -> bool:
        return self.format.is_gs1

    @property
    def usable(self) -> bool:
        """False means "no usable barcode": nothing to key a catalog lookup on."""
        return self.gtin is not None

    @property
    def gtin_check_digit_valid(self) -> Optional[bool]:
        """Mod10 status of the GTIN; informational, never blocks extraction."""
        if self.gtin is None:
            return None
        return validate_gtin(self.gtin).valid

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'raw': self.raw,
            'format': self.format.value,
            'gtin': self.gtin,
            'expiry_raw': self.expiry_raw,
            'expiry_date': self.expiry_date.isoformat() if self.expiry_date else None,
            'expiry_source': self.expiry_source,
            'batch': self.batch,
            'serial': self.serial,
            'production_date_raw': self.production_date_raw,
            'production_date': self.production_date.isoformat() if self.production_date else None,
            'count': self.count,
            'net_weight': self.net_weight,
            'elements': dict(self.elements),
            'errors': [
                {
                    'code': e.code.value,
                    'message': e.message,
                    'at_index': e.at_index,
                    'ai': e.ai,
                }
                for e in self.errors
            ],
        }


class GS1FieldParser:
    """
    Extracts AI-keyed fields from GS1 scans.

    Both modes share one AI descriptor table. Parenthesized mode looks each
    AI up independently; positional mode walks the string once with a
    cursor, dispatching on fixed vs variable AIs.
    """

    def __init__(self, options: Optional[ParseOptions] = None, trie: AITrie = DEFAULT_TRIE):
        self.options = options or DEFAULT_OPTIONS
        self.trie = trie
        self._paren_patterns = {
            descriptor.ai: self._build_paren_pattern(descriptor) for descriptor in trie
        }
        self._terminator_patterns = {
            descriptor.ai: self._build_terminator_pattern(descriptor.ai)
            for descriptor in trie
            if not descriptor.fixed
        }

    @staticmethod
    def _build_paren_pattern(descriptor: AIDescriptor) -> re.Pattern:
        tag = re.escape(f"({descriptor.ai})")
        if descriptor.fixed:
            return re.compile(tag + r"([0-9]{%d})" % descriptor.length)
        return re.compile(tag + r"([^(]+)")

    @staticmethod
    def _build_terminator_pattern(ai: str) -> re.Pattern:
        tokens = "|".join(re.escape(t) for t in variable_terminators(ai))
        return re.compile(r"(.+?)(?=%s|\Z)" % tokens, re.DOTALL)

    # -- shared field assignment -------------------------------------------

    def _assign(
        self,
        record: ParsedBarcode,
        descriptor: AIDescriptor,
        value: str,
        at_index: int,
    ) -> None:
        """Store one AI value on the record. First occurrence of an AI wins."""
        ai = descriptor.ai
        if ai in record.elements:
            record.errors.append(ParseError(
                code=ErrorCode.DUPLICATE_AI,
                message=f"AI({ai}) repeated; keeping the first value",
                at_index=at_index,
                ai=ai,
            ))
            return

        kind = descriptor.field
        if kind is AIField.GTIN:
            record.gtin = value

        elif kind in (AIField.EXPIRY, AIField.PROD_DATE):
            checked = validate_date(value)
            if kind is AIField.EXPIRY:
                record.expiry_raw = value
            else:
                record.production_date_raw = value
            if not checked.valid:
                record.errors.append(ParseError(
                    code=ErrorCode.INVALID_DATE,
                    message=f"AI({ai}) {value!r}: {'; '.join(checked.errors)}",
                    at_index=at_index,
                    ai=ai,
                ))
            elif kind is AIField.EXPIRY:
                record.expiry_date = checked.meta['date']
                record.expiry_source = "barcode"
            else:
                record.production_date = checked.meta['date']

        elif kind in (AIField.BATCH, AIField.SERIAL):
            value = sanitize_text(value, self.options.max_field_length)
            if not value:
                return
            if kind is AIField.BATCH:
                record.batch = value
            else:
                record.serial = value

        elif kind is AIField.COUNT:
            value = value.strip()
            if not is_digits(value):
                record.errors.append(ParseError(
                    code=ErrorCode.TRUNCATED_DATA,
                    message=f"AI({ai}) count is not numeric: {value!r}",
                    at_index=at_index,
                    ai=ai,
                ))
                return
            record.count = value

        elif kind is AIField.NET_WEIGHT:
            record.net_weight = value

        record.elements[ai] = value

    # -- parenthesized mode ------------------------------------------------

    def parse_parenthesized(self, text: str, raw: str) -> ParsedBarcode:
        """
        Decode "(AI)value" pairs. Each AI is searched for independently, so
        their order and presence in the scan do not matter.
        """
        record = ParsedBarcode(raw=raw, format=BarcodeFormat.GS1_PARENTHESIZED)
        found = []

        for descriptor in self.trie:
            match = self._paren_patterns[descriptor.ai].search(text)
            if match:
                found.append((match.start(), descriptor, match.group(1)))
            elif descriptor.fixed and f"({descriptor.ai})" in text:
                record.errors.append(ParseError(
                    code=ErrorCode.TRUNCATED_DATA,
                    message=f"AI({descriptor.ai}) needs {descriptor.length} digits",
                    at_index=text.find(f"({descriptor.ai})"),
                    ai=descriptor.ai,
                ))

        for start, descriptor, value in sorted(found, key=lambda item: item[0]):
            self._assign(record, descriptor, value, start)

        self._check_gtin(record)
        return record

    # -- positional mode ---------------------------------------------------

    def _variable_end(self, text: str, start: int, descriptor: AIDescriptor, gs_seen: bool) -> int:
        """
        End index (exclusive) of a variable-length value starting at ``start``.

        With separators in the scan the value runs to the next GS. Without
        them it runs to the next known AI token or end of data.
        """
        if gs_seen:
            end = text.find(GS, start)
            return len(text) if end == -1 else end
        match = self._terminator_patterns[descriptor.ai].match(text, start)
        return match.end(1) if match else len(text)

    def parse_positional(self, text: str, raw: str) -> ParsedBarcode:
        """
        Decode concatenated AIs ("01" + GTIN first, then any order),
        optionally delimited by Group Separators.
        """
        record = ParsedBarcode(raw=raw, format=BarcodeFormat.GS1_POSITIONAL)
        gs_seen = GS in text
        pos = 0
        skipping = False

        while pos < len(text):
            if text[pos] == GS:
                pos += 1
                continue

            descriptor, ai_len = self.trie.find_longest_match(text, pos)
            data_start = pos + ai_len

            if descriptor is not None and descriptor.fixed:
                end = data_start + descriptor.length
                value = text[data_start:end]
                if len(value) != descriptor.length or not is_digits(value):
                    descriptor = None
            elif descriptor is not None:
                end = self._variable_end(text, data_start, descriptor, gs_seen)
                value = text[data_start:end]

            if descriptor is None:
                # Resynchronise one character at a time
                if not skipping:
                    record.errors.append(ParseError(
                        code=ErrorCode.UNKNOWN_AI,
                        message=f"Unrecognised data at position {pos}: {text[pos:pos + 4]!r}",
                        at_index=pos,
                    ))
                    logger.debug("Resynchronising positional scan at %d", pos)
                skipping = True
                pos += 1
                continue

            skipping = False
            self._assign(record, descriptor, value, pos)
            pos = end

        self._check_gtin(record)
        return record

    @staticmethod
    def _check_gtin(record: ParsedBarcode) -> None:
        if record.gtin is None:
            record.errors.append(ParseError(
                code=ErrorCode.INVALID_GTIN,
                message="No 14-digit GTIN found after AI(01)",
                ai="01",
            ))


_DEFAULT_PARSER = GS1FieldParser()


def parse_simple(digits: Any, fmt: BarcodeFormat, raw: Optional[str] = None) -> ParsedBarcode:
    """
    Parse a plain numeric code of known shape (GTIN-14, EAN-13, EAN-8,
    legacy 12-digit). The GTIN is the zero-padded 14-digit form in every
    case; the shape survives only in ``format``.

    A digit count that does not fit ``fmt`` yields format UNKNOWN.
    """
    text = coerce_text(digits)
    record = ParsedBarcode(raw=text if raw is None else raw)
    cleaned = digits_only(text)
    expected = SIMPLE_FORMAT_LENGTHS.get(fmt)

    if expected is None or len(cleaned) != expected:
        record.errors.append(ParseError(
            code=ErrorCode.UNRECOGNIZED_FORMAT,
            message=f"{len(cleaned)} digits is not a recognised plain code length",
        ))
        return record

    record.format = fmt
    record.gtin = cleaned.zfill(GTIN_LENGTH)
    return record


def parse_barcode(raw: Any, *, options: Optional[ParseOptions] = None) -> ParsedBarcode:
    """
    Parse a raw scan string.

    Main entry point for the parser.

    Args:
        raw: Raw scan text; may contain ASCII 29 separators
        options: Optional parsing configuration

    Returns:
        ParsedBarcode; empty or unrecognised input is reported through
        ``errors`` and ``usable`` rather than raised

    Examples:
        >>> result = parse_barcode("(01)00012345678905(17)260630(10)BATCH1")
        >>> result.gtin, result.expiry_date.isoformat(), result.batch
        ('00012345678905', '2026-06-30', 'BATCH1')
    """
    options = options or DEFAULT_OPTIONS
    raw_text = coerce_text(raw)
    text = normalize_scan(raw_text, options)

    if not text:
        return ParsedBarcode(raw=raw_text, errors=[ParseError(
            code=ErrorCode.EMPTY_INPUT,
            message="Empty barcode",
        )])

    fmt = classify_normalized(text)

    logger.debug("Detected %s for scan %r", fmt.value, raw_text)

    if fmt.is_gs1:
        parser = _DEFAULT_PARSER if options is DEFAULT_OPTIONS else GS1FieldParser(options)
        if fmt is BarcodeFormat.GS1_PARENTHESIZED:
            return parser.parse_parenthesized(text, raw_text)
        return parser.parse_positional(text, raw_text)
    if fmt is BarcodeFormat.UNKNOWN:
        return ParsedBarcode(raw=raw_text, errors=[ParseError(
            code=ErrorCode.UNRECOGNIZED_FORMAT,
            message="Unrecognised barcode format",
        )])
    return parse_simple(text, fmt, raw=raw_text)
