"""
Catalog matching.

A catalog is the pharmacy's reference product list (barcode, name, RMS
reference code). It is indexed once per import under several key
variants so that a scanned GTIN finds its product even when the catalog
stored the code in a different length:

    raw digits       "6291107439358"
    14-digit form    "06291107439358"
    leading 0 cut    "6291107439358"   (only when the 14-digit form starts with 0)
    last 8 digits    "07439358"

The first entry to claim a key keeps it. An index is never patched; a new
import builds a new index and the holder swaps its reference.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .core.formats import coerce_text
from .validators.validators import digits_only

logger = logging.getLogger(__name__)

GTIN_LENGTH = 14
MIN_KEY_DIGITS = 8
SUFFIX_LENGTH = 8

# Accepted column names per field, compared lowercase
BARCODE_COLUMNS = ("barcode", "gtin", "ean", "upc", "code")
NAME_COLUMNS = ("name", "description", "product", "productname")
REFERENCE_COLUMNS = ("rms", "rmscode", "rms_code", "reference_code")


@dataclass(frozen=True)
class CatalogEntry:
    """One row of the reference product list."""
    barcode_key: str
    name: str = ""
    reference_code: str = ""

    @property
    def digits(self) -> str:
        return digits_only(self.barcode_key)

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> Optional["CatalogEntry"]:
        """
        Build an entry from a parsed row, resolving column aliases.
        Returns None when the row has no usable barcode.
        """
        columns = {str(key).strip().lower(): value for key, value in row.items()}

        def pick(aliases: Tuple[str, ...]) -> str:
            for alias in aliases:
                value = columns.get(alias)
                if value is not None and _clean_cell(value):
                    return _clean_cell(value)
            return ""

        barcode = pick(BARCODE_COLUMNS)
        if len(digits_only(barcode)) < MIN_KEY_DIGITS:
            return None
        return cls(
            barcode_key=barcode,
            name=pick(NAME_COLUMNS),
            reference_code=pick(REFERENCE_COLUMNS),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            'barcode': self.barcode_key,
            'name': self.name,
            'reference_code': self.reference_code,
        }


def _clean_cell(value: Any) -> str:
    return coerce_text(value).strip().strip('"\'').strip()


def entries_from_rows(rows: Iterable[Mapping[str, Any]]) -> List[CatalogEntry]:
    """Convert parsed catalog rows into entries, dropping rows without a barcode."""
    entries = []
    skipped = 0
    for row in rows:
        entry = CatalogEntry.from_mapping(row)
        if entry is None:
            skipped += 1
            continue
        entries.append(entry)
    if skipped:
        logger.debug("Dropped %d catalog rows without a usable barcode", skipped)
    return entries


@dataclass(frozen=True)
class CatalogIndex:
    """
    Read-only lookup structure built by ``build_index``.

    Attributes:
        lookup: Key variant -> first entry that registered it
        entries: The indexed entries, in catalog order
    """
    lookup: Mapping[str, CatalogEntry] = field(default_factory=lambda: MappingProxyType({}))
    entries: Tuple[CatalogEntry, ...] = ()

    @property
    def size(self) -> int:
        return len(self.entries)

    def keys(self):
        return self.lookup.keys()

    def get(self, key: str) -> Optional[CatalogEntry]:
        return self.lookup.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.lookup

    def __len__(self) -> int:
        return len(self.entries)


EMPTY_INDEX = CatalogIndex()


def key_variants(barcode: str) -> List[str]:
    """Index keys for a barcode, most specific first. Empty below 8 digits."""
    raw = digits_only(barcode)
    if len(raw) < MIN_KEY_DIGITS:
        return []
    padded = raw.zfill(GTIN_LENGTH)
    variants = [raw, padded]
    if padded.startswith("0"):
        variants.append(padded[1:])
    variants.append(padded[-SUFFIX_LENGTH:])
    # Keep order, drop repeats
    return list(dict.fromkeys(variants))


def build_index(entries: Iterable[CatalogEntry]) -> CatalogIndex:
    """
    Build a CatalogIndex. Entries with fewer than 8 barcode digits are
    skipped; a key already claimed by an earlier entry is not overwritten.
    """
    lookup: Dict[str, CatalogEntry] = {}
    kept: List[CatalogEntry] = []

    for entry in entries:
        variants = key_variants(entry.barcode_key)
        if not variants:
            continue
        kept.append(entry)
        for key in variants:
            holder = lookup.setdefault(key, entry)
            if holder is not entry:
                logger.debug(
                    "Catalog key %s of %r shadowed by %r", key, entry.name, holder.name
                )

    return CatalogIndex(lookup=MappingProxyType(lookup), entries=tuple(kept))


class MatchConfidence(str, Enum):
    """How a scanned GTIN matched a catalog key."""
    EXACT = "EXACT"
    PARTIAL = "PARTIAL"
    NONE = "NONE"


@dataclass(frozen=True)
class MatchResult:
    """Outcome of a catalog lookup."""
    entry: Optional[CatalogEntry] = None
    confidence: MatchConfidence = MatchConfidence.NONE
    matched_key: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.entry is not None


NO_MATCH = MatchResult()


def find_match(index: Optional[CatalogIndex], gtin: Any) -> MatchResult:
    """
    Look up a GTIN in the index.

    Tries the full 14-digit GTIN (EXACT), then the GTIN without one
    leading zero (PARTIAL), then its last 8 digits (PARTIAL). Input that
    is not already a 14-digit GTIN is reduced to digits and zero-padded.

    Examples:
        >>> index = build_index([CatalogEntry("6291107439358", "Zyrtec")])
        >>> find_match(index, "06291107439358").confidence
        <MatchConfidence.EXACT: 'EXACT'>
    """
    if index is None:
        return NO_MATCH
    digits = digits_only(coerce_text(gtin))
    if not digits or len(digits) > GTIN_LENGTH:
        return NO_MATCH

    gtin14 = digits.zfill(GTIN_LENGTH)
    candidates = [(gtin14, MatchConfidence.EXACT)]
    if gtin14.startswith("0"):
        candidates.append((gtin14[1:], MatchConfidence.PARTIAL))
    candidates.append((gtin14[-SUFFIX_LENGTH:], MatchConfidence.PARTIAL))

    for key, confidence in candidates:
        entry = index.get(key)
        if entry is not None:
            return MatchResult(entry=entry, confidence=confidence, matched_key=key)

    return NO_MATCH
