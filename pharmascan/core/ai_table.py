"""
Application Identifier table for the scan parser.

A small, closed table of the GS1 Application Identifiers a pharmacy scan
actually carries. Each descriptor is tagged FIXED (exact data length) or
VARIABLE (terminated by a Group Separator, the next AI, or end of data),
and one trie serves longest-prefix lookup for both parenthesized and
positional decoding.

Reference: https://ref.gs1.org/ai/
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class AIKind(str, Enum):
    """How the data following an AI is delimited."""
    FIXED = "fixed"
    VARIABLE = "variable"


class AIField(str, Enum):
    """Record field an AI populates."""
    GTIN = "gtin"
    PROD_DATE = "production_date"
    EXPIRY = "expiry"
    BATCH = "batch"
    SERIAL = "serial"
    COUNT = "count"
    NET_WEIGHT = "net_weight"


@dataclass(frozen=True)
class AIDescriptor:
    """
    A single Application Identifier.

    Attributes:
        ai: The AI digits (2-3 characters here)
        field: Record field the value lands in
        kind: FIXED or VARIABLE
        length: Data length for FIXED AIs, maximum length for VARIABLE ones
        numeric: True if the data must be all digits
        is_date: True if the data is a YYMMDD date
    """
    ai: str
    field: AIField
    kind: AIKind
    length: int
    numeric: bool = True
    is_date: bool = False

    @property
    def fixed(self) -> bool:
        return self.kind is AIKind.FIXED


AI_TABLE: Dict[str, AIDescriptor] = {
    "01": AIDescriptor("01", AIField.GTIN, AIKind.FIXED, 14),
    "11": AIDescriptor("11", AIField.PROD_DATE, AIKind.FIXED, 6, is_date=True),
    "17": AIDescriptor("17", AIField.EXPIRY, AIKind.FIXED, 6, is_date=True),
    "10": AIDescriptor("10", AIField.BATCH, AIKind.VARIABLE, 20, numeric=False),
    "21": AIDescriptor("21", AIField.SERIAL, AIKind.VARIABLE, 20, numeric=False),
    "37": AIDescriptor("37", AIField.COUNT, AIKind.VARIABLE, 8),
    "310": AIDescriptor("310", AIField.NET_WEIGHT, AIKind.FIXED, 6),
}

# Tokens that end a variable-length field when no Group Separator is present.
# "24" is not decoded itself but commonly opens AI 240/241 on pharma packs.
NO_SEPARATOR_TERMINATORS: Tuple[str, ...] = ("17", "21", "10", "11", "24", "01")


class TrieNode:
    """Trie node for AI prefix matching."""
    __slots__ = ['children', 'descriptor']

    def __init__(self):
        self.children: Dict[str, TrieNode] = {}
        self.descriptor: Optional[AIDescriptor] = None


class AITrie:
    """
    Trie over AI codes supporting longest-prefix matching, so that a
    3-digit AI such as 310 wins over any 2-digit prefix of it.
    """

    def __init__(self, table: Dict[str, AIDescriptor]):
        self.root = TrieNode()
        self._table = dict(table)
        self._max_len = 0
        for ai, descriptor in table.items():
            self.insert(ai, descriptor)

    def insert(self, ai: str, descriptor: AIDescriptor) -> None:
        node = self.root
        for char in ai:
            node = node.children.setdefault(char, TrieNode())
        node.descriptor = descriptor
        self._table[ai] = descriptor
        self._max_len = max(self._max_len, len(ai))

    def find_longest_match(self, text: str, start: int = 0) -> Tuple[Optional[AIDescriptor], int]:
        """
        Find the longest AI starting at position ``start``.
        Returns (descriptor, length) or (None, 0) if no AI starts there.
        """
        node = self.root
        last_match: Optional[AIDescriptor] = None
        last_len = 0

        for i, char in enumerate(text[start:start + self._max_len]):
            node = node.children.get(char)
            if node is None:
                break
            if node.descriptor is not None:
                last_match = node.descriptor
                last_len = i + 1

        return last_match, last_len

    def get(self, ai: str) -> Optional[AIDescriptor]:
        return self._table.get(ai)

    def __contains__(self, ai: str) -> bool:
        return ai in self._table

    def __iter__(self):
        return iter(self._table.values())

    def __len__(self) -> int:
        return len(self._table)


DEFAULT_TRIE = AITrie(AI_TABLE)


def variable_terminators(ai: str) -> Tuple[str, ...]:
    """Tokens that end AI ``ai``'s data when no separator is present."""
    return tuple(token for token in NO_SEPARATOR_TERMINATORS if token != ai)
