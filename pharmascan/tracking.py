"""
Tracked inventory units.

A TrackedUnit is what the operator saves after a scan: the parsed barcode,
its catalog match and the fields typed in on the product panel (quantity,
supplier, returnable flag). Units are immutable; ``edit_tracked_unit``
returns a new unit and persistence decides what to do with it.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional
from uuid import uuid4

from .catalog import MatchConfidence
from .core.formats import BarcodeFormat
from .pipeline import ScanResult

EDITABLE_FIELDS = frozenset({
    "name",
    "reference_code",
    "expiry_date",
    "batch",
    "quantity",
    "supplier",
    "returnable",
})


@dataclass(frozen=True)
class TrackedUnit:
    """A saved inventory record."""
    unit_id: str
    gtin: Optional[str]
    raw: str
    format: BarcodeFormat
    name: str
    reference_code: str
    match_confidence: MatchConfidence
    expiry_date: Optional[date]
    batch: Optional[str]
    serial: Optional[str]
    production_date: Optional[date]
    quantity: int
    supplier: str
    returnable: Optional[bool]
    scanned_at: datetime

    def to_document(self) -> Dict[str, Any]:
        """Plain JSON-friendly mapping for storage."""
        return {
            "unit_id": self.unit_id,
            "gtin": self.gtin,
            "raw": self.raw,
            "format": self.format.value,
            "name": self.name,
            "reference_code": self.reference_code,
            "match_confidence": self.match_confidence.value,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
            "batch": self.batch,
            "serial": self.serial,
            "production_date": (
                self.production_date.isoformat() if self.production_date else None
            ),
            "quantity": self.quantity,
            "supplier": self.supplier,
            "returnable": self.returnable,
            "scanned_at": self.scanned_at.isoformat(timespec="seconds"),
        }

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "TrackedUnit":
        return cls(
            unit_id=doc["unit_id"],
            gtin=doc.get("gtin"),
            raw=doc.get("raw") or "",
            format=BarcodeFormat(doc.get("format") or BarcodeFormat.UNKNOWN.value),
            name=doc.get("name") or "",
            reference_code=doc.get("reference_code") or "",
            match_confidence=MatchConfidence(
                doc.get("match_confidence") or MatchConfidence.NONE.value
            ),
            expiry_date=_parse_iso_date(doc.get("expiry_date")),
            batch=doc.get("batch"),
            serial=doc.get("serial"),
            production_date=_parse_iso_date(doc.get("production_date")),
            quantity=int(doc.get("quantity") or 1),
            supplier=doc.get("supplier") or "",
            returnable=doc.get("returnable"),
            scanned_at=datetime.fromisoformat(doc["scanned_at"]),
        )


def _parse_iso_date(value: Any) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def _check_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValueError(f"Quantity must be a positive integer, got {quantity!r}")
    return quantity


def _check_expiry(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if value is None or isinstance(value, date):
        return value
    if isinstance(value, str):
        return _parse_iso_date(value.strip())
    raise ValueError(f"Expiry must be a date or ISO date string, got {value!r}")


def create_tracked_unit(
    scan: ScanResult,
    quantity: int = 1,
    supplier: str = "",
    returnable: Optional[bool] = None,
    expiry_date: Optional[date] = None,
    batch: Optional[str] = None,
    now: Optional[datetime] = None,
) -> TrackedUnit:
    """
    Build a TrackedUnit from a scan. ``expiry_date`` and ``batch`` override
    what the barcode carried (operator corrections at save time).
    """
    parsed = scan.parsed
    entry = scan.match.entry
    return TrackedUnit(
        unit_id=str(uuid4()),
        gtin=parsed.gtin,
        raw=parsed.raw,
        format=parsed.format,
        name=entry.name if entry is not None else "",
        reference_code=entry.reference_code if entry is not None else "",
        match_confidence=scan.match.confidence,
        expiry_date=_check_expiry(expiry_date) if expiry_date is not None else parsed.expiry_date,
        batch=batch if batch is not None else parsed.batch,
        serial=parsed.serial,
        production_date=parsed.production_date,
        quantity=_check_quantity(quantity),
        supplier=(supplier or "").strip(),
        returnable=returnable,
        scanned_at=now or datetime.now(),
    )


def edit_tracked_unit(unit: TrackedUnit, **changes: Any) -> TrackedUnit:
    """Return a copy of ``unit`` with operator-editable fields changed."""
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")
    if "quantity" in changes:
        _check_quantity(changes["quantity"])
    if "expiry_date" in changes:
        changes["expiry_date"] = _check_expiry(changes["expiry_date"])
    for key in ("name", "reference_code", "supplier"):
        if key in changes:
            changes[key] = (changes[key] or "").strip()
    return dataclasses.replace(unit, **changes)
