"""
Scan workflow: catalog import, scan handling and the tracked-unit lifecycle.

The master catalog is held by ``MasterCatalog``. A reload builds a fresh
CatalogIndex from the stored rows and then replaces the held reference in
a single assignment, so a lookup running alongside a reload sees either
the old index or the new one.
"""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pharmascan.catalog import CatalogIndex, EMPTY_INDEX, build_index, entries_from_rows
from pharmascan.pipeline import ScanResult, scan_barcode
from pharmascan.tracking import TrackedUnit, create_tracked_unit, edit_tracked_unit

from . import storage
from .reports import units_to_dataframe
from .settings import load_settings

logger = logging.getLogger(__name__)


class MasterCatalog:
    """Holder of the current catalog index."""

    def __init__(self, index: CatalogIndex = EMPTY_INDEX):
        self._index = index
        # Serialises rebuilds; readers never take it
        self._rebuild_lock = threading.Lock()

    @property
    def index(self) -> CatalogIndex:
        return self._index

    def swap(self, index: CatalogIndex) -> CatalogIndex:
        """Install a new index and return the previous one."""
        previous, self._index = self._index, index
        return previous

    def load_rows(self, rows: Iterable[Mapping[str, Any]]) -> CatalogIndex:
        with self._rebuild_lock:
            index = build_index(entries_from_rows(rows))
            self.swap(index)
        logger.info("Catalog rebuilt: %d entries, %d keys", index.size, len(index.lookup))
        return index

    def reload(self) -> CatalogIndex:
        """Rebuild from the rows in storage."""
        return self.load_rows(storage.list_master())


catalog = MasterCatalog()


def import_master(rows: Iterable[Mapping[str, Any]], append: bool = False) -> int:
    """
    Store catalog rows and rebuild the index.

    Rows without a usable barcode are dropped before storing. Returns the
    number of rows stored by this import.
    """
    entries = entries_from_rows(rows)
    records = [entry.to_dict() for entry in entries]
    if append:
        stored = storage.append_master(records)
    else:
        stored = storage.replace_master(records)
    catalog.reload()
    return stored


def handle_scan(raw: Any, ocr_text: Optional[str] = None) -> ScanResult:
    """Parse a scan and resolve it against the current catalog."""
    return scan_barcode(raw, index=catalog.index, ocr_text=ocr_text)


def save_scan(
    scan: ScanResult,
    quantity: int = 1,
    supplier: str = "",
    returnable: Optional[bool] = None,
    expiry_date: Optional[date] = None,
    batch: Optional[str] = None,
    now: Optional[datetime] = None,
) -> TrackedUnit:
    """Create and persist a TrackedUnit for an explicit save."""
    if not scan.parsed.usable:
        raise ValueError("No usable barcode to save")
    unit = create_tracked_unit(
        scan,
        quantity=quantity,
        supplier=supplier,
        returnable=returnable,
        expiry_date=expiry_date,
        batch=batch,
        now=now,
    )
    storage.create_unit(unit.to_document())
    return unit


def load_unit(unit_id: str) -> TrackedUnit:
    doc = storage.get_unit(unit_id)
    if doc is None:
        raise storage.UnitNotFoundError(unit_id)
    return TrackedUnit.from_document(doc)


def list_tracked_units(limit: Optional[int] = None) -> List[TrackedUnit]:
    return [TrackedUnit.from_document(doc) for doc in storage.list_units(limit)]


def edit_unit(unit_id: str, **changes: Any) -> TrackedUnit:
    """Apply operator edits to a stored unit and persist the result."""
    edited = edit_tracked_unit(load_unit(unit_id), **changes)
    document = edited.to_document()
    updates: Dict[str, Any] = {key: document[key] for key in changes}
    storage.update_unit(unit_id, updates)
    logger.info("Edited unit %s: %s", unit_id, ", ".join(sorted(updates)))
    return edited


def delete_unit(unit_id: str) -> None:
    storage.delete_unit(unit_id)
    logger.info("Deleted unit %s", unit_id)


def inventory_frame(today: Optional[date] = None):
    """Stored units as a DataFrame, banded with the saved thresholds."""
    settings = load_settings()
    return units_to_dataframe(
        list_tracked_units(),
        today=today,
        soon_threshold_days=int(settings["soon_threshold_days"]),
        short_expiry_days=int(settings["short_expiry_days"]),
    )
