"""
Inventory summaries over tracked units (pandas).
"""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, Optional

import pandas as pd

from pharmascan.expiry import ExpiryStatus, classify_expiry
from pharmascan.tracking import TrackedUnit

from .utils import expiry_band, format_ddmmyyyy, months_until


COLUMNS = [
    "unit_id",
    "reference_code",
    "gtin",
    "name",
    "expiry_date",
    "expiry_display",
    "batch",
    "serial",
    "quantity",
    "supplier",
    "returnable",
    "match_confidence",
    "status",
    "band",
    "months_left",
    "scanned_at",
]

SEARCH_COLUMNS = ("name", "gtin", "batch", "reference_code")


def units_to_dataframe(
    units: Iterable[TrackedUnit],
    today: Optional[date] = None,
    soon_threshold_days: int = 90,
    short_expiry_days: int = 30,
) -> pd.DataFrame:
    """One row per unit, with expiry status columns computed for ``today``."""
    today = today or date.today()
    rows = []
    for unit in units:
        rows.append({
            "unit_id": unit.unit_id,
            "reference_code": unit.reference_code,
            "gtin": unit.gtin or "",
            "name": unit.name,
            "expiry_date": unit.expiry_date,
            "expiry_display": format_ddmmyyyy(unit.expiry_date),
            "batch": unit.batch or "",
            "serial": unit.serial or "",
            "quantity": unit.quantity,
            "supplier": unit.supplier,
            "returnable": unit.returnable,
            "match_confidence": unit.match_confidence.value,
            "status": classify_expiry(unit.expiry_date, today, soon_threshold_days).value,
            "band": expiry_band(unit.expiry_date, today, soon_threshold_days, short_expiry_days),
            "months_left": months_until(unit.expiry_date, today) if unit.expiry_date else None,
            "scanned_at": unit.scanned_at,
        })
    return pd.DataFrame(rows, columns=COLUMNS)


def status_counts(df: pd.DataFrame) -> Dict[str, int]:
    """Number of units per expiry status, every status present."""
    counts = {status.value: 0 for status in ExpiryStatus}
    if df.empty:
        return counts
    for status, count in df["status"].value_counts().items():
        counts[status] = int(count)
    return counts


def filter_units(
    df: pd.DataFrame,
    status: Optional[ExpiryStatus] = None,
    query: str = "",
) -> pd.DataFrame:
    """
    Filter by expiry status and a free-text query matched case-insensitively
    against name, GTIN, batch and reference code.
    """
    mask = pd.Series(True, index=df.index)
    if status is not None:
        mask &= df["status"] == ExpiryStatus(status).value
    query = (query or "").strip()
    if query:
        hit = pd.Series(False, index=df.index)
        for column in SEARCH_COLUMNS:
            hit |= df[column].fillna("").astype(str).str.contains(query, case=False, regex=False)
        mask &= hit
    return df[mask]
