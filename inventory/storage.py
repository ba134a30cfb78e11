"""
Persistence layer for tracked units, the master catalog and settings.

Two backends share one set of functions: a JSON file (default when no
MongoDB URI is configured) and MongoDB. Configuration is read from the
environment on every call:

    PERSISTENCE_BACKEND   "json" or "mongodb"
    MONGODB_URI           connection string for the MongoDB backend
    MONGODB_DB            database name (default "PharmaScan")
    PHARMASCAN_DATA_DIR   directory of the JSON backend file
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_DATA_DIR = BASE_DIR / "data"
JSON_FILENAME = "pharmascan.json"
DEFAULT_DB = "PharmaScan"

_client: Optional[MongoClient] = None
_client_uri: Optional[str] = None


class UnitNotFoundError(LookupError):
    """No tracked unit with the given id."""


def _mongodb_uri() -> str:
    return os.getenv("MONGODB_URI", "")


def _backend() -> str:
    configured = os.getenv("PERSISTENCE_BACKEND", "")
    if configured:
        return configured.strip().lower()
    if not _mongodb_uri():
        return "json"
    return "mongodb"


def _get_client() -> MongoClient:
    global _client, _client_uri
    uri = _mongodb_uri()
    if not uri:
        raise ValueError("MONGODB_URI is required for MongoDB backend.")
    if _client is None or _client_uri != uri:
        _client = MongoClient(uri)
        _client_uri = uri
    return _client


def get_db():
    return _get_client()[os.getenv("MONGODB_DB", DEFAULT_DB)]


def _json_path() -> Path:
    data_dir = Path(os.getenv("PHARMASCAN_DATA_DIR") or DEFAULT_DATA_DIR)
    return data_dir / JSON_FILENAME


def _empty_payload() -> Dict[str, Any]:
    return {"units": [], "master": [], "settings": {}}


def _json_load() -> Dict[str, Any]:
    path = _json_path()
    if not path.exists():
        return _empty_payload()
    with path.open("r", encoding="utf-8") as f:
        payload = json.load(f)
    for key, value in _empty_payload().items():
        payload.setdefault(key, value)
    return payload


def _json_save(payload: Dict[str, Any]) -> None:
    path = _json_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=True, indent=2)


def _strip_id(doc: Dict[str, Any]) -> Dict[str, Any]:
    doc.pop("_id", None)
    return doc


def init_db() -> None:
    if _backend() == "json":
        _json_save(_json_load())
        return
    db = get_db()
    db.units.create_index("unit_id", unique=True)
    db.units.create_index([("gtin", ASCENDING), ("scanned_at", DESCENDING)])
    db.units.create_index("scanned_at")
    db.master.create_index("barcode")
    db.settings.create_index("key", unique=True)


def check_connection() -> bool:
    if _backend() == "json":
        return True
    try:
        _get_client().admin.command("ping")
        return True
    except PyMongoError:
        return False


# -- settings ---------------------------------------------------------------

def set_setting(key: str, value: Any) -> None:
    if _backend() == "json":
        payload = _json_load()
        payload["settings"][key] = value
        _json_save(payload)
        return
    db = get_db()
    db.settings.update_one(
        {"_id": key},
        {"$set": {"key": key, "value": value}},
        upsert=True,
    )


def get_setting(key: str, default: Any = None) -> Any:
    if _backend() == "json":
        payload = _json_load()
        return payload.get("settings", {}).get(key, default)
    db = get_db()
    doc = db.settings.find_one({"_id": key})
    if not doc:
        return default
    return doc.get("value", default)


# -- tracked units ----------------------------------------------------------

def create_unit(doc: Mapping[str, Any]) -> str:
    """Store a unit document (TrackedUnit.to_document()). Returns its id."""
    unit_id = doc["unit_id"]
    record = dict(doc)
    if _backend() == "json":
        payload = _json_load()
        payload["units"].append(record)
        _json_save(payload)
    else:
        db = get_db()
        db.units.insert_one({"_id": unit_id, **record})
    logger.info("Saved unit %s (%s)", unit_id, record.get("gtin"))
    return unit_id


def get_unit(unit_id: str) -> Optional[Dict[str, Any]]:
    if _backend() == "json":
        payload = _json_load()
        for doc in payload.get("units", []):
            if doc.get("unit_id") == unit_id:
                return dict(doc)
        return None
    db = get_db()
    doc = db.units.find_one({"_id": unit_id})
    if not doc:
        return None
    return _strip_id(doc)


def update_unit(unit_id: str, updates: Mapping[str, Any]) -> None:
    if not updates:
        return
    if _backend() == "json":
        payload = _json_load()
        for unit in payload.get("units", []):
            if unit.get("unit_id") == unit_id:
                unit.update(updates)
                break
        else:
            raise UnitNotFoundError(unit_id)
        _json_save(payload)
        return
    db = get_db()
    result = db.units.update_one({"_id": unit_id}, {"$set": dict(updates)})
    if result.matched_count == 0:
        raise UnitNotFoundError(unit_id)


def delete_unit(unit_id: str) -> None:
    if _backend() == "json":
        payload = _json_load()
        remaining = [u for u in payload.get("units", []) if u.get("unit_id") != unit_id]
        if len(remaining) == len(payload.get("units", [])):
            raise UnitNotFoundError(unit_id)
        payload["units"] = remaining
        _json_save(payload)
        return
    db = get_db()
    result = db.units.delete_one({"_id": unit_id})
    if result.deleted_count == 0:
        raise UnitNotFoundError(unit_id)


def list_units(limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Units, newest scan first."""
    if _backend() == "json":
        payload = _json_load()
        units = sorted(
            payload.get("units", []),
            key=lambda u: u.get("scanned_at", ""),
            reverse=True,
        )
        if limit:
            units = units[:limit]
        return [dict(u) for u in units]
    db = get_db()
    cursor = db.units.find().sort("scanned_at", DESCENDING)
    if limit:
        cursor = cursor.limit(limit)
    return [_strip_id(doc) for doc in cursor]


def clear_units() -> None:
    if _backend() == "json":
        payload = _json_load()
        payload["units"] = []
        _json_save(payload)
        return
    get_db().units.delete_many({})


# -- master catalog ---------------------------------------------------------

def replace_master(rows: Iterable[Mapping[str, Any]]) -> int:
    """Replace the stored catalog rows. Returns the number stored."""
    records = [dict(r) for r in rows]
    if _backend() == "json":
        payload = _json_load()
        payload["master"] = records
        _json_save(payload)
        return len(records)
    db = get_db()
    db.master.delete_many({})
    if records:
        db.master.insert_many(records)
    return len(records)


def append_master(rows: Iterable[Mapping[str, Any]]) -> int:
    records = [dict(r) for r in rows]
    if _backend() == "json":
        payload = _json_load()
        payload["master"].extend(records)
        _json_save(payload)
        return len(records)
    if records:
        get_db().master.insert_many(records)
    return len(records)


def list_master() -> List[Dict[str, Any]]:
    """Stored catalog rows in import order."""
    if _backend() == "json":
        return [dict(r) for r in _json_load().get("master", [])]
    cursor = get_db().master.find().sort("_id", ASCENDING)
    return [_strip_id(doc) for doc in cursor]


def clear_master() -> None:
    if _backend() == "json":
        payload = _json_load()
        payload["master"] = []
        _json_save(payload)
        return
    get_db().master.delete_many({})
