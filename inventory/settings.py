"""
Application settings persistence.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict

from .storage import get_setting, set_setting


DEFAULT_SETTINGS: Dict[str, Any] = {
    "soon_threshold_days": 90,
    "short_expiry_days": 30,  # display-only sub-band inside the EXPIRING window
}


@lru_cache(maxsize=1)
def _load_cached() -> Dict[str, Any]:
    settings = {}
    for key, default in DEFAULT_SETTINGS.items():
        settings[key] = get_setting(key, default)
    return settings


def load_settings() -> Dict[str, Any]:
    return dict(_load_cached())


def save_settings(updates: Dict[str, Any]) -> None:
    for key, value in updates.items():
        set_setting(key, value)
    # Stored values changed; drop the cached copy
    clear_settings_cache()


def clear_settings_cache() -> None:
    _load_cached.cache_clear()
