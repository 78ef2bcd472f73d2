"""
User-tunable runtime settings — persisted to data/settings.json.

Import get_settings() anywhere in the service to read current values.
Import update_settings(patch) to mutate and save.

Every setting is a boolean; values of any other type are ignored so a
hand-edited file can never switch on a feature by accident.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .config import config

logger = logging.getLogger(__name__)

_FILE: Path = config.data_dir / "settings.json"

DEFAULTS: dict[str, bool] = {
    "sound_enabled":         True,    # play a tone on transitions and completion
    "auto_breaks":           True,    # False → pause and ask before each transition
    "desktop_notifications": False,   # OS-level notification popups
    "development_mode":      False,   # tick every 100ms instead of every second
}

_current: dict[str, bool] = {}


def _load() -> None:
    global _current
    _current = dict(DEFAULTS)
    if _FILE.exists():
        try:
            saved = json.loads(_FILE.read_text())
        except (OSError, ValueError) as exc:
            logger.warning("Unreadable settings file %s, using defaults: %s", _FILE, exc)
            return
        if not isinstance(saved, dict):
            logger.warning("Malformed settings file %s, using defaults", _FILE)
            return
        for k, v in saved.items():
            if k in DEFAULTS and isinstance(v, bool):
                _current[k] = v


def get_settings() -> dict[str, bool]:
    """Return a copy of the current settings dict."""
    if not _current:
        _load()
    return dict(_current)


def update_settings(patch: dict[str, Any]) -> dict[str, bool]:
    """Apply *patch* (unknown keys and non-bool values ignored), persist to disk, return full settings."""
    if not _current:
        _load()
    for k, v in patch.items():
        if k in DEFAULTS and isinstance(v, bool):
            _current[k] = v
    _FILE.parent.mkdir(parents=True, exist_ok=True)
    _FILE.write_text(json.dumps(_current, indent=2))
    return dict(_current)


# Eagerly load on import
_load()
