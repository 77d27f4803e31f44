"""
User-tunable timer settings — persisted to data/settings.json.

Import get_settings() anywhere to read current values.
Import update_settings(patch) to mutate and save.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .config import config
from .timer.durations import DurationTable

logger = logging.getLogger(__name__)

_FILE: Path = config.data_dir / "settings.json"

DEFAULTS: dict[str, Any] = {
    "work_seconds":        1500,     # 25 min focus phase
    "short_break_seconds": 300,      # 5 min short break
    "long_break_seconds":  900,      # 15 min long break
    "long_break_every":    4,        # completed work phases per long break
    "auto_cycle":          False,    # start the next phase as soon as one expires
}

_current: dict[str, Any] = {}


def _coerce(key: str, value: Any) -> Any:
    kind = type(DEFAULTS[key])
    if kind is bool and isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return kind(value)


def _load() -> None:
    global _current
    _current = dict(DEFAULTS)
    if _FILE.exists():
        try:
            saved = json.loads(_FILE.read_text())
            for k, v in saved.items():
                if k in DEFAULTS:
                    # coerce to the same type as the default
                    _current[k] = _coerce(k, v)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Ignoring malformed %s (%s); using defaults", _FILE, e)
            _current = dict(DEFAULTS)


def get_settings() -> dict[str, Any]:
    """Return a copy of the current settings dict."""
    if not _current:
        _load()
    return dict(_current)


def update_settings(patch: dict[str, Any]) -> dict[str, Any]:
    """Apply *patch* (unknown keys ignored), persist to disk, return full settings."""
    if not _current:
        _load()
    for k, v in patch.items():
        if k in DEFAULTS:
            _current[k] = _coerce(k, v)
    _FILE.parent.mkdir(parents=True, exist_ok=True)
    _FILE.write_text(json.dumps(_current, indent=2))
    return dict(_current)


def duration_table() -> DurationTable:
    return DurationTable.from_settings(get_settings())


# Eagerly load on import
_load()
