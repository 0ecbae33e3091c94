"""Persistent preferences for vinet.

One JSON object lives at $XDG_CONFIG_HOME/vinet/settings.json. The filter bar
stores its enabled set and ordering there; a missing or unreadable file reads
as no preferences at all.

// [LAW:one-source-of-truth] The app reads and writes preferences only through a Prefs object.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

APP_DIR = "vinet"
FILE_NAME = "settings.json"


def get_config_path() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    return Path(base, APP_DIR, FILE_NAME)


def load_settings() -> dict:
    path = get_config_path()
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("ignoring unreadable settings file %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring settings file %s: top level is not an object", path)
        return {}
    return data


def save_settings(data: dict) -> None:
    """Replace the settings file in one rename so readers never see half a file."""
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(data, indent=2) + "\n"
    with tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=path.parent, suffix=".tmp", delete=False
    ) as handle:
        handle.write(payload)
    try:
        os.replace(handle.name, path)
    except OSError:
        with contextlib.suppress(OSError):
            os.unlink(handle.name)
        raise


def load_setting(key: str, default=None):
    return load_settings().get(key, default)


def save_setting(key: str, value) -> None:
    save_settings({**load_settings(), key: value})


# ─── Prefs adapters ──────────────────────────────────────────────────


class SettingsPrefs:
    """Prefs backed by the settings file; every set is written through."""

    def get(self, key: str, default: Any = None) -> Any:
        return load_setting(key, default)

    def set(self, key: str, value: Any) -> None:
        save_setting(key, value)


class MemoryPrefs:
    """Prefs for --no-persist runs."""

    def __init__(self, initial: dict | None = None):
        self.data: dict = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value
