"""
Persistent storage for the settings blob.

This module manages one JSON file, by default:

    .lifegrid/settings.json

The blob keeps the plugin-compatible camelCase layout (flat event strings per
category, customEventTypes + customEvents). Translating it into typed settings
is the job of lifegrid.settings; this module only moves dicts to and from disk.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger


def default_settings_path() -> Path:
    """
    Return the default settings file location relative to the working directory.

    Using a function instead of a constant makes testing easier,
    because tests can change the working directory or pass a path.
    """
    return Path.cwd() / ".lifegrid" / "settings.json"


class JsonSettingsPersistence:
    """
    Settings Persistence collaborator backed by a JSON file.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else default_settings_path()

    def load(self) -> Optional[Dict[str, Any]]:
        """
        Load the settings blob.

        Returns None if the file does not exist or is invalid, so the caller
        starts from defaults instead of crashing on a corrupted file.
        """
        if not self.path.exists():
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning(f"Could not read settings from {self.path}: {exc}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Ignoring settings file {self.path}: top level is not an object")
            return None
        return data

    def save(self, blob: Dict[str, Any]) -> None:
        """
        Write the settings blob. Creates parent directories if needed.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(blob, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.debug(f"Settings saved to {self.path}")


class MemorySettingsPersistence:
    """
    In-memory persistence, used when no file should be touched.
    """

    def __init__(self, blob: Optional[Dict[str, Any]] = None) -> None:
        self.blob = json.loads(json.dumps(blob)) if blob is not None else None
        self.saves = 0

    def load(self) -> Optional[Dict[str, Any]]:
        return json.loads(json.dumps(self.blob)) if self.blob is not None else None

    def save(self, blob: Dict[str, Any]) -> None:
        self.blob = json.loads(json.dumps(blob))
        self.saves += 1
