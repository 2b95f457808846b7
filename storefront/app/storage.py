"""Key-value persistence for state that must survive a reload."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """Process-local store (tests, kiosks without writable storage)."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """String values kept in a single JSON object file.

    The file is read once on construction; unreadable or corrupt content
    degrades to an empty store. Writes go through a temp file + rename.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()
        self._data: Dict[str, str] = self._load()

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._flush()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Store %s unreadable, starting empty: %s", self.path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Store %s is not a JSON object, starting empty", self.path)
            return {}
        return {str(k): v for k, v in raw.items() if isinstance(v, str)}

    def _flush(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(self._data, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            logger.error("Failed to persist store %s: %s", self.path, exc)


__all__ = ["KeyValueStore", "MemoryStore", "JsonFileStore"]
