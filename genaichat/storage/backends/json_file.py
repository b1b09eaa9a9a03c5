"""
JSON file storage.
One file holds a {key: value} object. Every write rewrites the whole file
through a temp file + rename so a crash never leaves it half-written.
"""

import json
import logging
import os
from pathlib import Path

from .base import StorageBackend

logger = logging.getLogger(__name__)


class JsonFileBackend(StorageBackend):

    def __init__(self, path: str):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        # ValueError covers both JSONDecodeError and UnicodeDecodeError
        except (ValueError, OSError) as e:
            logger.warning("Storage file %s unreadable, treating as empty: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict):
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp, self.path)

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)
        logger.debug("Wrote %d chars under %s to %s", len(value), key, self.path)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)
