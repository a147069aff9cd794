"""
Durable string key-value storage.

Mirrors the browser local-storage contract the web client relies on:
string keys, string values, no expiry. Concurrent writers are not
coordinated; the last write wins.
"""
import json
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Dict, Optional

from portal.utils.logger import get_logger

logger = get_logger(__name__)


class KeyValueStorage(ABC):
    """Abstract string key-value store."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Value for key, or None."""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove key; missing keys are ignored."""
        pass


class MemoryStorage(KeyValueStorage):
    """Process-local storage, used in tests and when no path is configured."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStorage(KeyValueStorage):
    """
    Storage backed by one JSON object on disk.

    Every write re-reads the file, applies the change and replaces the file
    atomically, so a crash never leaves half-written JSON behind.
    """

    def __init__(self, path: str) -> None:
        self.path = os.path.expanduser(path)
        directory = os.path.dirname(self.path)
        if directory and not os.path.exists(directory):
            os.makedirs(directory, exist_ok=True)
            logger.info(f"Created storage directory: {directory}")

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (IOError, json.JSONDecodeError) as e:
            logger.error(f"Error reading storage file {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring storage file with unexpected content: {self.path}")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, items: Dict[str, str]) -> None:
        directory = os.path.dirname(self.path) or "."
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".storage-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._load()
        items[key] = value
        self._save(items)

    def remove_item(self, key: str) -> None:
        items = self._load()
        if key in items:
            del items[key]
            self._save(items)
