"""
Key-value storage backends.

The store needs nothing more than a device-local string key-value map:
- MemoryStorage for tests and embedding
- FileStorage: one JSON file per key in a directory

Writes replace the whole value in one step. FileStorage writes to a
temporary file and swaps it in, so a reader never sees a half-written value.
"""

from __future__ import annotations
import hashlib
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from ..errors import StorageCorrupt


class KeyValueStorage(ABC):
    """Minimal string key-value storage interface."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value for key, or None when absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. No error when absent."""


class MemoryStorage(KeyValueStorage):
    """Dictionary-backed storage."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class FileStorage(KeyValueStorage):
    """
    File-based storage.

    Usage:
        storage = FileStorage("~/.scorepad")
        storage.set("scorepad.sessions.v1", "[]")
    """

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def get(self, key: str) -> str | None:
        """Raises StorageCorrupt when the file is not valid UTF-8."""
        path = self._get_path(key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise StorageCorrupt(key, "invalid UTF-8") from e

    def set(self, key: str, value: str) -> None:
        path = self._get_path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        self._get_path(key).unlink(missing_ok=True)

    def _get_path(self, key: str) -> Path:
        """
        File path for a key.

        Keys are readable names like ``scorepad.sessions.v1``; anything
        outside a safe character set is replaced by a short hash.
        """
        if key and all(c.isalnum() or c in "._-" for c in key) and not key.startswith("."):
            return self.data_dir / f"{key}.json"
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]
        return self.data_dir / f"key_{digest}.json"
