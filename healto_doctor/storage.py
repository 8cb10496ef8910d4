"""Key-value storage backends for persisted client state.

Handles:
- One value per key, stored as a string
- Whole-value replacement on every write
- Removal that succeeds when the key is already gone
"""
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol, Union


class KeyValueStorage(Protocol):
    """Minimal string key-value store (device-local persistence)."""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class MemoryStorage:
    """Dict-backed storage for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self):
        return sorted(self._items)


class JsonFileStorage:
    """Stores each key in its own file inside a directory."""

    def __init__(self, directory: Union[str, Path]):
        """
        Initialize file storage.

        Args:
            directory: Directory for storage files (created if missing)
        """
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _get_path(self, key: str) -> Path:
        """Get file path for key."""
        # Sanitize key to prevent path traversal
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self.directory / f"{safe_key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._get_path(key)

        if not path.exists():
            return None

        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def set_item(self, key: str, value: str) -> None:
        """
        Replace the stored value for key.

        Writes to a temp file in the same directory and renames it over the
        target, so readers see either the old or the new value.
        """
        path = self._get_path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def remove_item(self, key: str) -> None:
        self._get_path(key).unlink(missing_ok=True)
