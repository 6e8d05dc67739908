"""Key-value persistence for batch state and the rendered-image cache."""

import hashlib
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .config import settings
from .utils import get_logger

logger = get_logger(__name__)


class KeyValueStore(ABC):
    """Overwrite-by-key store of strings (localStorage-style).

    Callers serialize structured values themselves, so any string-only
    backend can be swapped in.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored string, or None if the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete ``key``; removing a missing key is not an error."""
        pass


def _require_str(value: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"Stored values must be strings, got {type(value).__name__}")
    return value


class InMemoryStore(KeyValueStore):
    """Dict-backed store."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = _require_str(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


class JsonFileStore(KeyValueStore):
    """One file per key in a directory.

    Keys are arbitrary strings (``rendered::Master::42``), so file names
    are derived from an md5 of the key. Values are the JSON documents
    callers hand in, written as-is.
    """

    def __init__(self, directory: Optional[Path] = None):
        self.directory = directory or settings.state_dir
        self.directory.mkdir(parents=True, exist_ok=True)

    def _get_path(self, key: str) -> Path:
        """Get the file path for a key."""
        key_hash = hashlib.md5(key.encode()).hexdigest()[:16]
        return self.directory / f"kv_{key_hash}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._get_path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read stored value for {key}: {e}")
            return None

    def set(self, key: str, value: str) -> None:
        path = self._get_path(key)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(_require_str(value), encoding="utf-8")
        tmp_path.replace(path)

    def remove(self, key: str) -> None:
        self._get_path(key).unlink(missing_ok=True)

    def clear(self) -> None:
        """Remove every stored key."""
        logger.info(f"Clearing store at {self.directory}")
        for path in self.directory.glob("kv_*.json"):
            try:
                path.unlink()
            except OSError as e:
                logger.warning(f"Failed to delete {path}: {e}")
