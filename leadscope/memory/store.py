"""Key-value memory - where the search cache and daily snapshots live."""

import json
from pathlib import Path
from typing import Optional, Protocol

from config.settings import settings
from leadscope.log import get_logger

logger = get_logger(__name__)


class KeyValueStore(Protocol):
    """String-to-string storage. Callers namespace their own keys."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """In-process store. Lives as long as the session that owns it."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class FileStore:
    """
    Durable store backed by a single JSON document.

    The whole document is rewritten on every mutation; it is meant for
    a handful of small entries (one cache blob, a month of snapshots).
    An unreadable file is treated as empty.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.store_path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._data = self._load()

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()

    def keys(self) -> list[str]:
        return list(self._data)

    def get_stats(self) -> dict:
        """Store statistics."""
        return {
            "path": str(self.path),
            "keys": len(self._data),
            "snapshots": sum(1 for k in self._data if k.startswith("snapshot_")),
        }

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read store %s, starting empty: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Store %s is not a JSON object, starting empty", self.path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _flush(self) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._data, indent=2), encoding="utf-8")
        tmp.replace(self.path)
