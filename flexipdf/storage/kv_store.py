"""Key-value backends the persistence layer writes through."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional, Protocol

from diskcache import Cache

from ..config_loader import StorageConfig


class KeyValueStore(Protocol):
    """Process-wide keyed storage holding serialized string values."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...

    def close(self) -> None: ...


class DiskKeyValueStore:
    """Disk-backed store; each write is a single SQLite transaction."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self._cache: Optional[Cache] = None

    @property
    def cache(self) -> Cache:
        if self._cache is None:
            self.directory.mkdir(parents=True, exist_ok=True)
            self._cache = Cache(str(self.directory))
        return self._cache

    def get(self, key: str) -> str | None:
        return self.cache.get(key)

    def set(self, key: str, value: str) -> None:
        self.cache.set(key, value)

    def delete(self, key: str) -> None:
        self.cache.delete(key, retry=True)

    def keys(self) -> list[str]:
        return sorted(str(key) for key in self.cache.iterkeys())

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()
            self._cache = None


class MemoryKeyValueStore:
    """In-process store for ephemeral sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._values)

    def close(self) -> None:
        return None


def create_key_value_store(config: StorageConfig, project_root: Path | None = None) -> KeyValueStore:
    backend = config.backend.lower()
    if backend == "memory":
        return MemoryKeyValueStore()
    if backend == "disk":
        directory = Path(config.directory)
        if not directory.is_absolute() and project_root is not None:
            directory = (project_root / directory).resolve()
        return DiskKeyValueStore(directory)
    raise ValueError(f"Unknown storage backend: {config.backend}")
