"""
In-Memory Storage

Used for tests and as the fallback when no durable storage can be
opened. Nothing survives the process.
"""

from typing import Optional

from expense_tracker.services.storage.interface import (
    KeyValueStorageInterface,
    StorageUnavailableError,
)


class InMemoryStorage(KeyValueStorageInterface):
    """
    Dict-backed key-value storage.

    Setting `available = False` makes every operation raise
    StorageUnavailableError, which lets tests simulate a broken disk.
    """

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
        self.available = True

    def _check(self) -> None:
        if not self.available:
            raise StorageUnavailableError("In-memory storage marked unavailable")

    def get(self, key: str) -> Optional[str]:
        self._check()
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._check()
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._check()
        self._data.pop(key, None)

    def is_available(self) -> bool:
        return self.available

    def keys(self) -> list[str]:
        return list(self._data)
