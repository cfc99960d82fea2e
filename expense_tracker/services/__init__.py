"""Services package."""

from expense_tracker.services.persistence import PersistenceAdapter
from expense_tracker.services.storage import (
    CorruptSnapshotError,
    InMemoryStorage,
    JsonFileStorage,
    KeyValueStorageInterface,
    StorageError,
    StorageUnavailableError,
)

__all__ = [
    "PersistenceAdapter",
    # Storage services
    "CorruptSnapshotError",
    "InMemoryStorage",
    "JsonFileStorage",
    "KeyValueStorageInterface",
    "StorageError",
    "StorageUnavailableError",
]
