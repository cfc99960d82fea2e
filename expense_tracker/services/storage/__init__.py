"""
Storage Services Package

Provides the abstract key-value interface and concrete implementations.
JSON files are the durable backend; the in-memory backend covers tests and
memory-only sessions.
"""

from expense_tracker.services.storage.interface import (
    CorruptSnapshotError,
    KeyValueStorageInterface,
    StorageError,
    StorageUnavailableError,
)
from expense_tracker.services.storage.json_file import JsonFileStorage
from expense_tracker.services.storage.memory import InMemoryStorage

__all__ = [
    # Interfaces
    "KeyValueStorageInterface",
    # Exceptions
    "CorruptSnapshotError",
    "StorageError",
    "StorageUnavailableError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
]
