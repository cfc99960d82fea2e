"""
Abstract Storage Interface

DESIGN DECISION: Durable storage is a plain string key-value store.
This allows us to:
1. Back it with JSON files today and something else later
2. Use in-memory storage for tests and memory-only sessions
3. Keep snapshot encoding (PersistenceAdapter) separate from where bytes live

Implementations raise StorageError subclasses. They never decide what a
failure means for the user; PersistenceAdapter does that.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStorageInterface(ABC):
    """
    Abstract interface for durable snapshot storage.

    Keys are short identifiers such as 'expenseTrackerData'.
    Values are text (JSON documents or plain strings).
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under key.

        Returns:
            The stored text, or None if nothing is stored

        Raises:
            StorageUnavailableError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Store value under key, replacing any previous value.

        Raises:
            StorageUnavailableError: If the backend cannot be written
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """
        Remove key entirely. Deleting a missing key is not an error.

        Raises:
            StorageUnavailableError: If the backend cannot be written
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether reads and writes are currently possible."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageUnavailableError(StorageError):
    """Durable storage is absent or cannot be accessed."""
    pass


class CorruptSnapshotError(StorageError):
    """A stored snapshot exists but is not validly structured."""
    pass
