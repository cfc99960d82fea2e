"""
JSON File Storage Implementation

Each key is stored as its own file, <data_dir>/<key>.json, so a damaged
expense snapshot cannot take the filter or view snapshot down with it.

Writes are atomic: content goes to a temporary file in the same directory
and is moved into place with os.replace. Transient OS errors are retried
with exponential backoff before being reported as StorageUnavailableError.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Callable, Optional, TypeVar

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from expense_tracker.config import get_settings
from expense_tracker.config.settings import STORAGE_KEY_PATTERN
from expense_tracker.services.storage.interface import (
    CorruptSnapshotError,
    KeyValueStorageInterface,
    StorageError,
    StorageUnavailableError,
)


T = TypeVar("T")

KEY_PATTERN = re.compile(STORAGE_KEY_PATTERN)


class JsonFileStorage(KeyValueStorageInterface):
    """
    Directory-backed key-value storage.

    The directory is created on construction; if that fails the storage
    is unusable and StorageUnavailableError is raised immediately.
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        retry_attempts: Optional[int] = None,
        retry_wait_multiplier: Optional[float] = None,
    ):
        settings = get_settings().storage
        self._dir = Path(data_dir) if data_dir is not None else settings.data_dir
        attempts = retry_attempts if retry_attempts is not None else settings.retry_attempts
        multiplier = (
            retry_wait_multiplier
            if retry_wait_multiplier is not None
            else settings.retry_wait_multiplier
        )
        self._retrying = Retrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=multiplier, min=0, max=5),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )

        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(
                f"Cannot create data directory {self._dir}: {e}"
            ) from e

    @property
    def data_dir(self) -> Path:
        return self._dir

    def path_for(self, key: str) -> Path:
        if not KEY_PATTERN.fullmatch(key):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        return self._run("read", path, lambda: _read_text(path))

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        self._run("write", path, lambda: _atomic_write(path, value))

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        self._run("delete", path, lambda: path.unlink(missing_ok=True))

    def is_available(self) -> bool:
        return self._dir.is_dir() and os.access(self._dir, os.R_OK | os.W_OK)

    def _run(self, operation: str, path: Path, fn: Callable[[], T]) -> T:
        try:
            return self._retrying(fn)
        except UnicodeDecodeError as e:
            raise CorruptSnapshotError(f"{path} is not valid UTF-8: {e}") from e
        except OSError as e:
            raise StorageUnavailableError(
                f"Failed to {operation} {path}: {e}"
            ) from e


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


def _atomic_write(path: Path, content: str) -> None:
    fd, temp_name = tempfile.mkstemp(
        prefix=f"{path.name}-",
        suffix=".tmp",
        dir=path.parent,
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise
