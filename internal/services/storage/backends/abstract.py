"""
Abstract storage backend interface

This module defines the abstract base class that all storage backends must implement.
Every backend offers the same three capabilities: save, fetch and walk.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

# visit(key, error) - the error slot is None unless the backend could not read an entry
WalkFunc = Callable[[str, Optional[Exception]], None]


class AbstractStorageBackend(ABC):
    """
    Abstract base class for storage backends.

    Implementations are flat classes holding only their own configuration
    (a root directory, or a bucket endpoint and HTTP client). Errors are
    raised to the caller unchanged and never retried.
    """

    @abstractmethod
    def save(self, path: str) -> Any:
        """
        Open an object for writing.

        Args:
            path: Object path relative to the backend root

        Returns:
            A writable binary file-like object. The object is stored when the
            returned writer is closed.

        Raises:
            StorageConfigError: If the backend is missing required configuration
            StorageBackendError: If the object cannot be opened or stored
        """
        pass

    @abstractmethod
    def fetch(self, path: str) -> Any:
        """
        Open an object for reading.

        Args:
            path: Object path relative to the backend root

        Returns:
            Readable binary stream(s) for the object. The caller owns them
            and must close them.

        Raises:
            StorageConfigError: If the backend is missing required configuration
            StorageBackendError: If the object cannot be read
        """
        pass

    @abstractmethod
    def walk(self, prefix: str, visit: WalkFunc) -> None:
        """
        Enumerate object keys under a prefix.

        Args:
            prefix: Prefix (directory) to enumerate
            visit: Called once per entry with the key and a per-entry error (or None)

        Raises:
            StorageConfigError: If the backend is missing required configuration
            StorageBackendError: If the listing fails
        """
        pass
