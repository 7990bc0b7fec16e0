"""
Filesystem storage backend implementation

This module provides a storage backend that maps object paths directly
to files under a root directory.
"""

import glob
import logging
import os
from pathlib import Path
from typing import BinaryIO, List

from ..exceptions import StorageBackendError
from ..utils import resolveObjectPath
from .abstract import AbstractStorageBackend, WalkFunc

logger = logging.getLogger(__name__)


class FSStorageBackend(AbstractStorageBackend):
    """
    Filesystem-based storage backend.

    Object paths are relative file paths under the root directory, nested
    directories included. There is no special file format.

    Args:
        root: Root directory for storage (will be created if needed)

    Raises:
        StorageBackendError: If root cannot be created or is not a directory

    Example:
        >>> backend = FSStorageBackend("/tmp/storage")
        >>> with backend.save("mongotooltest/object") as f:
        ...     f.write(b"foo")
        >>> [s.read() for s in backend.fetch("mongotooltest/object")]
        [b'foo']
    """

    def __init__(self, root: str):
        self.root = Path(root)

        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageBackendError(f"Failed to create root directory '{root}': {e}", originalError=e) from e

        if not self.root.is_dir():
            raise StorageBackendError(f"Root path '{root}' exists but is not a directory")

    def _relativeKey(self, path: Path) -> str:
        return path.relative_to(self.root.resolve()).as_posix()

    def save(self, path: str) -> BinaryIO:
        """
        Create or truncate a file for writing.

        Missing parent directories are created. Closing the returned handle
        flushes and closes the file.

        Raises:
            StorageKeyError: If the path is invalid
            StorageBackendError: If the file cannot be opened
        """
        filePath = resolveObjectPath(self.root, path)

        try:
            filePath.parent.mkdir(parents=True, exist_ok=True)
            handle = open(filePath, "wb")
        except OSError as e:
            raise StorageBackendError(f"Failed to open object '{path}' for writing: {e}", originalError=e) from e

        logger.debug(f"Opened {filePath} for writing")
        return handle

    def fetch(self, path: str) -> List[BinaryIO]:
        """
        Open every file matching a path.

        The path may be a glob pattern. Matches are opened in sorted order,
        directories are skipped. No match gives an empty list.

        Raises:
            StorageKeyError: If the path is invalid
            StorageBackendError: If a matching file cannot be opened
        """
        pattern = resolveObjectPath(self.root, path)
        if any(char in path for char in "*?["):
            matches = sorted(Path(p) for p in glob.glob(str(pattern)))
        else:
            matches = [pattern] if pattern.exists() else []

        streams: List[BinaryIO] = []
        try:
            for match in matches:
                if match.is_file():
                    streams.append(open(match, "rb"))
        except OSError as e:
            for stream in streams:
                stream.close()
            raise StorageBackendError(f"Failed to open object '{path}' for reading: {e}", originalError=e) from e

        logger.debug(f"Fetched {len(streams)} file(s) for '{path}'")
        return streams

    def walk(self, prefix: str, visit: WalkFunc) -> None:
        """
        Recursively visit every file under root/prefix.

        Keys are "/" separated paths relative to the root. The prefix names a
        directory: a missing prefix or one naming a file visits nothing.
        Subdirectories that cannot be read are reported through the error
        slot and skipped.
        """
        prefix = prefix.strip("/")
        start = resolveObjectPath(self.root, prefix) if prefix else self.root.resolve()
        if not start.is_dir():
            logger.debug(f"Nothing to walk under '{prefix}'")
            return

        def onError(error: OSError) -> None:
            failedPath = Path(error.filename) if error.filename else start
            logger.warning(f"Failed to read {failedPath}: {error}")
            visit(self._relativeKey(failedPath.resolve()), error)

        count = 0
        for dirPath, dirNames, fileNames in os.walk(start, onerror=onError):
            dirNames.sort()
            for fileName in sorted(fileNames):
                visit(self._relativeKey(Path(dirPath) / fileName), None)
                count += 1

        logger.debug(f"Walked {count} files under '{prefix}'")
