"""
Storage service utility functions

This module provides path helpers shared by the storage backends:
URL joining for the object store, walk prefix normalization and
safe resolution of relative paths under a filesystem root.
"""

from pathlib import Path
from urllib.parse import quote

from .exceptions import StorageKeyError


def joinUrl(bucketEndpoint: str, path: str) -> str:
    """
    Join a bucket endpoint and an object path into an absolute URL.

    A single separating slash is inserted only when neither side already
    provides one. Existing slashes are never removed.

    Args:
        bucketEndpoint: Base URL of the bucket, e.g. "https://mongotool.s3.amazonaws.com"
        path: Object path relative to the bucket

    Returns:
        The concatenated URL

    Examples:
        >>> joinUrl("https://bucket.example.com", "dir/object")
        'https://bucket.example.com/dir/object'
        >>> joinUrl("https://bucket.example.com/", "dir/object")
        'https://bucket.example.com/dir/object'
        >>> joinUrl("https://bucket.example.com", "/dir/object")
        'https://bucket.example.com/dir/object'
    """
    if path and not path.startswith("/") and not bucketEndpoint.endswith("/"):
        path = "/" + path
    return bucketEndpoint + path


def quoteObjectPath(path: str) -> str:
    """Percent-encode an object path the way S3 expects it in a request URI."""
    return quote(path, safe="/~")


def normalizeWalkPrefix(prefix: str) -> str:
    """
    Normalize a listing prefix.

    Leading slashes are stripped and the result ends with exactly one
    trailing slash. An empty prefix stays empty so the whole bucket is listed.

    Examples:
        >>> normalizeWalkPrefix("/backups/db")
        'backups/db/'
        >>> normalizeWalkPrefix("backups//")
        'backups/'
        >>> normalizeWalkPrefix("///")
        ''
    """
    prefix = prefix.lstrip("/").rstrip("/")
    if not prefix:
        return ""
    return prefix + "/"


def resolveObjectPath(root: Path, relativePath: str) -> Path:
    """
    Resolve an object path under a filesystem root.

    Args:
        root: Root directory of the filesystem backend
        relativePath: Object path relative to the root, "/" separated

    Returns:
        Absolute path of the object inside root

    Raises:
        StorageKeyError: If the path is empty, absolute or escapes the root
    """
    if not relativePath or not relativePath.strip():
        raise StorageKeyError("Object path cannot be empty or only whitespace")

    if Path(relativePath).is_absolute():
        raise StorageKeyError(f"Object path must be relative: '{relativePath}'")

    resolvedRoot = root.resolve()
    resolved = (resolvedRoot / relativePath).resolve()
    if resolved != resolvedRoot and resolvedRoot not in resolved.parents:
        raise StorageKeyError(f"Object path escapes storage root: '{relativePath}'")
    if resolved == resolvedRoot:
        raise StorageKeyError(f"Object path points at storage root: '{relativePath}'")

    return resolved
