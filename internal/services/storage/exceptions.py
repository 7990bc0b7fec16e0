"""
Storage service exceptions

This module defines the exception hierarchy for the storage service.
All storage-related errors inherit from StorageError base class.
"""

from typing import Optional


class StorageError(Exception):
    """
    Base exception for all storage service errors.

    Catch this to handle any storage service error generically.
    """

    pass


class StorageKeyError(StorageError):
    """
    Exception raised when an object path is invalid.

    Raised by the filesystem backend when a path:
    - Is empty or only whitespace
    - Is absolute or escapes the root directory (e.g. via "..")
    """

    pass


class StorageConfigError(StorageError):
    """
    Exception raised when storage configuration is invalid.

    This exception is raised when:
    - Required credentials (access key id, secret key) are missing
    - Required configuration parameters are missing
    - Backend type is not recognized
    - The service is used before being configured

    It is always raised before any network call is attempted.
    """

    pass


class RequestConstructionError(StorageError):
    """
    Exception raised when a method, endpoint or path cannot form a valid request.

    This is a caller error and is never retried.
    """

    def __init__(self, message: str, originalError: Optional[Exception] = None):
        super().__init__(message)
        self.originalError = originalError


class StorageBackendError(StorageError):
    """
    Exception raised when a storage backend operation fails.

    Args:
        message: Description of the backend error
        originalError: The original exception that caused this error (optional)
    """

    def __init__(self, message: str, originalError: Optional[Exception] = None):
        """
        Initialize StorageBackendError with message and optional original error.

        Args:
            message: Description of the backend error
            originalError: The original exception that caused this error
        """
        super().__init__(message)
        self.originalError = originalError


class TransportError(StorageBackendError):
    """
    Network-level failure (connection refused, timeout, DNS failure).

    The underlying httpx exception is kept in ``originalError`` and is also
    chained as ``__cause__``.
    """

    pass


class RemoteStatusError(StorageBackendError):
    """
    The remote store answered with a non-success HTTP status.

    Attributes:
        statusCode: HTTP status code returned by the store
        body: Response body text, or None when it was deliberately not read
    """

    def __init__(self, message: str, statusCode: int, body: Optional[str] = None):
        super().__init__(message)
        self.statusCode = statusCode
        self.body = body


class RemoteWriteError(RemoteStatusError):
    """Non-200 answer to an object PUT. Carries the full response body."""

    pass


class RemoteReadError(RemoteStatusError):
    """
    Non-200 answer to an object GET.

    Only the status code is reported, the body may be arbitrarily large and
    is never read.
    """

    pass


class RemoteListError(RemoteStatusError):
    """Non-200 answer to a bucket listing. Carries the full response body."""

    pass


class ListingParseError(StorageBackendError):
    """The bucket listing body is not a well-formed listing document."""

    pass
