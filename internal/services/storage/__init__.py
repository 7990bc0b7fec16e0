"""
Storage service package

This package provides a unified interface for saving, fetching and walking
named objects across interchangeable backends (Filesystem, S3).
"""

from .backends.abstract import AbstractStorageBackend, WalkFunc
from .backends.filesystem import FSStorageBackend
from .backends.s3 import S3StorageBackend
from .credentials import Credentials, EnvCredentialSource, StaticCredentialSource
from .exceptions import (
    ListingParseError,
    RemoteListError,
    RemoteReadError,
    RemoteWriteError,
    RequestConstructionError,
    StorageBackendError,
    StorageConfigError,
    StorageError,
    StorageKeyError,
    TransportError,
)
from .listing import BucketListing, ListEntry, parseBucketListing
from .service import StorageService
from .signer import RequestSigner
from .stream import ResponseStream
from .writer import BufferedObjectWriter

__all__ = [
    # Service
    "StorageService",
    # Backends
    "AbstractStorageBackend",
    "FSStorageBackend",
    "S3StorageBackend",
    "WalkFunc",
    # Object store parts
    "BufferedObjectWriter",
    "ResponseStream",
    "RequestSigner",
    "Credentials",
    "EnvCredentialSource",
    "StaticCredentialSource",
    "BucketListing",
    "ListEntry",
    "parseBucketListing",
    # Errors
    "StorageError",
    "StorageKeyError",
    "StorageConfigError",
    "StorageBackendError",
    "RequestConstructionError",
    "TransportError",
    "RemoteWriteError",
    "RemoteReadError",
    "RemoteListError",
    "ListingParseError",
]
