"""
S3 storage backend implementation

This module provides a storage backend for AWS S3 and S3-compatible object
stores. Requests are built and signed with RequestSigner and sent with httpx.
"""

import logging
from types import TracebackType
from typing import Optional, Type

import httpx

from ..exceptions import RemoteListError, RemoteReadError, TransportError
from ..listing import MAX_LIST_KEYS, parseBucketListing
from ..signer import RequestSigner
from ..stream import ResponseStream
from ..utils import normalizeWalkPrefix
from ..writer import BufferedObjectWriter
from .abstract import AbstractStorageBackend, WalkFunc

logger = logging.getLogger(__name__)


class S3StorageBackend(AbstractStorageBackend):
    """
    Object store backend speaking the S3 REST protocol.

    Features:
    - Writes are buffered in memory and uploaded as one PUT on close
    - Reads return the live response body, nothing is buffered
    - Listings issue a single request, so at most 1000 keys are visited
      (continuation is not followed, larger listings are truncated)
    - Keep-alive is disabled, every request opens a fresh connection

    Args:
        bucketEndpoint: Full URL of the bucket, e.g. "https://mongotool.s3.amazonaws.com"
        signer: Signer producing authenticated requests
        requestTimeout: Timeout in seconds for each request (default: None, no timeout)
        transport: Optional httpx transport, mostly useful for tests

    Example:
        >>> backend = S3StorageBackend(
        ...     "https://mongotool.s3.amazonaws.com",
        ...     RequestSigner(EnvCredentialSource()),
        ... )
        >>> with backend.save("backups/db.bson") as writer:
        ...     writer.write(b"data")
        >>> with backend.fetch("backups/db.bson") as stream:
        ...     stream.read()
        b'data'
    """

    def __init__(
        self,
        bucketEndpoint: str,
        signer: RequestSigner,
        requestTimeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.bucketEndpoint = bucketEndpoint
        self.signer = signer
        self.client = httpx.Client(
            timeout=requestTimeout,
            limits=httpx.Limits(max_keepalive_connections=0),
            transport=transport,
        )

    def close(self) -> None:
        """Release the HTTP client."""
        self.client.close()

    def __enter__(self) -> "S3StorageBackend":
        return self

    def __exit__(
        self,
        excType: Optional[Type[BaseException]],
        excValue: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        self.close()

    def save(self, path: str) -> BufferedObjectWriter:
        """
        Open an object for writing.

        No I/O happens until the returned writer is closed.

        Raises:
            StorageConfigError: If credentials are missing
        """
        self.signer.checkCredentials()
        return BufferedObjectWriter(self.bucketEndpoint, path, self.signer, self.client)

    def fetch(self, path: str) -> ResponseStream:
        """
        Open an object for reading.

        Returns:
            Live response body stream; close it to release the connection

        Raises:
            StorageConfigError: If credentials are missing
            RequestConstructionError: If the request cannot be built
            RemoteReadError: If the store answers with anything but 200
            TransportError: If the request fails at the network level
        """
        request = self.signer.sign("GET", self.bucketEndpoint, path)

        try:
            response = self.client.send(request, stream=True)
        except httpx.TransportError as e:
            logger.error(f"Failed to fetch object '{path}': {e}")
            raise TransportError(f"Failed to fetch object '{path}': {e}", originalError=e) from e

        if response.status_code != 200:
            # The body may be a huge object, never read it here
            response.close()
            logger.warning(f"Fetch of '{path}' failed with status {response.status_code}")
            raise RemoteReadError(
                f"Unexpected status code: {response.status_code}",
                statusCode=response.status_code,
            )

        logger.debug(f"Fetching object '{path}'")
        return ResponseStream(response)

    def walk(self, prefix: str, visit: WalkFunc) -> None:
        """
        Visit every key under a prefix.

        Only one listing request is issued, so at most MAX_LIST_KEYS keys are
        visited. Keys beyond that are skipped with a warning.

        Raises:
            StorageConfigError: If credentials are missing
            RemoteListError: If the store answers with anything but 200
            ListingParseError: If the listing body is malformed
            TransportError: If the request fails at the network level
        """
        self.signer.checkCredentials()
        normalizedPrefix = normalizeWalkPrefix(prefix)

        request = self.signer.sign("GET", self.bucketEndpoint, "", params={"prefix": normalizedPrefix})

        try:
            response = self.client.send(request)
        except httpx.TransportError as e:
            logger.error(f"Failed to list prefix '{normalizedPrefix}': {e}")
            raise TransportError(f"Failed to list prefix '{normalizedPrefix}': {e}", originalError=e) from e

        try:
            body = response.content
        finally:
            response.close()

        if response.status_code != 200:
            text = body.decode("utf-8", errors="replace")
            logger.error(f"Listing of '{normalizedPrefix}' failed with status {response.status_code}")
            raise RemoteListError(
                f"Unexpected status code: {response.status_code}\n{text}",
                statusCode=response.status_code,
                body=text,
            )

        listing = parseBucketListing(body)
        if listing.isTruncated:
            # TODO: follow NextContinuationToken/marker to list past the first page
            logger.warning(
                f"Listing of '{normalizedPrefix}' is truncated, only the first "
                f"{len(listing.entries)} keys (max {MAX_LIST_KEYS}) are visited"
            )

        for entry in listing.entries:
            visit(entry.key, None)

        logger.debug(f"Walked {len(listing.entries)} keys under '{normalizedPrefix}'")
