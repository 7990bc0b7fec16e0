"""
Buffered object writer

Accumulates everything written to it in memory and uploads the whole
payload as one signed PUT when closed. Objects are held entirely in
memory until then.
"""

import logging
from types import TracebackType
from typing import Optional, Type

import httpx

from .exceptions import RemoteWriteError, TransportError
from .signer import RequestSigner

logger = logging.getLogger(__name__)


class BufferedObjectWriter:
    """
    Write-only sink for one object in the object store.

    Nothing is sent until close(). The first close() uploads the buffered
    bytes, every later close() returns immediately. Writing after close is
    not guarded.

    Used as a context manager, a normal exit closes (and uploads) the
    writer, an exit by exception discards the buffer without uploading.

    Args:
        bucketEndpoint: Base URL of the bucket
        path: Destination object path
        signer: Signer producing the PUT request
        client: HTTP client used to send it
    """

    def __init__(self, bucketEndpoint: str, path: str, signer: RequestSigner, client: httpx.Client):
        self.bucketEndpoint = bucketEndpoint
        self.path = path
        self.signer = signer
        self.client = client
        self._buffer = bytearray()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def writable(self) -> bool:
        return True

    def write(self, data: bytes) -> int:
        self._buffer += data
        return len(data)

    def getvalue(self) -> bytes:
        """Return the bytes buffered so far."""
        return bytes(self._buffer)

    def discard(self) -> None:
        """Drop the buffered payload and close without uploading."""
        self._closed = True
        self._buffer = bytearray()

    def close(self) -> None:
        """
        Upload the buffered payload with a single PUT.

        Raises:
            StorageConfigError: If credentials are missing
            RequestConstructionError: If the request cannot be built
            RemoteWriteError: If the store answers with anything but 200
            TransportError: If the request fails at the network level
        """
        if self._closed:
            return
        self._closed = True

        payload = bytes(self._buffer)
        self._buffer = bytearray()

        request = self.signer.sign(
            "PUT",
            self.bucketEndpoint,
            self.path,
            body=payload,
            headers={"Content-Type": "application/octet-stream"},
        )

        logger.debug(f"Uploading {len(payload)} bytes to {request.url}")
        try:
            response = self.client.send(request)
        except httpx.TransportError as e:
            logger.error(f"Failed to upload object '{self.path}': {e}")
            raise TransportError(f"Failed to upload object '{self.path}': {e}", originalError=e) from e

        try:
            if response.status_code != 200:
                body = response.text
                logger.error(f"Upload of '{self.path}' failed with status {response.status_code}")
                raise RemoteWriteError(
                    f"Expected 200 OK, got: ({response.status_code})\n{body}",
                    statusCode=response.status_code,
                    body=body,
                )
        finally:
            response.close()

        logger.debug(f"Uploaded object '{self.path}'")

    def __enter__(self) -> "BufferedObjectWriter":
        return self

    def __exit__(
        self,
        excType: Optional[Type[BaseException]],
        excValue: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        if excType is not None:
            self.discard()
            return
        self.close()
