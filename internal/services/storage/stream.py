"""
Live response body stream

Exposes a streamed httpx response as a read-only binary file object.
Nothing is buffered beyond the chunk currently being consumed.
"""

import io
from typing import Iterator, Optional

import httpx

from .exceptions import TransportError


class ResponseStream(io.RawIOBase):
    """
    Read-only file object over a live HTTP response body.

    The caller owns the stream and must close it to release the
    connection. Closing is safe to repeat.

    Args:
        response: A response obtained with ``client.send(request, stream=True)``
    """

    def __init__(self, response: httpx.Response):
        super().__init__()
        self.response = response
        self._chunks: Iterator[bytes] = response.iter_bytes()
        self._pending = b""

    def readable(self) -> bool:
        return True

    def _nextChunk(self) -> Optional[bytes]:
        try:
            return next(self._chunks)
        except StopIteration:
            return None
        except httpx.TransportError as e:
            raise TransportError(f"Failed to read response body from {self.response.url}: {e}", originalError=e) from e

    def readinto(self, buffer) -> int:  # type: ignore[override]
        if self.closed:
            raise ValueError("I/O operation on closed stream")

        while not self._pending:
            chunk = self._nextChunk()
            if chunk is None:
                return 0
            self._pending = chunk

        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size

    def close(self) -> None:
        if not self.closed:
            self.response.close()
        super().close()
