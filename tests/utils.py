"""
Test utility functions and helpers.

This module provides an in-memory fake object store served through
httpx.MockTransport, plus helpers for building listing documents.
"""

from typing import Dict, Iterable, List, Optional, Tuple

import httpx

S3_NAMESPACE = "http://s3.amazonaws.com/doc/2006-03-01/"
LAST_MODIFIED = "2014-03-01T17:50:30.000Z"
BUCKET_ENDPOINT = "https://mongotool.s3.amazonaws.com"


def buildListingXml(
    entries: Iterable[Tuple[str, int]],
    isTruncated: bool = False,
    namespace: Optional[str] = S3_NAMESPACE,
    lastModified: str = LAST_MODIFIED,
) -> bytes:
    """
    Build a ListBucketResult document.

    Args:
        entries: (key, size) pairs, in listing order
        isTruncated: Value of the IsTruncated element
        namespace: XML namespace of the root element, None for a bare document
        lastModified: LastModified value used for every entry
    """
    xmlns = f' xmlns="{namespace}"' if namespace else ""
    contents = "".join(
        f"<Contents><Key>{key}</Key><LastModified>{lastModified}</LastModified>"
        f"<ETag>&quot;d41d8cd98f00b204e9800998ecf8427e&quot;</ETag><Size>{size}</Size>"
        f"<StorageClass>STANDARD</StorageClass></Contents>"
        for key, size in entries
    )
    return (
        f'<?xml version="1.0" encoding="UTF-8"?>\n'
        f"<ListBucketResult{xmlns}><Name>mongotool</Name><Prefix></Prefix><MaxKeys>1000</MaxKeys>"
        f"<IsTruncated>{'true' if isTruncated else 'false'}</IsTruncated>{contents}</ListBucketResult>"
    ).encode("utf-8")


class FakeObjectStore:
    """
    In-memory S3 lookalike.

    Supports object PUT and GET, and bucket listing with a prefix. Like the
    real store it returns at most maxKeys entries per listing. Every request
    is recorded in ``requests``.

    Failures can be forced per method through ``failures`` (method -> (status, body))
    or for every request through ``transportError``.
    """

    def __init__(self, maxKeys: int = 1000):
        self.maxKeys = maxKeys
        self.objects: Dict[str, bytes] = {}
        self.requests: List[httpx.Request] = []
        self.failures: Dict[str, Tuple[int, bytes]] = {}
        self.transportError: Optional[Exception] = None

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.transportError is not None:
            raise self.transportError

        if request.method in self.failures:
            status, body = self.failures[request.method]
            return httpx.Response(status, content=body)

        key = request.url.path.lstrip("/")

        if request.method == "PUT":
            self.objects[key] = request.content
            return httpx.Response(200)

        if request.method == "GET":
            if not key:
                return self._list(request.url.params.get("prefix", ""))
            if key in self.objects:
                return httpx.Response(200, content=self.objects[key])
            return httpx.Response(404, content=b"<Error><Code>NoSuchKey</Code></Error>")

        return httpx.Response(405)

    def _list(self, prefix: str) -> httpx.Response:
        keys = sorted(k for k in self.objects if k.startswith(prefix))
        page = keys[: self.maxKeys]
        body = buildListingXml(
            [(k, len(self.objects[k])) for k in page],
            isTruncated=len(keys) > self.maxKeys,
        )
        return httpx.Response(200, content=body, headers={"Content-Type": "application/xml"})
