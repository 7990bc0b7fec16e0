"""
Request signer for the object store

Builds httpx requests against a bucket endpoint and signs them with
AWS Signature Version 4 using botocore's S3 signer.
"""

import logging
import re
import threading
from typing import Dict, Mapping, Optional
from urllib.parse import quote, urlsplit, urlunsplit

import httpx
from botocore.auth import S3SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials as BotoCredentials

from .credentials import AbstractCredentialSource, Credentials
from .exceptions import RequestConstructionError
from .utils import joinUrl, quoteObjectPath

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"

# RFC 7230 token characters
METHOD_PATTERN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")


def _encodeQuery(params: Mapping[str, str]) -> str:
    """Encode query parameters the way SigV4 canonicalizes them (RFC 3986, sorted)."""
    return "&".join(f"{quote(str(k), safe='-_.~')}={quote(str(v), safe='-_.~')}" for k, v in sorted(params.items()))


class RequestSigner:
    """
    Produces signed, ready-to-send requests for the object store.

    Credentials are fetched from the credential source on every call.
    The signing routine itself is guarded by a lock owned by this signer;
    the lock is held only while the signature is computed, never while
    a request is on the wire.

    Args:
        credentialSource: Where access key id and secret key come from
        region: Region used in the signature scope (default: "us-east-1")
        service: Service name used in the signature scope (default: "s3")
    """

    def __init__(
        self,
        credentialSource: AbstractCredentialSource,
        region: str = DEFAULT_REGION,
        service: str = "s3",
    ):
        self.credentialSource = credentialSource
        self.region = region
        self.service = service
        self._lock = threading.Lock()

    def checkCredentials(self) -> Credentials:
        """
        Ensure both credential values are available.

        Raises:
            StorageConfigError: If the access key id or secret key is missing
        """
        return self.credentialSource.getCredentials()

    def buildUrl(self, bucketEndpoint: str, objectPath: str, params: Optional[Mapping[str, str]] = None) -> str:
        """
        Build the absolute request URL for an object path.

        Raises:
            RequestConstructionError: If the endpoint is not an absolute http(s) URL
        """
        parts = urlsplit(joinUrl(bucketEndpoint, quoteObjectPath(objectPath)))
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise RequestConstructionError(f"Bucket endpoint must be an absolute http(s) URL: '{bucketEndpoint}'")

        path = parts.path or "/"
        query = _encodeQuery(params) if params else parts.query
        return urlunsplit((parts.scheme, parts.netloc, path, query, ""))

    def sign(
        self,
        method: str,
        bucketEndpoint: str,
        objectPath: str,
        body: Optional[bytes] = None,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Request:
        """
        Build and sign a request.

        Args:
            method: HTTP method, e.g. "GET" or "PUT"
            bucketEndpoint: Base URL of the bucket
            objectPath: Object path relative to the bucket ("" for the bucket root)
            body: Optional request body
            params: Optional query parameters
            headers: Optional extra headers, signed along with the request

        Returns:
            A fresh httpx.Request carrying the signature headers. It is meant
            to be sent exactly once.

        Raises:
            StorageConfigError: If credentials are missing
            RequestConstructionError: If the request cannot be built
        """
        credentials = self.checkCredentials()

        if not method or not METHOD_PATTERN.fullmatch(method):
            raise RequestConstructionError(f"Invalid HTTP method: '{method}'")
        method = method.upper()

        url = self.buildUrl(bucketEndpoint, objectPath, params)

        try:
            awsRequest = AWSRequest(method=method, url=url, data=body, headers=dict(headers or {}))
            auth = S3SigV4Auth(
                BotoCredentials(credentials.accessKeyId, credentials.secretAccessKey),
                self.service,
                self.region,
            )
            with self._lock:
                auth.add_auth(awsRequest)
        except ValueError as e:
            raise RequestConstructionError(f"Failed to sign {method} {url}: {e}", originalError=e) from e

        signedHeaders: Dict[str, str] = {k: v for k, v in awsRequest.headers.items()}
        logger.debug(f"Signed {method} request for {url}")

        try:
            return httpx.Request(method, url, headers=signedHeaders, content=body)
        except httpx.InvalidURL as e:
            raise RequestConstructionError(f"Invalid request URL '{url}': {e}", originalError=e) from e
