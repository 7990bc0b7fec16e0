"""
Bucket listing parser

Parses the XML document returned by an object store listing request
(``ListBucketResult``) into ListEntry values. Element names are matched
without regard to the XML namespace, so both namespaced S3 responses and
bare documents from S3-compatible stores are accepted.

Example listing::

    <ListBucketResult xmlns="http://s3.amazonaws.com/doc/2006-03-01/">
        <Name>mongotool</Name>
        <Prefix>backups/</Prefix>
        <MaxKeys>1000</MaxKeys>
        <IsTruncated>false</IsTruncated>
        <Contents>
            <Key>backups/db.bson</Key>
            <LastModified>2014-03-01T17:50:30.000Z</LastModified>
            <Size>434234</Size>
        </Contents>
    </ListBucketResult>
"""

import datetime
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import List, Optional

from .exceptions import ListingParseError

logger = logging.getLogger(__name__)

# The store never returns more keys than this in a single listing response
MAX_LIST_KEYS = 1000


@dataclass(frozen=True)
class ListEntry:
    key: str
    lastModified: Optional[datetime.datetime]
    size: int


@dataclass
class BucketListing:
    entries: List[ListEntry] = field(default_factory=list)
    isTruncated: bool = False


def _localName(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _childText(element: ET.Element, name: str) -> Optional[str]:
    for child in element:
        if _localName(child.tag) == name:
            return child.text or ""
    return None


def parseTimestamp(value: str) -> datetime.datetime:
    """
    Parse an ISO 8601 timestamp as used in listings, e.g. "2014-03-01T17:50:30.000Z".

    Raises:
        ValueError: If the value is not a valid timestamp
    """
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.datetime.fromisoformat(value)


def _parseEntry(element: ET.Element) -> ListEntry:
    key = _childText(element, "Key")
    if key is None:
        raise ListingParseError("Listing entry without Key element")

    lastModified: Optional[datetime.datetime] = None
    lastModifiedText = _childText(element, "LastModified")
    if lastModifiedText:
        try:
            lastModified = parseTimestamp(lastModifiedText)
        except ValueError as e:
            raise ListingParseError(
                f"Invalid LastModified '{lastModifiedText}' for key '{key}'", originalError=e
            ) from e

    size = 0
    sizeText = _childText(element, "Size")
    if sizeText:
        try:
            size = int(sizeText.strip())
        except ValueError as e:
            raise ListingParseError(f"Invalid Size '{sizeText}' for key '{key}'", originalError=e) from e

    return ListEntry(key=key, lastModified=lastModified, size=size)


def parseBucketListing(body: bytes) -> BucketListing:
    """
    Parse a listing response body.

    Entries are returned in document order, which is the order the store
    returned them in.

    Args:
        body: Raw XML response body

    Returns:
        BucketListing with the parsed entries and the IsTruncated flag

    Raises:
        ListingParseError: If the body is not well-formed XML or an entry is malformed
    """
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise ListingParseError(f"Malformed listing XML: {e}", originalError=e) from e

    listing = BucketListing()
    for child in root:
        name = _localName(child.tag)
        if name == "Contents":
            listing.entries.append(_parseEntry(child))
        elif name == "IsTruncated":
            listing.isTruncated = (child.text or "").strip().lower() == "true"

    logger.debug(f"Parsed listing with {len(listing.entries)} entries, truncated: {listing.isTruncated}")
    return listing
