"""
Paginated object listing (ListObjectsV2).

list_objects_page is the unit of work: one request, one page, one cursor
out. It keeps no state between calls. Whoever holds the cursor decides
whether and when to ask for the next page.

iter_pages / iter_objects are that "whoever" for callers that just want
everything: they keep re-invoking list_objects_page with the returned
cursor until it comes back empty. They are lazy (one fetch per page,
only when the consumer advances) and can start from any cursor, so an
interrupted listing resumes where it stopped.
"""

import logging
from datetime import datetime
from typing import Any, AsyncIterator, Optional

from ..endpoints import list_objects_url
from ..errors import MalformedResponseError
from ..fetcher import Fetcher
from ..wire import parse_bool, parse_list_bucket_result
from .models import ListPage, ObjectRecord, PaginationCursor

logger = logging.getLogger(__name__)

# Item fields that map onto (or would shadow) ObjectRecord attributes,
# compared case-insensitively. Everything else on an item
# is carried through in ObjectRecord.extra.
_RECORD_FIELDS = {"key", "lastmodified", "etag", "size", "storageclass", "bucket", "region"}
_REQUIRED_FIELDS = ("Key", "LastModified", "ETag", "Size")

# S3 reports the class on every item, S3-compatible stores sometimes don't
DEFAULT_STORAGE_CLASS = "STANDARD"


def strip_etag(etag: str) -> str:
    """S3 wraps ETags in literal double quotes. Remove all of them."""
    return etag.replace('"', "")


def _parse_timestamp(value: str) -> datetime:
    # fromisoformat only accepts a trailing 'Z' from Python 3.11
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def normalize_item(item: Any, bucket: str, region: str) -> ObjectRecord:
    """
    Turn one <Contents> entry into an ObjectRecord.

    Raises MalformedResponseError if a required field is missing or
    unparseable.
    """
    if not isinstance(item, dict):
        raise MalformedResponseError("Contents entry has no fields")

    missing = [name for name in _REQUIRED_FIELDS if name not in item]
    if missing:
        raise MalformedResponseError(
            f"Contents entry is missing {', '.join(missing)}"
        )

    try:
        size = int(item["Size"])
        last_modified = _parse_timestamp(item["LastModified"])
    except (TypeError, ValueError) as e:
        raise MalformedResponseError(
            f"Unparseable field on object {item['Key']!r}: {e}"
        ) from e

    return ObjectRecord(
        key=item["Key"],
        last_modified=last_modified,
        etag=strip_etag(item["ETag"]),
        size=size,
        storage_class=item.get("StorageClass") or DEFAULT_STORAGE_CLASS,
        bucket=bucket,
        region=region,
        extra={
            name: value
            for name, value in item.items()
            if name.lower() not in _RECORD_FIELDS
        },
    )


def _next_cursor(data: dict[str, Any]) -> Optional[PaginationCursor]:
    if not parse_bool(data.get("IsTruncated", "false")):
        return None

    token = data.get("NextContinuationToken")
    if not token:
        raise MalformedResponseError(
            "Listing is truncated but has no NextContinuationToken"
        )
    return PaginationCursor(continuation_token=token)


async def list_objects_page(
    fetcher: Fetcher,
    bucket: str,
    region: str,
    cursor: Optional[PaginationCursor] = None,
) -> ListPage:
    """
    Fetch one page of a bucket's object listing.

    Args:
        fetcher: Transport used for the single GET request
        bucket: Bucket to list
        region: Region hosting the bucket
        cursor: Cursor returned by the previous page, None for the first

    Returns:
        The page's records and the cursor for the next page (None when
        the listing is complete)

    Raises:
        ServiceRequestError: the request failed (from the fetcher)
        MalformedResponseError: the body isn't a usable ListBucketResult
    """
    token = cursor.continuation_token if cursor is not None else None
    url = list_objects_url(bucket, region, token)

    response = await fetcher.fetch("GET", url)
    data = parse_list_bucket_result(response.body)

    if "Contents" in data:
        items = data["Contents"]
    elif str(data.get("KeyCount", "")).strip() == "0":
        # S3 omits <Contents> entirely when a page has no keys
        items = []
    else:
        raise MalformedResponseError("Listing response has no Contents")

    records = [normalize_item(item, bucket, region) for item in items]
    next_cursor = _next_cursor(data)

    logger.debug(
        "Fetched listing page",
        extra={
            "bucket": bucket,
            "region": region,
            "count": len(records),
            "truncated": next_cursor is not None,
        }
    )

    return ListPage(records=records, next_cursor=next_cursor)


async def iter_pages(
    fetcher: Fetcher,
    bucket: str,
    region: str,
    cursor: Optional[PaginationCursor] = None,
) -> AsyncIterator[ListPage]:
    """Yield pages until the listing is complete, starting at cursor."""
    while True:
        page = await list_objects_page(fetcher, bucket, region, cursor)
        yield page

        if page.next_cursor is None:
            return
        cursor = page.next_cursor


async def iter_objects(
    fetcher: Fetcher,
    bucket: str,
    region: str,
    cursor: Optional[PaginationCursor] = None,
) -> AsyncIterator[ObjectRecord]:
    """
    Yield every object in the bucket, fetching one page per advance.

    Service ordering is preserved; nothing is buffered beyond the
    current page.
    """
    async for page in iter_pages(fetcher, bucket, region, cursor):
        for record in page.records:
            yield record
