"""
Shared test helpers.

RecordingFetcher stands in for the transport: it replays canned
responses and remembers every request, so core tests never touch
the network.
"""

from typing import Optional, Union

from s3pack.core.fetcher import FetchResponse

S3_NAMESPACE = "http://s3.amazonaws.com/doc/2006-03-01/"


class RecordingFetcher:
    """Replays responses (or raises errors) in order and records calls."""
    
    def __init__(self, responses: Optional[list[Union[FetchResponse, Exception]]] = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[tuple[str, str, Optional[bytes]]] = []
    
    async def fetch(self, method, url, body=None) -> FetchResponse:
        self.calls.append((method, url, body))
        
        if not self.responses:
            return FetchResponse(status=200)
        
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def listing_xml(
    items: list[dict[str, str]],
    truncated: bool = False,
    token: Optional[str] = None,
    key_count: Optional[int] = None,
    include_contents: bool = True,
) -> bytes:
    """Build a ListBucketResult document the way S3 formats it."""
    parts = [f'<?xml version="1.0" encoding="UTF-8"?>\n<ListBucketResult xmlns="{S3_NAMESPACE}">']
    parts.append("<Name>my-bucket</Name>")
    parts.append(f"<KeyCount>{len(items) if key_count is None else key_count}</KeyCount>")
    parts.append(f"<IsTruncated>{'true' if truncated else 'false'}</IsTruncated>")
    if token is not None:
        parts.append(f"<NextContinuationToken>{token}</NextContinuationToken>")
    
    if include_contents:
        for item in items:
            fields = "".join(f"<{name}>{value}</{name}>" for name, value in item.items())
            parts.append(f"<Contents>{fields}</Contents>")
    
    parts.append("</ListBucketResult>")
    return "".join(parts).encode("utf-8")


def make_item(key: str, etag: str = "&quot;abc123&quot;", size: int = 5) -> dict[str, str]:
    """One <Contents> entry. ETags arrive quoted, as S3 sends them."""
    return {
        "Key": key,
        "LastModified": "2024-03-01T12:30:00.000Z",
        "ETag": etag,
        "Size": str(size),
        "StorageClass": "STANDARD",
    }


def listing_response(items, **kwargs) -> FetchResponse:
    return FetchResponse(status=200, body=listing_xml(items, **kwargs))
