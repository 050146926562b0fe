"""
Regional S3 endpoint URLs.

Buckets are addressed virtual-hosted style:
    https://{bucket}.s3.{region}.amazonaws.com/

Bucket and region are not validated here. An invalid name produces an
unresolvable host or an error from the service, and that error is what
the caller sees.
"""

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, urlsplit, unquote

S3_HOST_SUFFIX = "amazonaws.com"
LIST_TYPE = "2"

# {bucket}.s3.{region}.amazonaws.com - bucket names may contain dots
_HOST_PATTERN = re.compile(r"^(?P<bucket>.+)\.s3\.(?P<region>[a-z0-9-]+)\.amazonaws\.com$")


@dataclass(frozen=True)
class BucketAddress:
    """A bucket, its region and an optional object key parsed from a URL."""
    bucket: str
    region: str
    key: str = ""


def _encode(value: str, safe: str = "") -> str:
    """Percent-encode per RFC 3986 (the form SigV4 canonicalizes to)."""
    return quote(value, safe="-_.~" + safe)


def bucket_url(bucket: str, region: str) -> str:
    """Base URL of a bucket, always ending in a slash."""
    return f"https://{bucket}.s3.{region}.{S3_HOST_SUFFIX}/"


def object_url(bucket: str, region: str, key: str) -> str:
    """URL of an object. Slashes in the key are kept as path separators."""
    return bucket_url(bucket, region) + _encode(key, safe="/")


def list_objects_url(
    bucket: str,
    region: str,
    continuation_token: Optional[str] = None,
) -> str:
    """
    URL of a ListObjectsV2 request.
    
    The continuation token is only included when present. Parameters are
    emitted in sorted order so the URL matches its canonical form.
    """
    params = {"list-type": LIST_TYPE}
    if continuation_token is not None:
        params["continuation-token"] = continuation_token
    
    query = "&".join(
        f"{_encode(name)}={_encode(value)}"
        for name, value in sorted(params.items())
    )
    return f"{bucket_url(bucket, region)}?{query}"


def parse_bucket_url(url: str) -> BucketAddress:
    """
    Recover bucket, region and key from a bucket or object URL.
    
    Raises ValueError if the host isn't a regional S3 bucket endpoint.
    """
    parts = urlsplit(url)
    match = _HOST_PATTERN.match(parts.hostname or "")
    if not match:
        raise ValueError(f"Not a regional S3 bucket URL: {url}")
    
    return BucketAddress(
        bucket=match.group("bucket"),
        region=match.group("region"),
        key=unquote(parts.path.lstrip("/")),
    )
