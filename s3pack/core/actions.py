"""
Bucket and object write actions.

Both are a single request with no response body worth keeping. They
return the empty string on success, matching what the listing-free
actions of the host contract return, and let service errors propagate.
"""

import logging

from .endpoints import bucket_url, object_url
from .fetcher import Body, Fetcher

logger = logging.getLogger(__name__)


async def create_bucket(fetcher: Fetcher, bucket: str, region: str) -> str:
    """
    Create a bucket in the given region.
    
    The request carries no body. An existing bucket comes back from the
    service as a 409 and is raised as ServiceRequestError.
    """
    await fetcher.fetch("PUT", bucket_url(bucket, region))
    
    logger.info(
        "Created bucket",
        extra={"bucket": bucket, "region": region}
    )
    
    return ""


async def put_object(
    fetcher: Fetcher,
    bucket: str,
    region: str,
    key: str,
    contents: Body,
) -> str:
    """
    Write contents to key, replacing any existing object.
    
    An empty key would address the bucket itself and turn the write into
    a CreateBucket, so it is rejected before any request is made.
    """
    if not key:
        raise ValueError("key must not be empty")
    
    body = contents.encode("utf-8") if isinstance(contents, str) else contents
    
    await fetcher.fetch("PUT", object_url(bucket, region, key), body=body)
    
    logger.info(
        "Wrote object",
        extra={
            "bucket": bucket,
            "region": region,
            "key": key,
            "size_bytes": len(body),
        }
    )
    
    return ""
