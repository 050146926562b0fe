"""
Bucket action endpoints.

Three actions, each one S3 request:
- POST /buckets                          create a bucket
- GET  /buckets/{bucket}/objects         list one page of objects
- PUT  /buckets/{bucket}/objects/{key}   write an object

Listing is paged the way the underlying API is: the response carries a
continuation token while more pages remain, and the caller sends it back
as continuation_token to get the next page. No token means done.

Errors from S3 are not handled here; the exception handlers in main
turn them into responses.
"""

import logging
from datetime import datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Path, Query, Request, status
from pydantic import BaseModel, ConfigDict, Field

from ...core.actions import create_bucket, put_object
from ...core.listing import PaginationCursor, list_objects_page
from ..dependencies import AuthenticatedUser, FetcherDep, SettingsDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class CreateBucketRequest(BaseModel):
    """Request to create a bucket."""
    bucket: str = Field(description="The name of the bucket to create", min_length=1)
    region: Optional[str] = Field(
        None,
        description="Region to create the bucket in (i.e. us-east-1). Defaults to the configured region.",
    )


class ActionResponse(BaseModel):
    """Result of an action with nothing to return."""
    result: str = Field("", description="Always empty on success")


class ObjectItem(BaseModel):
    """One object in a bucket listing."""
    model_config = ConfigDict(extra="allow")

    key: str = Field(description="Object key within the bucket")
    lastModified: datetime = Field(description="When the object was last written")
    etag: str = Field(description="Content fingerprint, without quotes")
    size: int = Field(description="Size in bytes")
    storageClass: str = Field(description="Storage tier")
    bucket: str = Field(description="Bucket the object was listed from")
    region: str = Field(description="Region of the bucket")


class Continuation(BaseModel):
    """Where the next page starts."""
    continuationToken: str


class ListObjectsResponse(BaseModel):
    """One page of a bucket listing."""
    result: list[ObjectItem] = Field(description="Objects on this page")
    continuation: Optional[Continuation] = Field(
        None,
        description="Present while more pages remain",
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=ActionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a bucket",
)
async def create_bucket_endpoint(
    request: CreateBucketRequest,
    api_key: AuthenticatedUser,
    fetcher: FetcherDep,
    settings: SettingsDep,
) -> ActionResponse:
    region = request.region or settings.aws_default_region
    result = await create_bucket(fetcher, request.bucket, region)
    return ActionResponse(result=result)


@router.get(
    "/{bucket}/objects",
    response_model=ListObjectsResponse,
    response_model_exclude_none=True,
    summary="List objects in a bucket",
    description="Returns one page. Pass the returned continuation token to get the next.",
)
async def list_objects_endpoint(
    bucket: str,
    api_key: AuthenticatedUser,
    fetcher: FetcherDep,
    settings: SettingsDep,
    region: Optional[str] = Query(None, description="Region the bucket is in (i.e. us-east-1)"),
    continuation_token: Optional[str] = Query(None, description="Token from the previous page"),
) -> ListObjectsResponse:
    cursor = None
    if continuation_token is not None:
        cursor = PaginationCursor(continuation_token=continuation_token)

    page = await list_objects_page(
        fetcher,
        bucket,
        region or settings.aws_default_region,
        cursor,
    )

    return ListObjectsResponse.model_validate(page.to_dict())


@router.put(
    "/{bucket}/objects/{key:path}",
    response_model=ActionResponse,
    status_code=status.HTTP_200_OK,
    summary="Add an object to a bucket",
    description="The raw request body becomes the object's contents.",
)
async def put_object_endpoint(
    bucket: str,
    key: Annotated[str, Path(min_length=1, description="Object key, may contain slashes")],
    http_request: Request,
    api_key: AuthenticatedUser,
    fetcher: FetcherDep,
    settings: SettingsDep,
    region: Optional[str] = Query(None, description="Region the bucket is in (i.e. us-east-1)"),
) -> ActionResponse:
    """
    Write the request body to bucket/key.

    The body is stored byte for byte; nothing is decoded or re-encoded.
    """
    contents = await http_request.body()

    logger.info(
        "Writing object",
        extra={"bucket": bucket, "key": key, "size_bytes": len(contents)}
    )

    result = await put_object(
        fetcher,
        bucket,
        region or settings.aws_default_region,
        key,
        contents,
    )
    return ActionResponse(result=result)
