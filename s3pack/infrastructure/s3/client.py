"""
Fetchers for the S3 REST API.

HttpFetcher sends SigV4-signed requests with httpx. MockS3Fetcher keeps
buckets in memory and answers with the same XML S3 would, enabling API
testing without an AWS account.

Both raise ServiceRequestError for anything that isn't a 2xx, so the
core actions only ever see successful responses.
"""

import base64
import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import parse_qs, urlsplit
from xml.etree.ElementTree import Element, SubElement, tostring

import httpx

from ...core.endpoints import parse_bucket_url
from ...core.errors import ServiceRequestError
from ...core.fetcher import Body, Fetcher, FetchResponse
from ...core.wire import parse_error
from .signing import AwsCredentials, AwsSigV4Auth

logger = logging.getLogger(__name__)


@dataclass
class S3Config:
    """
    Configuration for talking to S3.

    Region isn't here: every action names the region of its bucket, and
    the signer reads it back from the request host.
    """
    access_key_id: str
    secret_access_key: str
    session_token: Optional[str] = None
    default_region: str = "us-east-1"
    timeout_seconds: float = 30.0

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")


class HttpFetcher:
    """
    Fetcher backed by an httpx.AsyncClient.

    Use as an async context manager so the connection pool is closed:

        async with HttpFetcher(auth=AwsSigV4Auth(credentials)) as fetcher:
            await create_bucket(fetcher, "my-bucket", "us-east-1")

    Requests are not retried.
    """

    def __init__(
        self,
        auth: Optional[httpx.Auth] = None,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            auth=auth,
            timeout=timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "HttpFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch(
        self,
        method: str,
        url: str,
        body: Optional[Body] = None,
    ) -> FetchResponse:
        """Send one request. Raises ServiceRequestError unless it's a 2xx."""
        content = body.encode("utf-8") if isinstance(body, str) else body

        try:
            response = await self._client.request(method, url, content=content)
        except httpx.TransportError as e:
            logger.error(
                "S3 request failed",
                extra={"method": method, "url": url, "error": str(e)}
            )
            raise ServiceRequestError(
                f"Request failed: {e}",
                method=method,
                url=url,
            ) from e

        if not response.is_success:
            code, message = parse_error(response.content)
            logger.error(
                "S3 returned an error",
                extra={
                    "method": method,
                    "url": url,
                    "status": response.status_code,
                    "code": code,
                }
            )
            raise ServiceRequestError(
                message or response.reason_phrase or "Request failed",
                status=response.status_code,
                code=code,
                body=response.content,
                method=method,
                url=url,
            )

        return FetchResponse(
            status=response.status_code,
            body=response.content,
            headers=dict(response.headers),
        )


# ---------------------------------------------------------------------------
# Mock S3 for Local Development
# ---------------------------------------------------------------------------

S3_NAMESPACE = "http://s3.amazonaws.com/doc/2006-03-01/"


@dataclass
class _StoredObject:
    data: bytes
    last_modified: datetime

    @property
    def etag(self) -> str:
        return f'"{hashlib.md5(self.data).hexdigest()}"'


@dataclass
class _Bucket:
    region: str
    objects: dict[str, _StoredObject]


class MockS3Fetcher:
    """
    In-memory S3 for local development.

    Understands exactly the three requests the core issues (create
    bucket, put object, ListObjectsV2) and answers them the way S3 does,
    including error documents and paged listings of page_size keys.

    Continuation tokens are the base64 of the last key on the page, so
    they stay valid across object writes like S3's do.

    Not suitable for production, but perfect for development and testing.
    """

    def __init__(self, page_size: int = 1000) -> None:
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self._page_size = page_size
        self._buckets: dict[str, _Bucket] = {}
        self.requests: list[tuple[str, str]] = []
        logger.info("Initialized mock S3 fetcher (in-memory)")

    async def __aenter__(self) -> "MockS3Fetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        # Nothing to release; buckets outlive the context on purpose so a
        # shared mock keeps its data across requests.
        pass

    async def fetch(
        self,
        method: str,
        url: str,
        body: Optional[Body] = None,
    ) -> FetchResponse:
        self.requests.append((method, url))

        try:
            address = parse_bucket_url(url)
        except ValueError:
            raise self._error(method, url, 400, "InvalidURI", "Couldn't parse the specified URI.") from None

        if method == "PUT" and not address.key:
            return self._create_bucket(method, url, address.bucket, address.region)

        bucket = self._get_bucket(method, url, address.bucket, address.region)

        if method == "PUT":
            data = body.encode("utf-8") if isinstance(body, str) else (body or b"")
            bucket.objects[address.key] = _StoredObject(
                data=data,
                last_modified=datetime.now(timezone.utc),
            )
            return FetchResponse(status=200)

        if method == "GET" and not address.key:
            return self._list_objects(method, url, address.bucket, bucket)

        raise self._error(
            method, url, 405, "MethodNotAllowed",
            "The specified method is not allowed against this resource.",
        )

    def _error(self, method: str, url: str, status: int, code: str, message: str) -> ServiceRequestError:
        root = Element("Error")
        SubElement(root, "Code").text = code
        SubElement(root, "Message").text = message
        return ServiceRequestError(
            message,
            status=status,
            code=code,
            body=tostring(root, encoding="utf-8"),
            method=method,
            url=url,
        )

    def _create_bucket(self, method: str, url: str, name: str, region: str) -> FetchResponse:
        if name in self._buckets:
            raise self._error(
                method, url, 409, "BucketAlreadyOwnedByYou",
                "Your previous request to create the named bucket succeeded and you already own it.",
            )

        self._buckets[name] = _Bucket(region=region, objects={})
        logger.debug("Created bucket in mock S3", extra={"bucket": name, "region": region})
        return FetchResponse(status=200)

    def _get_bucket(self, method: str, url: str, name: str, region: str) -> _Bucket:
        bucket = self._buckets.get(name)
        if bucket is None:
            raise self._error(method, url, 404, "NoSuchBucket", "The specified bucket does not exist")
        if bucket.region != region:
            raise self._error(
                method, url, 301, "PermanentRedirect",
                "The bucket you are attempting to access must be addressed using the specified endpoint.",
            )
        return bucket

    def _list_objects(self, method: str, url: str, name: str, bucket: _Bucket) -> FetchResponse:
        query = parse_qs(urlsplit(url).query)
        keys = sorted(bucket.objects)

        if "continuation-token" in query:
            token = query["continuation-token"][0]
            try:
                after = base64.urlsafe_b64decode(token.encode("ascii")).decode("utf-8")
            except ValueError:
                raise self._error(
                    method, url, 400, "InvalidArgument",
                    "The continuation token provided is incorrect",
                )
            keys = [key for key in keys if key > after]

        page, remaining = keys[:self._page_size], keys[self._page_size:]

        root = Element("ListBucketResult", xmlns=S3_NAMESPACE)
        SubElement(root, "Name").text = name
        SubElement(root, "KeyCount").text = str(len(page))
        SubElement(root, "MaxKeys").text = str(self._page_size)
        SubElement(root, "IsTruncated").text = "true" if remaining else "false"
        if remaining:
            SubElement(root, "NextContinuationToken").text = (
                base64.urlsafe_b64encode(page[-1].encode("utf-8")).decode("ascii")
            )

        for key in page:
            stored = bucket.objects[key]
            contents = SubElement(root, "Contents")
            SubElement(contents, "Key").text = key
            SubElement(contents, "LastModified").text = (
                stored.last_modified.strftime("%Y-%m-%dT%H:%M:%S.000Z")
            )
            SubElement(contents, "ETag").text = stored.etag
            SubElement(contents, "Size").text = str(len(stored.data))
            SubElement(contents, "StorageClass").text = "STANDARD"

        return FetchResponse(status=200, body=tostring(root, encoding="utf-8"))


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_fetcher(
    config: Optional[S3Config] = None,
    mock_mode: bool = False,
    mock_page_size: int = 1000,
) -> Fetcher:
    """
    Create a fetcher based on configuration.

    Args:
        config: S3 configuration (required if not mock_mode)
        mock_mode: If True, return the in-memory mock
        mock_page_size: Keys per listing page in mock mode

    Returns:
        Fetcher implementation (HttpFetcher or MockS3Fetcher)
    """
    if mock_mode:
        return MockS3Fetcher(page_size=mock_page_size)

    if config is None:
        raise ValueError("config is required when not in mock mode")

    credentials = AwsCredentials(
        access_key_id=config.access_key_id,
        secret_access_key=config.secret_access_key,
        session_token=config.session_token,
    )

    logger.info(
        "Initialized S3 fetcher",
        extra={"default_region": config.default_region}
    )

    return HttpFetcher(
        auth=AwsSigV4Auth(credentials, default_region=config.default_region),
        timeout_seconds=config.timeout_seconds,
    )
