"""
Unit tests for the S3 transport.

HttpFetcher runs against httpx.MockTransport, so we can see exactly what
goes on the wire (including SigV4 headers) without calling AWS.
MockS3Fetcher is tested through the core actions, the way the API uses it.
"""

import hashlib

import httpx
import pytest

from s3pack.core.actions import create_bucket, put_object
from s3pack.core.errors import ServiceRequestError
from s3pack.core.listing import iter_pages, list_objects_page
from s3pack.infrastructure.s3.client import (
    HttpFetcher,
    MockS3Fetcher,
    S3Config,
    create_fetcher,
)
from s3pack.infrastructure.s3.signing import AwsCredentials, AwsSigV4Auth


CREDENTIALS = AwsCredentials(
    access_key_id="AKIDEXAMPLE",
    secret_access_key="wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
)

ERROR_BODY = (
    b'<?xml version="1.0" encoding="UTF-8"?>'
    b"<Error><Code>BucketAlreadyExists</Code>"
    b"<Message>The requested bucket name is not available.</Message></Error>"
)


def _capturing_transport(captured: list, status: int = 200, body: bytes = b""):
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(status, content=body)
    return httpx.MockTransport(handler)


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------

class TestAwsSigV4Auth:
    """Tests for the SigV4 httpx.Auth."""

    @pytest.mark.asyncio
    async def test_signs_with_region_from_host(self):
        captured = []
        fetcher = HttpFetcher(
            auth=AwsSigV4Auth(CREDENTIALS),
            transport=_capturing_transport(captured),
        )

        async with fetcher:
            await fetcher.fetch("GET", "https://b.s3.eu-west-1.amazonaws.com/?list-type=2")

        headers = captured[0].headers
        assert headers["Authorization"].startswith("AWS4-HMAC-SHA256 Credential=AKIDEXAMPLE/")
        assert "/eu-west-1/s3/aws4_request" in headers["Authorization"]
        assert "X-Amz-Date" in headers

    @pytest.mark.asyncio
    async def test_payload_hash_covers_body(self):
        captured = []
        fetcher = HttpFetcher(
            auth=AwsSigV4Auth(CREDENTIALS),
            transport=_capturing_transport(captured),
        )

        async with fetcher:
            await fetcher.fetch("PUT", "https://b.s3.us-east-1.amazonaws.com/a/b.txt", body="hello")

        assert captured[0].headers["X-Amz-Content-SHA256"] == hashlib.sha256(b"hello").hexdigest()
        assert captured[0].content == b"hello"

    @pytest.mark.asyncio
    async def test_session_token_is_sent(self):
        captured = []
        credentials = AwsCredentials("AKIDEXAMPLE", "secret", session_token="session-tok")
        fetcher = HttpFetcher(
            auth=AwsSigV4Auth(credentials),
            transport=_capturing_transport(captured),
        )

        async with fetcher:
            await fetcher.fetch("PUT", "https://b.s3.us-east-1.amazonaws.com/")

        assert captured[0].headers["X-Amz-Security-Token"] == "session-tok"

    def test_unknown_host_falls_back_to_default_region(self):
        auth = AwsSigV4Auth(CREDENTIALS, default_region="ca-central-1")

        assert auth.region_for("https://localhost:9000/bucket") == "ca-central-1"
        assert auth.region_for("https://b.s3.sa-east-1.amazonaws.com/") == "sa-east-1"

    def test_credentials_require_both_keys(self):
        with pytest.raises(ValueError, match="required"):
            AwsCredentials(access_key_id="", secret_access_key="secret")


# ---------------------------------------------------------------------------
# HttpFetcher
# ---------------------------------------------------------------------------

class TestHttpFetcher:
    """Tests for status and transport error handling."""

    @pytest.mark.asyncio
    async def test_success_returns_status_and_body(self):
        captured = []
        async with HttpFetcher(transport=_capturing_transport(captured, body=b"<ok/>")) as fetcher:
            response = await fetcher.fetch("GET", "https://b.s3.us-east-1.amazonaws.com/")

        assert response.status == 200
        assert response.body == b"<ok/>"

    @pytest.mark.asyncio
    async def test_error_status_raises_with_s3_code(self):
        captured = []
        transport = _capturing_transport(captured, status=409, body=ERROR_BODY)

        async with HttpFetcher(transport=transport) as fetcher:
            with pytest.raises(ServiceRequestError) as excinfo:
                await fetcher.fetch("PUT", "https://b.s3.us-east-1.amazonaws.com/")

        error = excinfo.value
        assert error.status == 409
        assert error.code == "BucketAlreadyExists"
        assert error.message == "The requested bucket name is not available."
        assert error.body == ERROR_BODY
        assert error.method == "PUT"

    @pytest.mark.asyncio
    async def test_error_without_document_uses_reason(self):
        captured = []
        transport = _capturing_transport(captured, status=403)

        async with HttpFetcher(transport=transport) as fetcher:
            with pytest.raises(ServiceRequestError) as excinfo:
                await fetcher.fetch("GET", "https://b.s3.us-east-1.amazonaws.com/")

        assert excinfo.value.status == 403
        assert excinfo.value.code is None
        assert excinfo.value.message == "Forbidden"

    @pytest.mark.asyncio
    async def test_transport_failure_raises_without_status(self):
        def handler(request):
            raise httpx.ConnectError("name resolution failed", request=request)

        async with HttpFetcher(transport=httpx.MockTransport(handler)) as fetcher:
            with pytest.raises(ServiceRequestError, match="name resolution failed") as excinfo:
                await fetcher.fetch("GET", "https://nope.s3.us-east-1.amazonaws.com/")

        assert excinfo.value.status is None
        assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


# ---------------------------------------------------------------------------
# Mock S3
# ---------------------------------------------------------------------------

class TestMockS3Fetcher:
    """Tests for the in-memory S3 used in mock mode."""

    @pytest.mark.asyncio
    async def test_create_then_list_written_objects(self):
        s3 = MockS3Fetcher()
        await create_bucket(s3, "b", "us-east-1")
        await put_object(s3, "b", "us-east-1", "a/b.txt", "hello")

        page = await list_objects_page(s3, "b", "us-east-1")

        assert [r.key for r in page.records] == ["a/b.txt"]
        assert page.records[0].size == 5
        assert page.records[0].etag == hashlib.md5(b"hello").hexdigest()
        assert page.next_cursor is None

    @pytest.mark.asyncio
    async def test_duplicate_create_conflicts(self):
        s3 = MockS3Fetcher()
        await create_bucket(s3, "b", "us-east-1")

        with pytest.raises(ServiceRequestError) as excinfo:
            await create_bucket(s3, "b", "us-east-1")

        assert excinfo.value.status == 409
        assert excinfo.value.code == "BucketAlreadyOwnedByYou"

    @pytest.mark.asyncio
    async def test_pages_by_page_size(self):
        s3 = MockS3Fetcher(page_size=3)
        await create_bucket(s3, "b", "us-east-1")
        for key in ["e", "d", "c", "b", "a"]:
            await put_object(s3, "b", "us-east-1", key, key)

        pages = [page async for page in iter_pages(s3, "b", "us-east-1")]

        assert [[r.key for r in page.records] for page in pages] == [["a", "b", "c"], ["d", "e"]]
        assert pages[0].next_cursor is not None
        assert pages[1].next_cursor is None

    @pytest.mark.asyncio
    async def test_empty_bucket_lists_nothing(self):
        s3 = MockS3Fetcher()
        await create_bucket(s3, "b", "us-east-1")

        page = await list_objects_page(s3, "b", "us-east-1")

        assert page.records == []

    @pytest.mark.asyncio
    async def test_unknown_bucket_is_404(self):
        s3 = MockS3Fetcher()

        with pytest.raises(ServiceRequestError) as excinfo:
            await list_objects_page(s3, "missing", "us-east-1")

        assert excinfo.value.status == 404
        assert excinfo.value.code == "NoSuchBucket"

    @pytest.mark.asyncio
    async def test_wrong_region_redirects(self):
        s3 = MockS3Fetcher()
        await create_bucket(s3, "b", "us-east-1")

        with pytest.raises(ServiceRequestError) as excinfo:
            await put_object(s3, "b", "eu-west-1", "k", "v")

        assert excinfo.value.status == 301


class TestCreateFetcher:
    """Tests for the fetcher factory."""

    def test_mock_mode_returns_mock(self):
        assert isinstance(create_fetcher(mock_mode=True), MockS3Fetcher)

    @pytest.mark.asyncio
    async def test_config_returns_http_fetcher(self):
        fetcher = create_fetcher(config=S3Config(access_key_id="AKID", secret_access_key="secret"))

        assert isinstance(fetcher, HttpFetcher)
        await fetcher.aclose()

    def test_requires_config_outside_mock_mode(self):
        with pytest.raises(ValueError, match="config is required"):
            create_fetcher()
