"""
AWS Signature Version 4 for S3 requests.

Signing is an httpx.Auth so it can be handed to any httpx client (or
swapped for another scheme) without the fetcher or the core actions
knowing about credentials. The heavy lifting is botocore's S3 signer;
we only translate between httpx and botocore request objects.
"""

import logging
from dataclasses import dataclass
from typing import Generator, Optional

import httpx
from botocore.auth import S3SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials

from ...core.endpoints import parse_bucket_url

logger = logging.getLogger(__name__)

SERVICE_NAME = "s3"

# Headers we let botocore see. Everything else httpx adds (user-agent,
# accept-encoding, ...) stays out of the signature.
_SIGNED_REQUEST_HEADERS = ("content-type", "content-md5")


@dataclass(frozen=True)
class AwsCredentials:
    """Static AWS access key credentials."""
    access_key_id: str
    secret_access_key: str
    session_token: Optional[str] = None
    
    def __post_init__(self) -> None:
        if not self.access_key_id or not self.secret_access_key:
            raise ValueError("access key id and secret access key are required")
    
    def to_botocore(self) -> Credentials:
        return Credentials(
            access_key=self.access_key_id,
            secret_key=self.secret_access_key,
            token=self.session_token,
        )


class AwsSigV4Auth(httpx.Auth):
    """
    Sign each request with SigV4 for the region its host names.
    
    Bucket endpoints carry the region in the host
    ({bucket}.s3.{region}.amazonaws.com). For any other host we fall
    back to default_region.
    """
    
    requires_request_body = True
    
    def __init__(
        self,
        credentials: AwsCredentials,
        default_region: str = "us-east-1",
    ) -> None:
        self._credentials = credentials.to_botocore()
        self._default_region = default_region
    
    def region_for(self, url: str) -> str:
        try:
            return parse_bucket_url(url).region
        except ValueError:
            return self._default_region
    
    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        url = str(request.url)
        region = self.region_for(url)
        
        aws_request = AWSRequest(
            method=request.method,
            url=url,
            data=request.content,
            headers={
                name: value
                for name, value in request.headers.items()
                if name.lower() in _SIGNED_REQUEST_HEADERS
            },
        )
        S3SigV4Auth(self._credentials, SERVICE_NAME, region).add_auth(aws_request)
        
        for name, value in aws_request.headers.items():
            request.headers[name] = value
        
        logger.debug(
            "Signed request",
            extra={"method": request.method, "host": request.url.host, "region": region}
        )
        
        yield request
