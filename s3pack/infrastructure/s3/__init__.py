"""
S3 REST transport.

Requests are signed with AWS SigV4 and sent with httpx. Includes mock
mode for local development without credentials.
"""

from .client import HttpFetcher, MockS3Fetcher, S3Config, create_fetcher
from .signing import AwsCredentials, AwsSigV4Auth

__all__ = [
    "AwsCredentials",
    "AwsSigV4Auth",
    "HttpFetcher",
    "MockS3Fetcher",
    "S3Config",
    "create_fetcher",
]
