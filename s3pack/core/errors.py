"""
Error taxonomy for S3 actions.

Nothing in the core catches these. They surface to whoever invoked the
action (API route, CLI) which decides how to present them.
"""

from typing import Optional


class S3PackError(Exception):
    """Base class for all errors raised by s3pack."""
    pass


class ServiceRequestError(S3PackError):
    """
    Raised when a request to the storage service fails.
    
    Covers both non-success HTTP statuses (auth failure, missing bucket,
    conflict on create) and transport failures. Transport failures have
    no status.
    """
    
    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
        body: bytes = b"",
        method: Optional[str] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.body = body
        self.method = method
        self.url = url
    
    def __str__(self) -> str:
        if self.status is None:
            return self.message
        if self.code:
            return f"{self.status} {self.code}: {self.message}"
        return f"{self.status}: {self.message}"


class MalformedResponseError(S3PackError):
    """Raised when a response body lacks the fields we expect."""
    pass
