"""
Fetch contract consumed by the core actions.

The core only needs something that can send one request and hand back
the status and body. Using a Protocol means tests can pass a tiny fake
and the real transport (httpx + SigV4) stays in infrastructure.
"""

from dataclasses import dataclass, field
from typing import Optional, Protocol, Union


Body = Union[bytes, str]


@dataclass(frozen=True)
class FetchResponse:
    """Result of a successful fetch."""
    status: int
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)


class Fetcher(Protocol):
    """
    Interface for issuing storage requests.
    
    Implementations raise ServiceRequestError for non-success statuses
    and transport failures, so callers only ever see successful responses.
    """
    
    async def fetch(
        self,
        method: str,
        url: str,
        body: Optional[Body] = None,
    ) -> FetchResponse:
        """Issue one request and return the response."""
        ...
