"""
FastAPI dependency injection.

Dependencies provide the fetcher and configuration to route handlers.
Routes never build their own transport, which keeps them trivial to
test: override get_fetcher, or turn on mock mode.
"""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from ..config.settings import Settings, get_settings
from ..core.fetcher import Fetcher
from ..infrastructure.s3.client import S3Config, create_fetcher

logger = logging.getLogger(__name__)

# API Key security scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

# Shared mock instance so buckets persist across requests
_mock_fetcher = None


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def verify_api_key(
    settings: Annotated[Settings, Depends(get_settings)],
    api_key: str = Security(api_key_header),
) -> str:
    """
    Validate API key from request header.
    
    Raises 403 if key is invalid or missing.
    """
    if not api_key:
        logger.warning("Request missing API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key required. Provide X-API-Key header.",
        )
    
    if api_key not in settings.api_keys_list:
        logger.warning(
            "Invalid API key attempt",
            extra={"key_prefix": api_key[:8]}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )
    
    return api_key


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

async def get_fetcher(
    settings: Annotated[Settings, Depends(get_settings)],
) -> AsyncGenerator[Fetcher, None]:
    """
    Provide a fetcher for the duration of one request.
    
    The real fetcher owns an httpx connection pool, so it's opened per
    request and closed afterwards. In mock mode, we reuse the same
    in-memory S3 across requests so created buckets stick around.
    """
    global _mock_fetcher
    
    if settings.s3_mock_mode:
        if _mock_fetcher is None:
            _mock_fetcher = create_fetcher(
                mock_mode=True,
                mock_page_size=settings.mock_page_size,
            )
            logger.info("Created shared mock S3 fetcher")
        yield _mock_fetcher
        return
    
    config = S3Config(
        access_key_id=settings.aws_access_key_id,
        secret_access_key=settings.aws_secret_access_key,
        session_token=settings.aws_session_token,
        default_region=settings.aws_default_region,
        timeout_seconds=settings.request_timeout_seconds,
    )
    
    async with create_fetcher(config=config) as fetcher:
        logger.debug("Opened S3 fetcher")
        yield fetcher


def reset_mock_fetcher() -> None:
    """Drop the shared mock so the next request starts with an empty S3."""
    global _mock_fetcher
    _mock_fetcher = None


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

AuthenticatedUser = Annotated[str, Depends(verify_api_key)]
FetcherDep = Annotated[Fetcher, Depends(get_fetcher)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
