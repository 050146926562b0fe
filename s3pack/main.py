"""
FastAPI application entry point.

This module creates and configures the FastAPI application using an
application factory (create_app), so tests can build apps with
different settings.

For local development:
    S3_MOCK_MODE=true uvicorn s3pack.main:app --reload

For production:
    gunicorn s3pack.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes import buckets, health
from .config.settings import get_settings
from .core.errors import MalformedResponseError, ServiceRequestError

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=get_settings().log_level.upper(),
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup configuration and warn about missing credentials."""
    settings = get_settings()

    logger.info(
        "S3 actions API starting",
        extra={
            "version": settings.api_version,
            "mock_mode": settings.s3_mock_mode,
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        # Keep serving so /health/ready can report what's missing
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("S3 actions API shutting down")


def _service_error_status(exc: ServiceRequestError) -> int:
    """
    Status to answer with when S3 rejected a request.

    Client and server errors are passed through as S3 sent them. Transport
    failures and redirects (wrong region) have no sensible equivalent for
    our caller, so they become 502.
    """
    if exc.status is not None and 400 <= exc.status < 600:
        return exc.status
    return status.HTTP_502_BAD_GATEWAY


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Create S3 buckets, list their objects and upload objects.

        ## Authentication

        All action endpoints require an API key in the `X-API-Key` header.
        AWS credentials are configured on the server.

        ## Listing

        `GET /api/v1/buckets/{bucket}/objects` returns one page. While more
        pages remain the response includes `continuation.continuationToken`;
        pass it back as `continuation_token` for the next page.
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        buckets.router,
        prefix="/api/v1/buckets",
        tags=["Buckets"],
    )

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": "S3 Bucket Actions API",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(ServiceRequestError)
    async def service_request_error_handler(request: Request, exc: ServiceRequestError):
        """Pass S3's verdict through to the caller."""
        logger.warning(
            "S3 request rejected",
            extra={
                "path": request.url.path,
                "status": exc.status,
                "code": exc.code,
            }
        )

        return JSONResponse(
            status_code=_service_error_status(exc),
            content={
                "detail": exc.message,
                "code": exc.code,
                "upstream_status": exc.status,
            }
        )

    @app.exception_handler(MalformedResponseError)
    async def malformed_response_handler(request: Request, exc: MalformedResponseError):
        logger.error(
            "Unexpected response from S3",
            extra={"path": request.url.path, "error": str(exc)}
        )

        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": f"Unexpected response from storage service: {exc}"}
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        Prevents stack traces from leaking to clients. The full error is
        logged server-side.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error."}
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "s3pack.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
