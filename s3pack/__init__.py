"""
S3 bucket actions - create buckets, list objects and upload objects.

This package contains the complete application:
- core: Listing, bucket and object actions against the S3 REST API
- infrastructure: HTTP transport, request signing and an in-memory S3
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
