"""
Infrastructure layer - external service integrations.

- s3: HTTP transport to the S3 REST API, SigV4 request signing and an
  in-memory stand-in for local development

These wrappers implement the core's Fetcher protocol.
"""
