"""
Core actions - framework-agnostic S3 operations.

Nothing in here knows about HTTP servers or credentials. Every action
takes a Fetcher and issues exactly one request through it.
"""
