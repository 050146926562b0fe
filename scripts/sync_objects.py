#!/usr/bin/env python3
"""
List every object in an S3 bucket as JSON lines.

Drives the paged listing to completion (or --max-pages), printing one
JSON object per record. When stopped early it prints the continuation
token to resume from on stderr.

Usage:
    python scripts/sync_objects.py my-bucket --region us-east-1
    python scripts/sync_objects.py my-bucket --max-pages 2
    python scripts/sync_objects.py my-bucket --start-token <token>

Requires:
    - .env file (or environment) with AWS_ACCESS_KEY_ID and
      AWS_SECRET_ACCESS_KEY
"""

import asyncio
import contextlib
import json
import sys
from pathlib import Path
from typing import Optional

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from s3pack.config.settings import get_settings
from s3pack.core.errors import S3PackError
from s3pack.core.listing import PaginationCursor, iter_pages
from s3pack.infrastructure.s3.client import S3Config, create_fetcher


async def sync_objects(
    bucket: str,
    region: str,
    start_token: Optional[str] = None,
    max_pages: Optional[int] = None,
) -> Optional[str]:
    """
    Print every record from start_token onwards.

    Returns the token to resume from, or None if the listing completed.
    """
    settings = get_settings()
    config = S3Config(
        access_key_id=settings.aws_access_key_id,
        secret_access_key=settings.aws_secret_access_key,
        session_token=settings.aws_session_token,
        default_region=settings.aws_default_region,
        timeout_seconds=settings.request_timeout_seconds,
    )

    cursor = PaginationCursor(start_token) if start_token else None
    pages = 0

    async with create_fetcher(config=config, mock_mode=settings.s3_mock_mode) as fetcher:
        pages_iter = iter_pages(fetcher, bucket, region, cursor)
        async with contextlib.aclosing(pages_iter) as page_stream:
            async for page in page_stream:
                for record in page.records:
                    print(json.dumps(record.to_dict()))

                pages += 1
                if max_pages is not None and pages >= max_pages and not page.is_last:
                    return page.next_cursor.continuation_token

    return None


def main():
    import argparse

    parser = argparse.ArgumentParser(description='List all objects in an S3 bucket as JSON lines')
    parser.add_argument('bucket', help='Bucket to list')
    parser.add_argument('--region', default=None, help='Region the bucket is in (i.e. us-east-1)')
    parser.add_argument('--start-token', default=None, help='Continuation token to resume from')
    parser.add_argument('--max-pages', type=int, default=None, help='Stop after this many pages')
    args = parser.parse_args()

    settings = get_settings()
    missing = settings.validate_required_fields()
    if missing:
        print(f"ERROR: Missing configuration: {', '.join(missing)}", file=sys.stderr)
        sys.exit(1)

    region = args.region or settings.aws_default_region

    try:
        resume_token = asyncio.run(
            sync_objects(args.bucket, region, args.start_token, args.max_pages)
        )
    except S3PackError as e:
        print(f"ERROR listing {args.bucket}: {e}", file=sys.stderr)
        sys.exit(1)

    if resume_token:
        print(f"Stopped early. Resume with --start-token {resume_token}", file=sys.stderr)


if __name__ == '__main__':
    main()
