"""
Bucket object listing.

One call fetches one page. The iterators drive the continuation cursor
until the service reports the listing is complete.
"""

from .lister import iter_objects, iter_pages, list_objects_page
from .models import ListPage, ObjectRecord, PaginationCursor

__all__ = [
    "ListPage",
    "ObjectRecord",
    "PaginationCursor",
    "iter_objects",
    "iter_pages",
    "list_objects_page",
]
