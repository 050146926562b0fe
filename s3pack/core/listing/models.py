"""
Value types for bucket listings.

These mirror what the host contract exposes: camelCase keys on the wire
(to_dict), snake_case attributes in Python.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class ObjectRecord:
    """
    One stored object, as reported by a listing call.
    
    bucket and region are not part of the service's response. The lister
    attaches them from the request so every record says where it came from.
    """
    key: str
    last_modified: datetime
    etag: str
    size: int
    storage_class: str
    bucket: str
    region: str
    extra: dict[str, Any] = field(default_factory=dict)
    
    def __post_init__(self) -> None:
        if '"' in self.etag:
            raise ValueError("etag must not contain quote characters")
    
    def to_dict(self) -> dict[str, Any]:
        """Serialize using the field names of the listing contract."""
        return {
            **self.extra,
            "key": self.key,
            "lastModified": self.last_modified.isoformat(),
            "etag": self.etag,
            "size": self.size,
            "storageClass": self.storage_class,
            "bucket": self.bucket,
            "region": self.region,
        }


@dataclass(frozen=True)
class PaginationCursor:
    """
    Where the next page of a truncated listing resumes.
    
    A listing with no cursor (None) is either starting or finished;
    a cursor only exists while more pages remain.
    """
    continuation_token: str
    
    def to_dict(self) -> dict[str, str]:
        return {"continuationToken": self.continuation_token}


@dataclass(frozen=True)
class ListPage:
    """One page of a listing plus the cursor for the next one."""
    records: list[ObjectRecord]
    next_cursor: Optional[PaginationCursor] = None
    
    @property
    def is_last(self) -> bool:
        return self.next_cursor is None
    
    def to_dict(self) -> dict[str, Any]:
        """Shape returned to callers: {result, continuation?}."""
        data: dict[str, Any] = {
            "result": [record.to_dict() for record in self.records],
        }
        if self.next_cursor is not None:
            data["continuation"] = self.next_cursor.to_dict()
        return data
