"""
S3 XML wire format.

S3 answers in namespaced XML. These helpers turn the two documents we
care about (ListBucketResult and Error) into plain Python values so the
rest of the code never touches ElementTree.
"""

from typing import Any, Optional
from xml.etree.ElementTree import Element, ParseError, fromstring

from .errors import MalformedResponseError


def _local_name(tag: str) -> str:
    """Drop the '{namespace}' prefix ElementTree puts on tags."""
    return tag.rsplit("}", 1)[-1]


def _to_value(element: Element) -> Any:
    """Leaf elements become their text, nested ones a dict of children."""
    children = list(element)
    if not children:
        return element.text or ""
    return {_local_name(child.tag): _to_value(child) for child in children}


def _parse_document(body: bytes) -> Element:
    try:
        return fromstring(body)
    except ParseError as e:
        raise MalformedResponseError(f"Response body is not valid XML: {e}") from e


def parse_list_bucket_result(body: bytes) -> dict[str, Any]:
    """
    Parse a ListObjectsV2 response body.
    
    Returns the top-level fields by name. Every <Contents> element is
    collected into a list under "Contents"; the key is absent when the
    document has none, which callers must handle.
    """
    root = _parse_document(body)
    if _local_name(root.tag) != "ListBucketResult":
        raise MalformedResponseError(
            f"Expected ListBucketResult, got {_local_name(root.tag)}"
        )
    
    data: dict[str, Any] = {}
    for child in root:
        name = _local_name(child.tag)
        if name == "Contents":
            data.setdefault("Contents", []).append(_to_value(child))
        else:
            data[name] = _to_value(child)
    
    return data


def parse_error(body: bytes) -> tuple[Optional[str], Optional[str]]:
    """
    Extract (Code, Message) from an S3 error document.
    
    Error bodies are best effort: HEAD responses and some proxies send
    nothing useful, so anything unparseable yields (None, None).
    """
    if not body:
        return None, None
    
    try:
        root = fromstring(body)
    except ParseError:
        return None, None
    
    if _local_name(root.tag) != "Error":
        return None, None
    
    fields = _to_value(root)
    if not isinstance(fields, dict):
        return None, None
    return fields.get("Code"), fields.get("Message")


def parse_bool(value: Any) -> bool:
    """S3 booleans are the strings 'true'/'false'."""
    return str(value).strip().lower() == "true"
