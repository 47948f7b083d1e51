"""
Pagination & prefix search
Cursor encoding and query fragments shared by every list implementation
"""

import base64
import binascii
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId

from cms.errors import InvalidCursor

@dataclass
class ListResult:
    """One page of results; `last` is set only when more may follow"""
    results: List[Dict[str, Any]] = field(default_factory=list)
    last: Optional[str] = None

def parse_limit(raw: Optional[str], default: int, maximum: int) -> int:
    """
    Parse the `limit` query parameter

    Raises:
        ValueError: if the value is not a positive integer
    """
    if raw is None or raw == "":
        return default
    limit = int(raw)
    if limit < 1:
        raise ValueError(f"limit must be positive, got {limit}")
    return min(limit, maximum)

def encode_cursor(*values: Any) -> str:
    """Pack the sort key of the last returned row into an opaque token"""
    payload = json.dumps([str(v) if isinstance(v, ObjectId) else v for v in values], separators=(",", ":"))
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")

def decode_cursor(cursor: str, size: int) -> List[Any]:
    """Unpack a token made by encode_cursor, checking it holds `size` values"""
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        values = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise InvalidCursor(f"Malformed cursor: {cursor!r}") from e

    if not isinstance(values, list) or len(values) != size:
        raise InvalidCursor(f"Malformed cursor: {cursor!r}")
    return values

def decode_object_id(value: Any) -> ObjectId:
    # ObjectId(None) would mint a fresh id
    if not isinstance(value, str):
        raise InvalidCursor(f"Malformed cursor id: {value!r}")
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as e:
        raise InvalidCursor(f"Malformed cursor id: {value!r}") from e

def decode_keyset_cursor(cursor: str, value_type: type) -> Tuple[Any, ObjectId]:
    """
    Unpack a (sort value, ObjectId) cursor

    The sort value must be a plain `value_type` so it can never carry a
    query operator into the filter.
    """
    value, object_id = decode_cursor(cursor, 2)
    if isinstance(value, bool) or not isinstance(value, value_type):
        raise InvalidCursor(f"Malformed cursor value: {value!r}")
    return value, decode_object_id(object_id)

def keyset_filter(sort_field: str, value: Any, object_id: ObjectId) -> Dict[str, Any]:
    """
    Strict lower bound on (sort_field, _id)

    Rows inserted behind the cursor stay behind it, rows inserted ahead of
    it show up on a later page.
    """
    return {
        "$or": [
            {sort_field: {"$gt": value}},
            {sort_field: value, "_id": {"$gt": object_id}},
        ]
    }

def prefix_filter(prefix: str) -> Dict[str, str]:
    """Anchored match, served by an index range scan"""
    return {"$regex": f"^{re.escape(prefix)}"}

def last_cursor(results: List[Dict[str, Any]], limit: int, *fields: str) -> Optional[str]:
    """Cursor for the last row, emitted only when the page came back full"""
    if not results or len(results) != limit:
        return None
    last = results[-1]
    return encode_cursor(*(last[name] for name in fields))
