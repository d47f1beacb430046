"""Opaque forward-only cursors for newest-first listings.

A cursor is the sort key of the last row served. Pages are not a snapshot:
rows written between requests may shift what the next page contains.
"""

from __future__ import annotations

import base64
import binascii
import json
from datetime import datetime
from typing import Optional, Tuple

from ..api.errors import APIError


def encode_cursor(date_created: datetime, row_id: str) -> str:
    raw = json.dumps({"d": date_created.isoformat(), "i": row_id}, separators=(",", ":"))
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(cursor: Optional[str]) -> Optional[Tuple[datetime, str]]:
    if not cursor:
        return None
    padded = cursor + "=" * (-len(cursor) % 4)
    try:
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8"))
        return datetime.fromisoformat(data["d"]), str(data["i"])
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as exc:
        raise APIError("INVALID_CURSOR", "Malformed page cursor", status_code=400) from exc
