"""
Opaque keyset cursors for newest-first listings.

A cursor encodes the ``(timestamp, id)`` of the last row served. The next page
continues strictly after that key, so rows inserted meanwhile never shift a
page and no row is served twice.
"""

from __future__ import annotations

import base64
import binascii
import json
import uuid
from datetime import datetime

from app.core.errors import ValidationError
from app.models.base import as_utc_naive


def encode_cursor(ts: datetime, row_id: uuid.UUID) -> str:
    raw = json.dumps({"t": ts.isoformat(), "id": str(row_id)}, separators=(",", ":"))
    return base64.urlsafe_b64encode(raw.encode()).decode().rstrip("=")


def decode_cursor(cursor: str) -> tuple[datetime, uuid.UUID]:
    """Inverse of encode_cursor. Raises ValidationError on a malformed cursor."""
    padded = cursor + "=" * (-len(cursor) % 4)
    try:
        data = json.loads(base64.urlsafe_b64decode(padded.encode()))
        ts, row_id = datetime.fromisoformat(data["t"]), uuid.UUID(data["id"])
    except (binascii.Error, ValueError, KeyError, TypeError):
        raise ValidationError("Invalid pagination cursor")
    # Rows hold naive UTC; an offset in a hand-made cursor is normalised away
    return as_utc_naive(ts), row_id


def clamp_page_size(num_items: int | None, default: int, maximum: int) -> int:
    if num_items is None:
        return default
    if num_items < 1:
        raise ValidationError("num_items must be at least 1")
    return min(num_items, maximum)
