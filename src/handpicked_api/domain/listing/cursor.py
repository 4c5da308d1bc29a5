"""Opaque keyset cursors: base64 of ``{"id": ..., "key": ...}``."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)

SECONDARY_KEY_FIELDS = ("ends_at", "published_at", "created_at")


@dataclass(frozen=True)
class CursorPosition:
    id: int
    key: Optional[str] = None


def _secondary_key(row: Mapping[str, Any]) -> Optional[str]:
    for name in SECONDARY_KEY_FIELDS:
        value = row.get(name)
        if value is None:
            continue
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        return str(value)
    return None


def encode_cursor(row: Optional[Mapping[str, Any]]) -> Optional[str]:
    """Encode a cursor pointing just past ``row``; None when there is no row."""
    if not row or row.get("id") is None:
        return None
    payload = {"id": row["id"], "key": _secondary_key(row)}
    return base64.b64encode(json.dumps(payload).encode()).decode()


def decode_cursor(token: Optional[str]) -> Optional[CursorPosition]:
    """Decode a cursor; any malformed token reads as "no cursor"."""
    if not token:
        return None
    try:
        decoded = base64.b64decode(token.encode(), validate=True).decode()
        data = json.loads(decoded)
        row_id = data["id"]
        if isinstance(row_id, bool) or not isinstance(row_id, (int, str)):
            raise TypeError(f"unsupported id type {type(row_id).__name__}")
        key = data.get("key")
        return CursorPosition(id=int(row_id), key=None if key is None else str(key))
    except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError, AttributeError) as e:
        logger.warning(f"Failed to decode cursor {token!r}: {e}")
        return None
