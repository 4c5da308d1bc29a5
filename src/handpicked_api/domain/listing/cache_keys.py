"""Deterministic cache keys for list requests."""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import quote

# page..status is the canonical order; store, cursor and mode are appended so
# that requests differing only in those fields never share an entry.
CACHE_KEY_FIELDS = (
    "page",
    "limit",
    "q",
    "category",
    "type",
    "sort",
    "locale",
    "status",
    "store",
    "cursor",
    "mode",
)

_INTEGER_FIELDS = frozenset({"page", "limit"})
SEPARATOR = "|"


def _coerce_int(value: Any) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0


def build_list_cache_key(prefix: str, params: Mapping[str, Any]) -> str:
    """Build ``prefix|page=2|limit=20|q=...`` from a parameter bag.

    Unknown keys are ignored and missing ones serialise as empty values, so the
    caller's insertion order never affects the result.
    """
    parts = [prefix]
    for name in CACHE_KEY_FIELDS:
        value = params.get(name)
        if name in _INTEGER_FIELDS:
            text = str(_coerce_int(value))
        else:
            text = "" if value is None else str(value)
        parts.append(f"{name}={quote(text, safe='')}")
    return SEPARATOR.join(parts)
