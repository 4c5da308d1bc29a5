"""Query parameter normalisation for the public list endpoints.

Malformed paging values and unknown enum values fall back to defaults rather
than failing the request. Only a non-numeric blog ``category_id`` is rejected.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

from handpicked_api.application.errors import ValidationError
from handpicked_api.domain.listing.models import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    MAX_QUERY_LENGTH,
    MAX_SLUG_LENGTH,
)

_LOCALE = re.compile(r"^[a-z]{2}(?:-[A-Z]{2})?$")


def val_page(raw: Optional[str]) -> int:
    try:
        page = int(str(raw).strip())
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


def val_limit(raw: Optional[str], default: int = DEFAULT_LIMIT) -> int:
    try:
        limit = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return max(1, min(MAX_LIMIT, limit))


def val_enum(raw: Optional[str], allowed: Sequence[str], default: str) -> str:
    value = (raw or "").strip().lower()
    return value if value in allowed else default


def val_text(raw: Optional[str], max_length: int = MAX_QUERY_LENGTH) -> str:
    return (raw or "").strip()[:max_length]


def val_slug(raw: Optional[str]) -> str:
    return val_text(raw, MAX_SLUG_LENGTH).lower()


def val_locale(raw: Optional[str]) -> Optional[str]:
    """Normalise ``en`` / ``en-us`` / ``en_US`` to ``en`` / ``en-US``; None when invalid."""
    value = (raw or "").strip().replace("_", "-")
    if not value:
        return None
    parts = value.split("-")
    if len(parts) == 1:
        normalised = parts[0].lower()
    elif len(parts) == 2:
        normalised = f"{parts[0].lower()}-{parts[1].upper()}"
    else:
        return None
    return normalised if _LOCALE.match(normalised) else None


def derive_locale(raw: Optional[str], accept_language: Optional[str]) -> str:
    """Explicit locale if valid, else the first valid Accept-Language tag, else ""."""
    explicit = val_locale(raw)
    if explicit:
        return explicit
    for part in (accept_language or "").split(","):
        candidate = val_locale(part.split(";")[0])
        if candidate:
            return candidate
    return ""


def val_category_id(raw: Optional[str]) -> str:
    value = (raw or "").strip()
    if not value:
        return ""
    if not value.isdigit():
        raise ValidationError("category_id must be numeric", field="category_id")
    return value
