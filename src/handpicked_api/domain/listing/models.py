from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

DEFAULT_LIMIT = 20
MAX_LIMIT = 100
MAX_QUERY_LENGTH = 200
MAX_SLUG_LENGTH = 100


class EntityKind(str, Enum):
    COUPONS = "coupons"
    STORES = "stores"
    BLOGS = "blogs"


class ListMode(str, Enum):
    """Caller intent for a list request."""

    DEFAULT = "default"
    HOMEPAGE = "homepage"


class Projection(str, Enum):
    COMPACT = "compact"
    FULL = "full"


COUPON_TYPES = ("all", "coupon", "deal")
COUPON_STATUSES = ("active", "expired", "all")
COUPON_SORTS = ("latest", "ending", "trending", "editor")
STORE_SORTS = ("newest", "popular")
BLOG_SORTS = ("latest", "featured")

DEFAULT_SORTS = {
    EntityKind.COUPONS: "latest",
    EntityKind.STORES: "newest",
    EntityKind.BLOGS: "latest",
}


@dataclass(frozen=True)
class ListQuery:
    """Validated list request.

    A non-empty ``cursor`` takes precedence over ``page`` for entities that
    support keyset pagination.
    """

    entity_kind: EntityKind
    q: str = ""
    category: str = ""
    store: str = ""
    type: str = "all"
    status: str = "active"
    sort: str = ""
    locale: str = ""
    page: int = 1
    limit: int = DEFAULT_LIMIT
    cursor: Optional[str] = None
    mode: ListMode = ListMode.DEFAULT

    def __post_init__(self) -> None:
        if not 1 <= self.limit <= MAX_LIMIT:
            raise ValueError(f"limit must be within [1, {MAX_LIMIT}], got {self.limit}")
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def cache_params(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "q": self.q,
            "category": self.category,
            "type": self.type,
            "sort": self.sort,
            "locale": self.locale,
            "status": self.status,
            "store": self.store,
            "cursor": self.cursor or "",
            "mode": self.mode.value,
        }


@dataclass(frozen=True)
class OrderTerm:
    column: str
    descending: bool = True
    nulls_last: bool = False


@dataclass(frozen=True)
class ListFilters:
    """Store-agnostic predicate set shared by the row and count queries.

    ``match_nothing`` is set when a slug filter could not be resolved.
    """

    text: str = ""
    published_only: bool = False
    merchant_id: Optional[int] = None
    merchant_ids: Optional[tuple[int, ...]] = None
    category_name: Optional[str] = None
    category_id: Optional[int] = None
    coupon_type: Optional[str] = None
    status: Optional[str] = None
    as_of: Optional[datetime] = None
    before_id: Optional[int] = None
    match_nothing: bool = False


@dataclass(frozen=True)
class PageResult:
    """One page of rows.

    ``total`` is None in cursor mode and when counting was skipped.
    ``total_exact`` is False when ``total`` only counts the returned rows.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    total: Optional[int] = None
    next_cursor: Optional[str] = None
    has_more: bool = False
    total_exact: bool = True
