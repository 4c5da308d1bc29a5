"""In-process store implementing every storefront port.

Rows use the same column names as the warehouse tables. Ordering follows the
warehouse: ascending terms put nulls first, descending terms put nulls last,
and ``nulls_last`` forces nulls to the end.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Sequence

from handpicked_api.application.errors import UpstreamError
from handpicked_api.domain.listing.models import EntityKind, ListFilters, OrderTerm, Projection
from handpicked_api.domain.offers.blocks import parse_block_array
from handpicked_api.domain.offers.models import CanonicalOffer, Merchant, MerchantRef
from handpicked_api.ports.audit_sink import ClickAuditRecord

logger = logging.getLogger(__name__)

TEXT_COLUMNS = {
    EntityKind.COUPONS: "title",
    EntityKind.STORES: "name",
    EntityKind.BLOGS: "title",
}


def sort_rows(rows: list[dict[str, Any]], order: Sequence[OrderTerm]) -> list[dict[str, Any]]:
    result = list(rows)
    for term in reversed(order):
        present = [row for row in result if row.get(term.column) is not None]
        missing = [row for row in result if row.get(term.column) is None]
        present = sorted(present, key=lambda row: row[term.column], reverse=term.descending)
        if term.nulls_last or term.descending:
            result = present + missing
        else:
            result = missing + present
    return result


class InMemoryStore:
    """Default adapter for local runs and tests.

    Operations named in ``failing`` raise ``UpstreamError``, which lets tests
    exercise degraded paths. ``calls`` keeps only the most recent
    ``call_log_size`` operation names.
    """

    def __init__(
        self,
        coupons: Optional[Iterable[dict[str, Any]]] = None,
        merchants: Optional[Iterable[dict[str, Any]]] = None,
        categories: Optional[Iterable[dict[str, Any]]] = None,
        blogs: Optional[Iterable[dict[str, Any]]] = None,
        blog_categories: Optional[Iterable[dict[str, Any]]] = None,
        call_log_size: int = 1000,
    ) -> None:
        self.coupons = [dict(row) for row in coupons or []]
        self.merchants = [dict(row) for row in merchants or []]
        self.categories = [dict(row) for row in categories or []]
        self.blogs = [dict(row) for row in blogs or []]
        self.blog_categories = [dict(row) for row in blog_categories or []]
        self.clicks: list[ClickAuditRecord] = []
        self.subscriptions: dict[str, dict[str, Any]] = {}
        self.failing: set[str] = set()
        self.calls: deque[str] = deque(maxlen=call_log_size)
        self._lock = threading.Lock()

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.failing:
            raise UpstreamError(f"{operation} failed", operation=operation)

    def _merchant_row(self, merchant_id: Any) -> Optional[dict[str, Any]]:
        for row in self.merchants:
            if row.get("id") == merchant_id:
                return row
        return None

    def _joined(self, entity: EntityKind) -> list[dict[str, Any]]:
        if entity is EntityKind.COUPONS:
            joined = []
            for row in self.coupons:
                merchant = self._merchant_row(row.get("merchant_id")) or {}
                joined.append(
                    {
                        **row,
                        "merchant_slug": merchant.get("slug"),
                        "merchant_name": merchant.get("name"),
                        "merchant_logo_url": merchant.get("logo_url"),
                    }
                )
            return joined
        if entity is EntityKind.STORES:
            return [dict(row) for row in self.merchants]
        names = {row["id"]: row.get("name") for row in self.blog_categories}
        return [{**row, "category_name": names.get(row.get("category_id"))} for row in self.blogs]

    def _matches(self, entity: EntityKind, row: dict[str, Any], filters: ListFilters) -> bool:
        if filters.published_only and not row.get("is_publish"):
            return False
        if filters.text:
            value = str(row.get(TEXT_COLUMNS[entity]) or "")
            if filters.text.lower() not in value.lower():
                return False
        if filters.merchant_id is not None and row.get("merchant_id") != filters.merchant_id:
            return False
        if filters.merchant_ids and row.get("merchant_id") not in filters.merchant_ids:
            return False
        if filters.category_name and filters.category_name not in (row.get("category_names") or []):
            return False
        if filters.category_id is not None and row.get("category_id") != filters.category_id:
            return False
        if filters.coupon_type and row.get("coupon_type") != filters.coupon_type:
            return False
        if filters.status in ("active", "expired"):
            as_of = filters.as_of or datetime.now(timezone.utc)
            ends_at = row.get("ends_at")
            active = ends_at is None or ends_at > as_of
            if active != (filters.status == "active"):
                return False
        if filters.before_id is not None and not row["id"] < filters.before_id:
            return False
        return True

    def _filtered(self, entity: EntityKind, filters: ListFilters) -> list[dict[str, Any]]:
        return [row for row in self._joined(entity) if self._matches(entity, row, filters)]

    # CatalogRepository

    def resolve_category_name(self, slug: str) -> Optional[str]:
        self._check("resolve_category_name")
        for row in self.categories:
            if row.get("slug") == slug:
                return row.get("name")
        return None

    def resolve_merchant_id(self, slug: str) -> Optional[int]:
        self._check("resolve_merchant_id")
        for row in self.merchants:
            if row.get("slug") == slug:
                return row["id"]
        return None

    def merchant_ids_in_category(self, category_name: str) -> list[int]:
        self._check("merchant_ids_in_category")
        return [row["id"] for row in self.merchants if category_name in (row.get("category_names") or [])]

    def fetch_rows(
        self,
        entity: EntityKind,
        filters: ListFilters,
        order: Sequence[OrderTerm],
        offset: int,
        limit: int,
        projection: Projection,
    ) -> list[dict[str, Any]]:
        self._check("fetch_rows")
        rows = sort_rows(self._filtered(entity, filters), order)
        return rows[offset : offset + limit]

    def count_rows(self, entity: EntityKind, filters: ListFilters) -> int:
        self._check("count_rows")
        return len(self._filtered(entity, filters))

    def list_categories(self) -> list[dict[str, Any]]:
        self._check("list_categories")
        result = []
        for category in sorted(self.categories, key=lambda row: str(row.get("name") or "")):
            merchant_ids = {
                row["id"] for row in self.merchants if category.get("name") in (row.get("category_names") or [])
            }
            coupon_count = sum(
                1 for row in self.coupons if row.get("is_publish") and row.get("merchant_id") in merchant_ids
            )
            result.append(
                {
                    "id": category["id"],
                    "slug": category.get("slug"),
                    "name": category.get("name"),
                    "updated_at": category.get("updated_at"),
                    "counts": {"stores": len(merchant_ids), "coupons": coupon_count},
                }
            )
        return result

    def get_store_by_slug(self, slug: str) -> Optional[dict[str, Any]]:
        self._check("get_store_by_slug")
        for row in self.merchants:
            if row.get("slug") == slug:
                return dict(row)
        return None

    def get_blog_by_slug(self, slug: str) -> Optional[dict[str, Any]]:
        self._check("get_blog_by_slug")
        for row in self._joined(EntityKind.BLOGS):
            if row.get("slug") == slug and row.get("is_publish"):
                return row
        return None

    def ping(self) -> None:
        self._check("ping")

    # OffersRepository

    def get_coupon(self, offer_id: str) -> Optional[CanonicalOffer]:
        self._check("get_coupon")
        for row in self.coupons:
            if str(row.get("id")) != offer_id:
                continue
            merchant_row = self._merchant_row(row.get("merchant_id"))
            return CanonicalOffer(
                id=str(row["id"]),
                coupon_type=str(row.get("coupon_type") or "deal"),
                title=str(row.get("title") or ""),
                description=str(row.get("description") or ""),
                code=row.get("coupon_code") or None,
                ends_at=row.get("ends_at"),
                click_count=int(row.get("click_count") or 0),
                merchant_id=row.get("merchant_id"),
                merchant=self._merchant_ref(merchant_row) if merchant_row else None,
            )
        return None

    @staticmethod
    def _merchant_ref(row: dict[str, Any]) -> MerchantRef:
        return MerchantRef(
            id=int(row["id"]),
            slug=str(row.get("slug") or ""),
            name=str(row.get("name") or ""),
            logo_url=row.get("logo_url"),
            aff_url=row.get("aff_url"),
            web_url=row.get("web_url"),
        )

    def get_merchant(self, merchant_id: int) -> Optional[Merchant]:
        self._check("get_merchant")
        row = self._merchant_row(merchant_id)
        if row is None:
            return None
        return Merchant(
            ref=self._merchant_ref(row),
            h2_blocks=parse_block_array(row.get("h2_blocks"), column="h2_blocks"),
            h3_blocks=parse_block_array(row.get("h3_blocks"), column="h3_blocks"),
        )

    def increment_click_count(self, offer_id: str) -> int:
        self._check("increment_click_count")
        with self._lock:
            for row in self.coupons:
                if str(row.get("id")) == offer_id:
                    row["click_count"] = int(row.get("click_count") or 0) + 1
                    return row["click_count"]
        return 0

    # ClickAuditSink

    def write_click(self, record: ClickAuditRecord) -> None:
        self._check("write_click")
        with self._lock:
            self.clicks.append(record)

    # SubscriptionsRepository

    def upsert_subscription(self, email: str, source: Optional[str], ip: str, created_at: datetime) -> None:
        self._check("upsert_subscription")
        with self._lock:
            existing = self.subscriptions.get(email)
            self.subscriptions[email] = {
                "email": email,
                "source": source,
                "ip": ip,
                "created_at": existing["created_at"] if existing else created_at,
            }
