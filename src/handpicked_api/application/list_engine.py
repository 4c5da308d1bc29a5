"""Per-entity list retrieval.

Three page producers share one filter predicate set:

- ``LightweightPageProducer``: one compact query, no count. Its ``total`` is the
  number of returned rows, flagged ``total_exact=False``.
- ``OffsetPageProducer``: rows in ``[offset, offset + limit - 1]`` under a
  deterministic order, plus a count query with the same predicates unless the
  caller skips it.
- ``CursorPageProducer``: keyset pagination on ``id < cursor.id`` ordered by id
  descending. It fetches exactly ``limit`` rows and reports
  ``has_more = (len(rows) == limit)``. When the remaining rows are an exact
  multiple of ``limit`` the final cursor leads to an empty page.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol

from handpicked_api.domain.listing.cursor import decode_cursor, encode_cursor
from handpicked_api.domain.listing.models import (
    DEFAULT_SORTS,
    EntityKind,
    ListFilters,
    ListMode,
    ListQuery,
    OrderTerm,
    PageResult,
    Projection,
)
from handpicked_api.ports.catalog_repository import CatalogRepository

logger = logging.getLogger(__name__)

ID_DESC = OrderTerm("id", descending=True)

ORDERINGS: dict[EntityKind, dict[str, tuple[OrderTerm, ...]]] = {
    EntityKind.COUPONS: {
        "latest": (ID_DESC,),
        "ending": (OrderTerm("ends_at", descending=False, nulls_last=True), ID_DESC),
        "trending": (OrderTerm("click_count"), ID_DESC),
        "editor": (OrderTerm("is_editor"), ID_DESC),
    },
    EntityKind.STORES: {
        "newest": (OrderTerm("created_at"), ID_DESC),
        "popular": (OrderTerm("active_coupons_count"), ID_DESC),
    },
    EntityKind.BLOGS: {
        "latest": (OrderTerm("created_at"), ID_DESC),
        "featured": (OrderTerm("is_featured"), OrderTerm("created_at"), ID_DESC),
    },
}

CURSOR_ENTITIES = frozenset({EntityKind.COUPONS})


def order_for(query: ListQuery) -> tuple[OrderTerm, ...]:
    by_sort = ORDERINGS[query.entity_kind]
    return by_sort.get(query.sort) or by_sort[DEFAULT_SORTS[query.entity_kind]]


def _merchant(row: dict[str, Any]) -> Optional[dict[str, Any]]:
    if not row.get("merchant_slug") and not row.get("merchant_name"):
        return None
    return {
        "slug": row.get("merchant_slug"),
        "name": row.get("merchant_name"),
        "logo_url": row.get("merchant_logo_url"),
    }


def shape_coupon(row: dict[str, Any], projection: Projection) -> dict[str, Any]:
    item = {
        "id": row["id"],
        "title": row.get("title"),
        "code": (row.get("coupon_code") or None) if row.get("coupon_type") == "coupon" else None,
        "ends_at": row.get("ends_at"),
        "merchant_id": row.get("merchant_id"),
        "coupon_type": row.get("coupon_type"),
        "click_count": row.get("click_count") or 0,
        "merchant": _merchant(row),
        "merchant_name": row.get("merchant_name"),
    }
    if projection is Projection.FULL:
        item.update(
            description=row.get("description"),
            type_text=row.get("type_text"),
            show_proof=bool(row.get("show_proof")),
            proof_image_url=row.get("proof_image_url") or None,
            is_editor=bool(row.get("is_editor")),
        )
    return item


def shape_store(row: dict[str, Any], projection: Projection) -> dict[str, Any]:
    return {
        "id": row["id"],
        "slug": row.get("slug"),
        "name": row.get("name"),
        "logo_url": row.get("logo_url"),
        "stats": {"active_coupons": row.get("active_coupons_count") or 0},
    }


def shape_blog(row: dict[str, Any], projection: Projection) -> dict[str, Any]:
    return {
        "id": row["id"],
        "slug": row.get("slug"),
        "title": row.get("title"),
        "hero_image_url": row.get("featured_image_url") or row.get("featured_thumb_url") or None,
        "category": row.get("category_name"),
        "created_at": row.get("created_at"),
        "updated_at": row.get("updated_at"),
        "is_featured": bool(row.get("is_featured")),
    }


SHAPERS: dict[EntityKind, Callable[[dict[str, Any], Projection], dict[str, Any]]] = {
    EntityKind.COUPONS: shape_coupon,
    EntityKind.STORES: shape_store,
    EntityKind.BLOGS: shape_blog,
}


def shape_rows(entity: EntityKind, rows: list[dict[str, Any]], projection: Projection) -> list[dict[str, Any]]:
    shaper = SHAPERS[entity]
    return [shaper(row, projection) for row in rows]


class PageProducer(Protocol):
    def produce(self, query: ListQuery, filters: ListFilters) -> PageResult: ...


class LightweightPageProducer:
    def __init__(self, repository: CatalogRepository) -> None:
        self.repository = repository

    def produce(self, query: ListQuery, filters: ListFilters) -> PageResult:
        rows = self.repository.fetch_rows(
            query.entity_kind, filters, order_for(query), query.offset, query.limit, Projection.COMPACT
        )
        shaped = shape_rows(query.entity_kind, rows, Projection.COMPACT)
        return PageResult(rows=shaped, total=len(shaped), total_exact=False)


class OffsetPageProducer:
    def __init__(self, repository: CatalogRepository, skip_count: bool = False) -> None:
        self.repository = repository
        self.skip_count = skip_count

    def produce(self, query: ListQuery, filters: ListFilters) -> PageResult:
        order = order_for(query)
        rows = self.repository.fetch_rows(query.entity_kind, filters, order, query.offset, query.limit, Projection.FULL)
        total = None if self.skip_count else self.repository.count_rows(query.entity_kind, filters)
        # Under id-descending order the last row also seeds keyset pagination.
        keyset_ready = query.entity_kind in CURSOR_ENTITIES and tuple(order) == (ID_DESC,)
        return PageResult(
            rows=shape_rows(query.entity_kind, rows, Projection.FULL),
            total=total,
            next_cursor=encode_cursor(rows[-1]) if keyset_ready and rows else None,
        )


class CursorPageProducer:
    def __init__(self, repository: CatalogRepository) -> None:
        self.repository = repository

    def produce(self, query: ListQuery, filters: ListFilters) -> PageResult:
        position = decode_cursor(query.cursor)
        keyset = dataclasses.replace(filters, before_id=position.id if position else None)
        rows = self.repository.fetch_rows(query.entity_kind, keyset, (ID_DESC,), 0, query.limit, Projection.FULL)
        return PageResult(
            rows=shape_rows(query.entity_kind, rows, Projection.FULL),
            total=None,
            next_cursor=encode_cursor(rows[-1]) if rows else None,
            has_more=len(rows) == query.limit,
        )


class ListQueryEngine:
    """Resolves slug filters against the store and dispatches to a page producer."""

    def __init__(
        self,
        repository: CatalogRepository,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.repository = repository
        self._now = now

    def uses_cursor(self, query: ListQuery) -> bool:
        return (
            query.mode is ListMode.DEFAULT
            and bool(query.cursor)
            and query.entity_kind in CURSOR_ENTITIES
        )

    def producer_for(self, query: ListQuery, skip_count: bool = False) -> PageProducer:
        if query.mode is ListMode.HOMEPAGE:
            return LightweightPageProducer(self.repository)
        if self.uses_cursor(query):
            return CursorPageProducer(self.repository)
        return OffsetPageProducer(self.repository, skip_count=skip_count)

    def resolve_filters(self, query: ListQuery) -> ListFilters:
        kind = query.entity_kind
        if kind is EntityKind.COUPONS:
            return self._coupon_filters(query)
        if kind is EntityKind.STORES:
            return self._store_filters(query)
        return self._blog_filters(query)

    def fetch_page(self, query: ListQuery, skip_count: bool = False) -> PageResult:
        filters = self.resolve_filters(query)
        if filters.match_nothing:
            logger.debug(f"{query.entity_kind.value}: filter slug did not resolve, returning empty page")
            cursor_mode = self.uses_cursor(query)
            return PageResult(rows=[], total=None if cursor_mode else 0)
        return self.producer_for(query, skip_count=skip_count).produce(query, filters)

    def _coupon_filters(self, query: ListQuery) -> ListFilters:
        filters = ListFilters(
            text=query.q,
            published_only=True,
            coupon_type=query.type if query.type and query.type != "all" else None,
            status=query.status if query.status and query.status != "all" else None,
            as_of=self._now(),
        )
        if query.store:
            merchant_id = self.repository.resolve_merchant_id(query.store)
            if merchant_id is None:
                return dataclasses.replace(filters, match_nothing=True)
            filters = dataclasses.replace(filters, merchant_id=merchant_id)
        if query.category:
            category_name = self.repository.resolve_category_name(query.category)
            if category_name is None:
                return dataclasses.replace(filters, match_nothing=True)
            merchant_ids = self.repository.merchant_ids_in_category(category_name)
            if not merchant_ids:
                return dataclasses.replace(filters, match_nothing=True)
            filters = dataclasses.replace(filters, merchant_ids=tuple(merchant_ids))
        return filters

    def _store_filters(self, query: ListQuery) -> ListFilters:
        filters = ListFilters(text=query.q)
        if query.category:
            category_name = self.repository.resolve_category_name(query.category)
            if category_name is None:
                return dataclasses.replace(filters, match_nothing=True)
            filters = dataclasses.replace(filters, category_name=category_name)
        return filters

    def _blog_filters(self, query: ListQuery) -> ListFilters:
        category_id = int(query.category) if query.category else None
        return ListFilters(text=query.q, published_only=True, category_id=category_id)
