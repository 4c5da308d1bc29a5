"""List endpoint orchestration: cache key, cache, query engine and links."""

from __future__ import annotations

import logging
from typing import Any, Optional

from handpicked_api.application.details import shape_blog_detail, shape_store_detail
from handpicked_api.application.errors import UpstreamError
from handpicked_api.application.list_engine import ListQueryEngine
from handpicked_api.application.result_cache import TTLResultCache
from handpicked_api.app.api.models.listing import (
    CategoryListMeta,
    CategoryListResponse,
    ListMeta,
    ListResponse,
)
from handpicked_api.domain.listing.cache_keys import build_list_cache_key
from handpicked_api.domain.listing.models import EntityKind, ListMode, ListQuery
from handpicked_api.domain.listing.pagination import (
    LinkConfig,
    build_canonical,
    build_cursor_link,
    build_prev_next,
)
from handpicked_api.ports.catalog_repository import CatalogRepository
from handpicked_api.settings import Settings

logger = logging.getLogger(__name__)


def link_params(query: ListQuery) -> dict[str, Any]:
    """Filters carried over into prev/next links; empty values are dropped."""
    kind = query.entity_kind
    if kind is EntityKind.COUPONS:
        return {
            "q": query.q or None,
            "category": query.category or None,
            "store": query.store or None,
            "type": query.type,
            "status": query.status,
            "sort": query.sort,
            "locale": query.locale or None,
        }
    if kind is EntityKind.STORES:
        return {
            "q": query.q or None,
            "category": query.category or None,
            "sort": query.sort,
            "locale": query.locale or None,
        }
    return {
        "q": query.q or None,
        "category_id": query.category or None,
        "sort": query.sort,
        "locale": query.locale or None,
    }


class ListingService:
    """Serves list pages through the process-wide result cache.

    Store failures never escape: the caller gets an empty page (total 0, or
    null in cursor mode) and that degraded page is not cached. Cached pages
    hold no canonical link; it is added per request from the caller's origin.
    """

    def __init__(
        self,
        engine: ListQueryEngine,
        cache: TTLResultCache,
        repository: CatalogRepository,
        settings: Settings,
    ) -> None:
        self.engine = engine
        self.cache = cache
        self.repository = repository
        self.settings = settings
        self.links = LinkConfig(
            api_base_url=settings.public_api_base_url,
            site_url=settings.public_site_url,
            base_path=settings.public_base_path,
        )

    def list_page(self, query: ListQuery, origin: str, path: str) -> ListResponse:
        cache_key = build_list_cache_key(query.entity_kind.value, query.cache_params())
        try:
            response = self.cache.get_or_compute(
                cache_key,
                self.settings.cache_ttl_public,
                lambda: self._build_response(query, path),
            )
        except UpstreamError as e:
            logger.warning(f"Failed to fetch {query.entity_kind.value}, serving empty page: {e}")
            response = self._degraded_response(query)
        return self._with_canonical(response, query, origin, path)

    def list_categories(self, origin: str, path: str) -> CategoryListResponse:
        canonical = build_canonical(origin, path)
        try:
            rows = self.cache.get_or_compute(
                build_list_cache_key("categories", {}),
                self.settings.cache_ttl_public,
                self.repository.list_categories,
            )
        except UpstreamError as e:
            logger.warning(f"Failed to fetch categories, serving empty list: {e}")
            rows = []
        return CategoryListResponse(data=rows, meta=CategoryListMeta(total=len(rows), canonical=canonical))

    def _with_canonical(self, response: ListResponse, query: ListQuery, origin: str, path: str) -> ListResponse:
        """Copy of a possibly cached page carrying this request's canonical link."""
        canonical = build_canonical(
            origin,
            path,
            page=query.page,
            limit=query.limit,
            q=query.q,
            category=query.category,
            store=query.store,
            sort=query.sort,
        )
        meta = response.meta.model_copy(update={"canonical": canonical})
        return response.model_copy(update={"meta": meta})

    def _build_response(self, query: ListQuery, path: str) -> ListResponse:
        result = self.engine.fetch_page(query)
        meta = ListMeta(
            page=query.page,
            limit=query.limit,
            total=result.total,
            total_exact=result.total_exact,
            canonical="",
        )

        if query.mode is ListMode.HOMEPAGE:
            return ListResponse(data=result.rows, meta=meta)

        if self.engine.uses_cursor(query):
            meta.next_cursor = result.next_cursor if result.has_more else None
            meta.has_more = result.has_more
            meta.next = build_cursor_link(path, meta.next_cursor, query.limit, link_params(query), self.links)
            return ListResponse(data=result.rows, meta=meta)

        nav = build_prev_next(
            path,
            query.page,
            query.limit,
            result.total if result.total is not None else len(result.rows),
            link_params(query),
            self.links,
        )
        meta.prev = nav.prev
        meta.next = nav.next
        meta.total_pages = nav.total_pages
        meta.next_cursor = result.next_cursor if nav.next else None
        return ListResponse(data=result.rows, meta=meta)

    def _degraded_response(self, query: ListQuery) -> ListResponse:
        meta = ListMeta(page=query.page, limit=query.limit, total=0, canonical="")
        if self.engine.uses_cursor(query):
            meta.total = None
            meta.has_more = False
        return ListResponse(data=[], meta=meta)

    def get_detail(self, kind: EntityKind, slug: str) -> Optional[dict[str, Any]]:
        """Store or blog detail by slug; store failures propagate."""
        if kind is EntityKind.STORES:
            row = self.repository.get_store_by_slug(slug)
            return shape_store_detail(row) if row else None
        if kind is EntityKind.BLOGS:
            row = self.repository.get_blog_by_slug(slug)
            return shape_blog_detail(row) if row else None
        raise ValueError(f"No detail view for {kind.value}")
