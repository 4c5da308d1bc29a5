from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from handpicked_api.domain.listing.models import EntityKind, ListFilters, OrderTerm, Projection


class CatalogRepository(Protocol):
    def resolve_category_name(self, slug: str) -> Optional[str]: ...

    def resolve_merchant_id(self, slug: str) -> Optional[int]: ...

    def merchant_ids_in_category(self, category_name: str) -> list[int]: ...

    def fetch_rows(
        self,
        entity: EntityKind,
        filters: ListFilters,
        order: Sequence[OrderTerm],
        offset: int,
        limit: int,
        projection: Projection,
    ) -> list[dict[str, Any]]: ...

    def count_rows(self, entity: EntityKind, filters: ListFilters) -> int: ...

    def list_categories(self) -> list[dict[str, Any]]: ...

    def get_store_by_slug(self, slug: str) -> Optional[dict[str, Any]]: ...

    def get_blog_by_slug(self, slug: str) -> Optional[dict[str, Any]]: ...

    def ping(self) -> None: ...
