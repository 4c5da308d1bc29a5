"""Catalog reads (coupons, stores, blogs, categories) against Databricks."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from handpicked_api.adapters.databricks.client import DatabricksSqlClient
from handpicked_api.adapters.databricks.tables import (
    BLOG_CATEGORIES_TABLE,
    BLOGS_TABLE,
    CATEGORIES_TABLE,
    COUPONS_TABLE,
    MERCHANTS_TABLE,
    build_table_name,
)
from handpicked_api.domain.listing.models import EntityKind, ListFilters, OrderTerm, Projection
from handpicked_api.settings import Settings

logger = logging.getLogger(__name__)

ALIASES = {
    EntityKind.COUPONS: "c",
    EntityKind.STORES: "m",
    EntityKind.BLOGS: "b",
}

TEXT_COLUMNS = {
    EntityKind.COUPONS: "title",
    EntityKind.STORES: "name",
    EntityKind.BLOGS: "title",
}

COMPACT_COLUMNS = {
    EntityKind.COUPONS: [
        "c.id",
        "c.title",
        "c.coupon_code",
        "c.coupon_type",
        "c.ends_at",
        "c.merchant_id",
        "c.click_count",
        "m.slug AS merchant_slug",
        "m.name AS merchant_name",
        "m.logo_url AS merchant_logo_url",
    ],
    EntityKind.STORES: ["m.id", "m.slug", "m.name", "m.logo_url", "m.active_coupons_count", "m.created_at"],
    EntityKind.BLOGS: [
        "b.id",
        "b.slug",
        "b.title",
        "b.featured_image_url",
        "b.featured_thumb_url",
        "b.is_featured",
        "b.created_at",
        "b.updated_at",
        "bc.name AS category_name",
    ],
}

FULL_EXTRA_COLUMNS = {
    EntityKind.COUPONS: [
        "c.description",
        "c.type_text",
        "c.show_proof",
        "c.proof_image_url",
        "c.is_editor",
        "c.created_at",
    ],
    EntityKind.STORES: [],
    EntityKind.BLOGS: [],
}


def like_pattern(text: str) -> str:
    """Case-insensitive substring pattern with LIKE wildcards escaped."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class DatabricksCatalogRepository:
    """Builds ``?``-parameterised list and lookup queries.

    Row and count queries share one WHERE clause built from ``ListFilters`` so
    the total always counts exactly the rows the page is drawn from.
    """

    def __init__(self, client: DatabricksSqlClient, settings: Settings) -> None:
        self.client = client
        self.settings = settings
        self.coupons_table = build_table_name(settings, COUPONS_TABLE)
        self.merchants_table = build_table_name(settings, MERCHANTS_TABLE)
        self.categories_table = build_table_name(settings, CATEGORIES_TABLE)
        self.blogs_table = build_table_name(settings, BLOGS_TABLE)
        self.blog_categories_table = build_table_name(settings, BLOG_CATEGORIES_TABLE)

    def _from_clause(self, entity: EntityKind) -> str:
        if entity is EntityKind.COUPONS:
            return f"{self.coupons_table} c LEFT JOIN {self.merchants_table} m ON m.id = c.merchant_id"
        if entity is EntityKind.STORES:
            return f"{self.merchants_table} m"
        return f"{self.blogs_table} b LEFT JOIN {self.blog_categories_table} bc ON bc.id = b.category_id"

    def _base_table(self, entity: EntityKind) -> str:
        if entity is EntityKind.COUPONS:
            return f"{self.coupons_table} c"
        if entity is EntityKind.STORES:
            return f"{self.merchants_table} m"
        return f"{self.blogs_table} b"

    def build_where(self, entity: EntityKind, filters: ListFilters) -> tuple[str, list[Any]]:
        """Return the WHERE clause (without keyword) and its parameters."""
        alias = ALIASES[entity]
        conditions: list[str] = []
        params: list[Any] = []

        if filters.published_only:
            conditions.append(f"{alias}.is_publish = true")

        if filters.text:
            conditions.append(f"{alias}.{TEXT_COLUMNS[entity]} ILIKE ?")
            params.append(like_pattern(filters.text))

        if filters.merchant_id is not None:
            conditions.append(f"{alias}.merchant_id = ?")
            params.append(filters.merchant_id)

        if filters.merchant_ids:
            placeholders = ", ".join("?" for _ in filters.merchant_ids)
            conditions.append(f"{alias}.merchant_id IN ({placeholders})")
            params.extend(filters.merchant_ids)

        if filters.category_name:
            conditions.append(f"array_contains({alias}.category_names, ?)")
            params.append(filters.category_name)

        if filters.category_id is not None:
            conditions.append(f"{alias}.category_id = ?")
            params.append(filters.category_id)

        if filters.coupon_type:
            conditions.append(f"{alias}.coupon_type = ?")
            params.append(filters.coupon_type)

        if filters.status in ("active", "expired"):
            as_of = (filters.as_of or datetime.now(timezone.utc)).isoformat()
            if filters.status == "active":
                conditions.append(f"({alias}.ends_at IS NULL OR {alias}.ends_at > ?)")
            else:
                conditions.append(f"{alias}.ends_at <= ?")
            params.append(as_of)

        if filters.before_id is not None:
            conditions.append(f"{alias}.id < ?")
            params.append(filters.before_id)

        return (" AND ".join(conditions) or "1 = 1"), params

    @staticmethod
    def build_order_by(entity: EntityKind, order: Sequence[OrderTerm]) -> str:
        alias = ALIASES[entity]
        terms = []
        for term in order:
            clause = f"{alias}.{term.column} {'DESC' if term.descending else 'ASC'}"
            if term.nulls_last:
                clause += " NULLS LAST"
            terms.append(clause)
        return ", ".join(terms)

    def fetch_rows(
        self,
        entity: EntityKind,
        filters: ListFilters,
        order: Sequence[OrderTerm],
        offset: int,
        limit: int,
        projection: Projection,
    ) -> list[dict[str, Any]]:
        columns = list(COMPACT_COLUMNS[entity])
        if projection is Projection.FULL:
            columns.extend(FULL_EXTRA_COLUMNS[entity])
        where_clause, params = self.build_where(entity, filters)

        sql = f"""
        SELECT
            {", ".join(columns)}
        FROM {self._from_clause(entity)}
        WHERE {where_clause}
        ORDER BY {self.build_order_by(entity, order)}
        LIMIT ? OFFSET ?
        """
        params.extend([limit, offset])

        rows = self.client.query(sql, params)
        logger.debug(f"Fetched {len(rows)} {entity.value} rows (offset={offset}, limit={limit})")
        return rows

    def count_rows(self, entity: EntityKind, filters: ListFilters) -> int:
        where_clause, params = self.build_where(entity, filters)
        sql = f"""
        SELECT COUNT(*) AS total
        FROM {self._base_table(entity)}
        WHERE {where_clause}
        """
        rows = self.client.query(sql, params)
        return int(rows[0]["total"]) if rows else 0

    def resolve_category_name(self, slug: str) -> Optional[str]:
        sql = f"SELECT name FROM {self.categories_table} WHERE slug = ? LIMIT 1"
        rows = self.client.query(sql, [slug])
        return rows[0]["name"] if rows else None

    def resolve_merchant_id(self, slug: str) -> Optional[int]:
        sql = f"SELECT id FROM {self.merchants_table} WHERE slug = ? LIMIT 1"
        rows = self.client.query(sql, [slug])
        return int(rows[0]["id"]) if rows else None

    def merchant_ids_in_category(self, category_name: str) -> list[int]:
        sql = f"SELECT id FROM {self.merchants_table} WHERE array_contains(category_names, ?)"
        rows = self.client.query(sql, [category_name])
        return [int(row["id"]) for row in rows]

    def list_categories(self) -> list[dict[str, Any]]:
        sql = f"""
        SELECT
            cat.id,
            cat.slug,
            cat.name,
            cat.updated_at,
            COUNT(DISTINCT m.id) AS store_count,
            COUNT(DISTINCT c.id) AS coupon_count
        FROM {self.categories_table} cat
        LEFT JOIN {self.merchants_table} m ON array_contains(m.category_names, cat.name)
        LEFT JOIN {self.coupons_table} c ON c.merchant_id = m.id AND c.is_publish = true
        GROUP BY cat.id, cat.slug, cat.name, cat.updated_at
        ORDER BY cat.name ASC
        """
        rows = self.client.query(sql)
        return [
            {
                "id": row["id"],
                "slug": row.get("slug"),
                "name": row.get("name"),
                "updated_at": row.get("updated_at"),
                "counts": {
                    "stores": int(row.get("store_count") or 0),
                    "coupons": int(row.get("coupon_count") or 0),
                },
            }
            for row in rows
        ]

    def get_store_by_slug(self, slug: str) -> Optional[dict[str, Any]]:
        sql = f"""
        SELECT
            id, slug, name, logo_url, web_url, description, category_names,
            active_coupons_count, h2_blocks, h3_blocks
        FROM {self.merchants_table}
        WHERE slug = ?
        LIMIT 1
        """
        rows = self.client.query(sql, [slug])
        return rows[0] if rows else None

    def get_blog_by_slug(self, slug: str) -> Optional[dict[str, Any]]:
        sql = f"""
        SELECT
            b.id, b.slug, b.title, b.content, b.featured_image_url, b.featured_thumb_url,
            b.is_featured, b.created_at, b.updated_at, bc.name AS category_name
        FROM {self.blogs_table} b
        LEFT JOIN {self.blog_categories_table} bc ON bc.id = b.category_id
        WHERE b.slug = ? AND b.is_publish = true
        LIMIT 1
        """
        rows = self.client.query(sql, [slug])
        return rows[0] if rows else None

    def ping(self) -> None:
        self.client.query("SELECT 1 AS ok")
