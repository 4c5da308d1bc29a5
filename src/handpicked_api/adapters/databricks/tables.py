from __future__ import annotations

from handpicked_api.settings import Settings

COUPONS_TABLE = "coupons"
MERCHANTS_TABLE = "merchants"
CATEGORIES_TABLE = "merchant_categories"
BLOGS_TABLE = "blogs"
BLOG_CATEGORIES_TABLE = "blog_categories"
OFFER_CLICKS_TABLE = "offer_clicks"
SUBSCRIPTIONS_TABLE = "newsletter_subscriptions"


def build_table_name(settings: Settings, table_name: str) -> str:
    """Build fully qualified table name with catalog, schema and prefix if specified."""
    parts = []
    if settings.databricks_catalog:
        parts.append(settings.databricks_catalog)
    if settings.databricks_schema:
        parts.append(settings.databricks_schema)
    parts.append(f"{settings.databricks_table_prefix}{table_name}")
    return ".".join(parts)
