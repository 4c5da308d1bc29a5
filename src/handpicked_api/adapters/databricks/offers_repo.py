"""Offer lookups and click counting against Databricks."""

from __future__ import annotations

import logging
from typing import Any, Optional

from handpicked_api.adapters.databricks.client import DatabricksSqlClient
from handpicked_api.adapters.databricks.tables import COUPONS_TABLE, MERCHANTS_TABLE, build_table_name
from handpicked_api.domain.offers.blocks import parse_block_array
from handpicked_api.domain.offers.models import CanonicalOffer, Merchant, MerchantRef
from handpicked_api.settings import Settings

logger = logging.getLogger(__name__)


def merchant_ref_from_row(row: dict[str, Any]) -> Optional[MerchantRef]:
    merchant_id = row.get("id")
    if merchant_id is None:
        return None
    return MerchantRef(
        id=int(merchant_id),
        slug=str(row.get("slug") or ""),
        name=str(row.get("name") or ""),
        logo_url=row.get("logo_url"),
        aff_url=row.get("aff_url"),
        web_url=row.get("web_url"),
    )


class DatabricksOffersRepository:
    def __init__(self, client: DatabricksSqlClient, settings: Settings) -> None:
        self.client = client
        self.settings = settings
        self.coupons_table = build_table_name(settings, COUPONS_TABLE)
        self.merchants_table = build_table_name(settings, MERCHANTS_TABLE)

    def get_coupon(self, offer_id: str) -> Optional[CanonicalOffer]:
        sql = f"""
        SELECT
            c.id, c.title, c.description, c.coupon_type, c.coupon_code, c.ends_at,
            c.click_count, c.merchant_id,
            m.id AS merchant_id_ref, m.slug AS merchant_slug, m.name AS merchant_name,
            m.logo_url AS merchant_logo_url, m.aff_url AS merchant_aff_url, m.web_url AS merchant_web_url
        FROM {self.coupons_table} c
        LEFT JOIN {self.merchants_table} m ON m.id = c.merchant_id
        WHERE CAST(c.id AS STRING) = ?
        LIMIT 1
        """
        rows = self.client.query(sql, [offer_id])
        if not rows:
            return None
        row = rows[0]
        merchant = None
        if row.get("merchant_id_ref") is not None:
            merchant = MerchantRef(
                id=int(row["merchant_id_ref"]),
                slug=str(row.get("merchant_slug") or ""),
                name=str(row.get("merchant_name") or ""),
                logo_url=row.get("merchant_logo_url"),
                aff_url=row.get("merchant_aff_url"),
                web_url=row.get("merchant_web_url"),
            )
        return CanonicalOffer(
            id=str(row["id"]),
            coupon_type=str(row.get("coupon_type") or "deal"),
            title=str(row.get("title") or ""),
            description=str(row.get("description") or ""),
            code=row.get("coupon_code") or None,
            ends_at=row.get("ends_at"),
            click_count=int(row.get("click_count") or 0),
            merchant_id=int(row["merchant_id"]) if row.get("merchant_id") is not None else None,
            merchant=merchant,
        )

    def get_merchant(self, merchant_id: int) -> Optional[Merchant]:
        sql = f"""
        SELECT id, slug, name, logo_url, aff_url, web_url, h2_blocks, h3_blocks
        FROM {self.merchants_table}
        WHERE id = ?
        LIMIT 1
        """
        rows = self.client.query(sql, [merchant_id])
        if not rows:
            return None
        row = rows[0]
        ref = merchant_ref_from_row(row)
        if ref is None:
            return None
        return Merchant(
            ref=ref,
            h2_blocks=parse_block_array(row.get("h2_blocks"), column="h2_blocks"),
            h3_blocks=parse_block_array(row.get("h3_blocks"), column="h3_blocks"),
        )

    def increment_click_count(self, offer_id: str) -> int:
        """Add one click in a single UPDATE so concurrent clicks never lose increments."""
        self.client.execute(
            f"UPDATE {self.coupons_table} SET click_count = coalesce(click_count, 0) + 1 WHERE CAST(id AS STRING) = ?",
            [offer_id],
            retry=False,
        )
        rows = self.client.query(
            f"SELECT click_count FROM {self.coupons_table} WHERE CAST(id AS STRING) = ? LIMIT 1",
            [offer_id],
        )
        count = int(rows[0]["click_count"] or 0) if rows else 0
        logger.debug(f"Offer {offer_id} click count is now {count}")
        return count
