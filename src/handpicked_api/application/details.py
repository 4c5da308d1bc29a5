"""Shaping of store and blog detail rows."""

from __future__ import annotations

from typing import Any

from handpicked_api.domain.offers.blocks import parse_block_array
from handpicked_api.domain.offers.identifiers import BlockKind, block_offer_id


def _annotated_blocks(row: dict[str, Any], kind: BlockKind) -> list[dict[str, Any]]:
    blocks = parse_block_array(row.get(f"{kind}_blocks"), column=f"{kind}_blocks")
    return [
        {
            "offer_id": block_offer_id(kind, row["id"], index),
            "heading": block.heading,
            "description": block.description,
            "redirect_url": block.redirect_url,
        }
        for index, block in enumerate(blocks)
    ]


def shape_store_detail(row: dict[str, Any]) -> dict[str, Any]:
    """Store detail; each block carries the composite offer id clients click with."""
    return {
        "id": row["id"],
        "slug": row.get("slug"),
        "name": row.get("name"),
        "logo_url": row.get("logo_url"),
        "web_url": row.get("web_url"),
        "description": row.get("description"),
        "categories": list(row.get("category_names") or []),
        "stats": {"active_coupons": row.get("active_coupons_count") or 0},
        "h2_blocks": _annotated_blocks(row, "h2"),
        "h3_blocks": _annotated_blocks(row, "h3"),
    }


def shape_blog_detail(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": row["id"],
        "slug": row.get("slug"),
        "title": row.get("title"),
        "content": row.get("content"),
        "hero_image_url": row.get("featured_image_url") or row.get("featured_thumb_url") or None,
        "category": row.get("category_name"),
        "is_featured": bool(row.get("is_featured")),
        "created_at": row.get("created_at"),
        "updated_at": row.get("updated_at"),
    }
