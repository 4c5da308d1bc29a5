"""Shared fixtures: a seeded in-memory store and a controllable clock."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from handpicked_api.adapters.memory.store import InMemoryStore

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def acme_merchant() -> dict:
    return {
        "id": 42,
        "slug": "acme",
        "name": "Acme",
        "logo_url": "https://cdn.example/acme.png",
        "aff_url": "https://aff.example/acme",
        "web_url": "https://acme.example",
        "category_names": ["Fashion"],
        "active_coupons_count": 24,
        "created_at": NOW - timedelta(days=30),
        "h2_blocks": json.dumps(
            [
                {"heading": "Summer sale", "description": "Up to 50% off"},
                {"heading": "Free shipping", "redirect_url": "https://acme.example/shipping"},
            ]
        ),
        "h3_blocks": json.dumps(
            [
                {"heading": "Student discount"},
                {"heading": "Gift cards"},
                {"heading": "Bundle deals", "description": "Buy two"},
            ]
        ),
    }


def seed_store() -> InMemoryStore:
    coupons = []
    for i in range(1, 26):
        coupons.append(
            {
                "id": i,
                "title": f"Acme offer {i}",
                "coupon_type": "coupon" if i % 2 else "deal",
                "coupon_code": f"CODE{i}",
                "merchant_id": 42,
                "is_publish": True,
                "ends_at": NOW + timedelta(days=i),
                "click_count": i % 5,
                "is_editor": i == 3,
                "created_at": NOW - timedelta(days=i),
            }
        )
    coupons.extend(
        [
            {
                "id": 26,
                "title": "Expired acme offer",
                "coupon_type": "coupon",
                "coupon_code": "OLD",
                "merchant_id": 42,
                "is_publish": True,
                "ends_at": NOW - timedelta(days=1),
                "click_count": 0,
            },
            {
                "id": 27,
                "title": "Draft acme offer",
                "coupon_type": "deal",
                "merchant_id": 42,
                "is_publish": False,
                "ends_at": None,
                "click_count": 0,
            },
            {
                "id": 28,
                "title": "Travel saver",
                "coupon_type": "deal",
                "merchant_id": 7,
                "is_publish": True,
                "ends_at": None,
                "click_count": 9,
            },
        ]
    )
    merchants = [
        acme_merchant(),
        {
            "id": 7,
            "slug": "globex",
            "name": "Globex",
            "aff_url": None,
            "web_url": "ftp://globex.example",
            "category_names": ["Travel"],
            "active_coupons_count": 1,
            "created_at": NOW - timedelta(days=5),
            "h2_blocks": None,
            "h3_blocks": "not json",
        },
    ]
    categories = [
        {"id": 1, "slug": "fashion", "name": "Fashion"},
        {"id": 2, "slug": "travel", "name": "Travel"},
        {"id": 3, "slug": "garden", "name": "Garden"},
    ]
    blogs = [
        {
            "id": 1,
            "slug": "summer-tips",
            "title": "Summer shopping tips",
            "category_id": 1,
            "is_publish": True,
            "is_featured": False,
            "created_at": NOW - timedelta(days=3),
            "content": "Shop early.",
        },
        {
            "id": 2,
            "slug": "travel-hacks",
            "title": "Travel hacks",
            "category_id": 2,
            "is_publish": True,
            "is_featured": True,
            "created_at": NOW - timedelta(days=10),
        },
        {
            "id": 3,
            "slug": "draft-post",
            "title": "Draft post",
            "category_id": 1,
            "is_publish": False,
            "created_at": NOW,
        },
    ]
    blog_categories = [{"id": 1, "name": "Guides"}, {"id": 2, "name": "Travel"}]
    return InMemoryStore(
        coupons=coupons,
        merchants=merchants,
        categories=categories,
        blogs=blogs,
        blog_categories=blog_categories,
    )


@pytest.fixture
def store() -> InMemoryStore:
    return seed_store()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
