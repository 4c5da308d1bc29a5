"""Unit tests for ListQueryEngine against the in-memory store."""

from __future__ import annotations

import pytest

from conftest import NOW
from handpicked_api.application.errors import UpstreamError
from handpicked_api.application.list_engine import (
    CursorPageProducer,
    LightweightPageProducer,
    ListQueryEngine,
    OffsetPageProducer,
)
from handpicked_api.domain.listing.cursor import decode_cursor
from handpicked_api.domain.listing.models import EntityKind, ListMode, ListQuery


@pytest.fixture
def engine(store) -> ListQueryEngine:
    return ListQueryEngine(store, now=lambda: NOW)


def coupons(**kwargs) -> ListQuery:
    return ListQuery(entity_kind=EntityKind.COUPONS, **kwargs)


def ids(result) -> list[int]:
    return [row["id"] for row in result.rows]


def test_producer_selection(engine: ListQueryEngine) -> None:
    assert isinstance(engine.producer_for(coupons()), OffsetPageProducer)
    assert isinstance(engine.producer_for(coupons(cursor="abc")), CursorPageProducer)
    assert isinstance(engine.producer_for(coupons(mode=ListMode.HOMEPAGE, cursor="abc")), LightweightPageProducer)
    # Cursors only apply to coupons.
    stores = ListQuery(entity_kind=EntityKind.STORES, cursor="abc")
    assert isinstance(engine.producer_for(stores), OffsetPageProducer)


def test_offset_latest_first_page(engine: ListQueryEngine) -> None:
    result = engine.fetch_page(coupons(limit=10))
    assert result.total == 26
    assert ids(result) == [28, 25, 24, 23, 22, 21, 20, 19, 18, 17]
    assert decode_cursor(result.next_cursor).id == 17


def test_offset_last_partial_page(engine: ListQueryEngine) -> None:
    result = engine.fetch_page(coupons(page=3, limit=10))
    assert ids(result) == [6, 5, 4, 3, 2, 1]
    assert result.total == 26


def test_offset_page_beyond_end_is_empty(engine: ListQueryEngine) -> None:
    result = engine.fetch_page(coupons(page=9, limit=10))
    assert result.rows == []
    assert result.total == 26


def test_skip_count_leaves_total_unknown(engine: ListQueryEngine, store) -> None:
    result = engine.fetch_page(coupons(limit=5), skip_count=True)
    assert result.total is None
    assert "count_rows" not in store.calls


@pytest.mark.parametrize(
    "kwargs,expected_total",
    [
        ({"type": "coupon"}, 13),
        ({"type": "deal"}, 13),
        ({"status": "expired"}, 1),
        ({"status": "all"}, 27),
        ({"q": "SAVER"}, 1),
        ({"store": "acme"}, 25),
        ({"category": "travel"}, 1),
    ],
)
def test_coupon_filters(engine: ListQueryEngine, kwargs, expected_total) -> None:
    assert engine.fetch_page(coupons(**kwargs)).total == expected_total


@pytest.mark.parametrize("kwargs", [{"store": "nobody"}, {"category": "nowhere"}, {"category": "garden"}])
def test_unresolved_slug_filter_yields_empty_page(engine: ListQueryEngine, store, kwargs) -> None:
    result = engine.fetch_page(coupons(**kwargs))
    assert result.rows == []
    assert result.total == 0
    assert "fetch_rows" not in store.calls


def test_sort_ending_puts_open_ended_last(engine: ListQueryEngine) -> None:
    result = engine.fetch_page(coupons(sort="ending", limit=100))
    assert ids(result)[:3] == [1, 2, 3]
    assert ids(result)[-1] == 28


def test_sort_trending_breaks_ties_by_id(engine: ListQueryEngine) -> None:
    result = engine.fetch_page(coupons(sort="trending", limit=6))
    assert ids(result) == [28, 24, 19, 14, 9, 4]


def test_sort_editor_pins_editor_picks(engine: ListQueryEngine) -> None:
    result = engine.fetch_page(coupons(sort="editor", limit=3))
    assert ids(result) == [3, 25, 24]


def test_coupon_shape_reveals_code_only_for_coupons(engine: ListQueryEngine) -> None:
    rows = {row["id"]: row for row in engine.fetch_page(coupons(limit=100)).rows}
    assert rows[25]["code"] == "CODE25"
    assert rows[24]["code"] is None
    assert rows[25]["merchant"] == {"slug": "acme", "name": "Acme", "logo_url": "https://cdn.example/acme.png"}
    assert "description" in rows[25]


def test_homepage_mode_counts_returned_rows(engine: ListQueryEngine, store) -> None:
    result = engine.fetch_page(coupons(mode=ListMode.HOMEPAGE, limit=8))
    assert len(result.rows) == 8
    assert result.total == 8
    assert result.total_exact is False
    assert "count_rows" not in store.calls
    assert "description" not in result.rows[0]


def test_cursor_walk_is_monotonic_and_complete(engine: ListQueryEngine) -> None:
    first = engine.fetch_page(coupons(limit=10))
    seen = ids(first)
    cursor = first.next_cursor
    while cursor:
        page = engine.fetch_page(coupons(limit=10, cursor=cursor))
        assert page.total is None
        assert all(row_id < seen[-1] for row_id in ids(page))
        seen.extend(ids(page))
        cursor = page.next_cursor if page.has_more else None
    assert seen == sorted(seen, reverse=True)
    assert len(seen) == len(set(seen)) == 26


def test_cursor_exact_multiple_ends_with_empty_page(engine: ListQueryEngine) -> None:
    first = engine.fetch_page(coupons(limit=13))
    second = engine.fetch_page(coupons(limit=13, cursor=first.next_cursor))
    assert len(second.rows) == 13
    assert second.has_more is True
    third = engine.fetch_page(coupons(limit=13, cursor=second.next_cursor))
    assert third.rows == []
    assert third.has_more is False
    assert third.next_cursor is None


def test_invalid_cursor_starts_from_the_top(engine: ListQueryEngine) -> None:
    result = engine.fetch_page(coupons(limit=3, cursor="garbage"))
    assert ids(result) == [28, 25, 24]
    assert result.total is None


def test_unresolved_filter_in_cursor_mode_has_unknown_total(engine: ListQueryEngine) -> None:
    result = engine.fetch_page(coupons(store="nobody", cursor="garbage"))
    assert result.rows == []
    assert result.total is None


def test_store_failure_propagates(engine: ListQueryEngine, store) -> None:
    store.failing.add("fetch_rows")
    with pytest.raises(UpstreamError):
        engine.fetch_page(coupons())


def test_stores_listing(engine: ListQueryEngine) -> None:
    newest = engine.fetch_page(ListQuery(entity_kind=EntityKind.STORES))
    assert ids(newest) == [7, 42]
    popular = engine.fetch_page(ListQuery(entity_kind=EntityKind.STORES, sort="popular"))
    assert ids(popular) == [42, 7]
    fashion = engine.fetch_page(ListQuery(entity_kind=EntityKind.STORES, category="fashion"))
    assert ids(fashion) == [42]
    assert fashion.rows[0]["stats"] == {"active_coupons": 24}


def test_blogs_listing(engine: ListQueryEngine) -> None:
    latest = engine.fetch_page(ListQuery(entity_kind=EntityKind.BLOGS))
    assert ids(latest) == [1, 2]
    assert latest.rows[0]["category"] == "Guides"
    featured = engine.fetch_page(ListQuery(entity_kind=EntityKind.BLOGS, sort="featured"))
    assert ids(featured) == [2, 1]
    by_category = engine.fetch_page(ListQuery(entity_kind=EntityKind.BLOGS, category="2"))
    assert ids(by_category) == [2]
