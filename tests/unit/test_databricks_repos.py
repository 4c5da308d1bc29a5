"""Unit tests for the Databricks repositories' SQL building."""

from __future__ import annotations

import json
from unittest.mock import Mock

import pytest

from conftest import NOW
from handpicked_api.adapters.databricks.catalog_repo import DatabricksCatalogRepository, like_pattern
from handpicked_api.adapters.databricks.clicks_repo import (
    DatabricksClickAuditSink,
    DatabricksSubscriptionsRepository,
)
from handpicked_api.adapters.databricks.client import DatabricksSqlClient
from handpicked_api.adapters.databricks.offers_repo import DatabricksOffersRepository
from handpicked_api.adapters.databricks.tables import build_table_name
from handpicked_api.application.errors import UpstreamError
from handpicked_api.application.list_engine import ORDERINGS
from handpicked_api.domain.listing.models import EntityKind, ListFilters, Projection
from handpicked_api.ports.audit_sink import ClickAuditRecord
from handpicked_api.settings import Settings


@pytest.fixture
def mock_client() -> Mock:
    """Create a mock DatabricksSqlClient."""
    return Mock(spec=DatabricksSqlClient)


@pytest.fixture
def settings() -> Settings:
    return Settings(databricks_catalog="main", databricks_schema="store", databricks_table_prefix="hp_")


@pytest.fixture
def catalog(mock_client: Mock, settings: Settings) -> DatabricksCatalogRepository:
    return DatabricksCatalogRepository(mock_client, settings)


def test_build_table_name(settings: Settings) -> None:
    assert build_table_name(settings, "coupons") == "main.store.hp_coupons"
    assert build_table_name(Settings(), "coupons") == "coupons"


def test_like_pattern_escapes_wildcards() -> None:
    assert like_pattern("50%_off") == "%50\\%\\_off%"


def test_coupon_where_clause(catalog: DatabricksCatalogRepository) -> None:
    filters = ListFilters(
        text="shoes",
        published_only=True,
        merchant_ids=(1, 2),
        coupon_type="coupon",
        status="active",
        as_of=NOW,
        before_id=50,
    )
    where, params = catalog.build_where(EntityKind.COUPONS, filters)
    assert where == (
        "c.is_publish = true AND c.title ILIKE ? AND c.merchant_id IN (?, ?) AND c.coupon_type = ? "
        "AND (c.ends_at IS NULL OR c.ends_at > ?) AND c.id < ?"
    )
    assert params == ["%shoes%", 1, 2, "coupon", NOW.isoformat(), 50]


def test_expired_and_empty_filters(catalog: DatabricksCatalogRepository) -> None:
    where, params = catalog.build_where(EntityKind.COUPONS, ListFilters(status="expired", as_of=NOW))
    assert where == "c.ends_at <= ?"
    assert params == [NOW.isoformat()]
    assert catalog.build_where(EntityKind.STORES, ListFilters()) == ("1 = 1", [])


def test_order_by_ending(catalog: DatabricksCatalogRepository) -> None:
    order = ORDERINGS[EntityKind.COUPONS]["ending"]
    assert catalog.build_order_by(EntityKind.COUPONS, order) == "c.ends_at ASC NULLS LAST, c.id DESC"


def test_fetch_rows_query(catalog: DatabricksCatalogRepository, mock_client: Mock) -> None:
    mock_client.query.return_value = [{"id": 1}]
    rows = catalog.fetch_rows(
        EntityKind.STORES,
        ListFilters(category_name="Fashion"),
        ORDERINGS[EntityKind.STORES]["newest"],
        40,
        20,
        Projection.FULL,
    )
    assert rows == [{"id": 1}]
    sql, params = mock_client.query.call_args[0]
    assert "FROM main.store.hp_merchants m" in sql
    assert "WHERE array_contains(m.category_names, ?)" in sql
    assert "ORDER BY m.created_at DESC, m.id DESC" in sql
    assert "LIMIT ? OFFSET ?" in sql
    assert params == ["Fashion", 20, 40]


def test_coupon_projection_joins_merchants(catalog: DatabricksCatalogRepository, mock_client: Mock) -> None:
    mock_client.query.return_value = []
    order = ORDERINGS[EntityKind.COUPONS]["latest"]
    catalog.fetch_rows(EntityKind.COUPONS, ListFilters(), order, 0, 10, Projection.COMPACT)
    compact_sql = mock_client.query.call_args[0][0]
    catalog.fetch_rows(EntityKind.COUPONS, ListFilters(), order, 0, 10, Projection.FULL)
    full_sql = mock_client.query.call_args[0][0]
    assert "LEFT JOIN main.store.hp_merchants m ON m.id = c.merchant_id" in compact_sql
    assert "m.slug AS merchant_slug" in compact_sql
    assert "c.description" not in compact_sql
    assert "c.description" in full_sql


def test_count_rows_uses_same_predicates(catalog: DatabricksCatalogRepository, mock_client: Mock) -> None:
    mock_client.query.return_value = [{"total": 7}]
    total = catalog.count_rows(EntityKind.BLOGS, ListFilters(published_only=True, category_id=3))
    sql, params = mock_client.query.call_args[0]
    assert total == 7
    assert "SELECT COUNT(*) AS total" in sql
    assert "b.is_publish = true AND b.category_id = ?" in sql
    assert params == [3]


def test_slug_lookups(catalog: DatabricksCatalogRepository, mock_client: Mock) -> None:
    mock_client.query.return_value = []
    assert catalog.resolve_merchant_id("acme") is None
    mock_client.query.return_value = [{"id": "42"}]
    assert catalog.resolve_merchant_id("acme") == 42
    mock_client.query.return_value = [{"name": "Fashion"}]
    assert catalog.resolve_category_name("fashion") == "Fashion"
    assert mock_client.query.call_args[0][1] == ["fashion"]


def test_list_categories_shape(catalog: DatabricksCatalogRepository, mock_client: Mock) -> None:
    mock_client.query.return_value = [
        {"id": 1, "slug": "fashion", "name": "Fashion", "updated_at": None, "store_count": 3, "coupon_count": None}
    ]
    assert catalog.list_categories() == [
        {"id": 1, "slug": "fashion", "name": "Fashion", "updated_at": None, "counts": {"stores": 3, "coupons": 0}}
    ]


def test_get_merchant_parses_blocks(mock_client: Mock, settings: Settings) -> None:
    repo = DatabricksOffersRepository(mock_client, settings)
    mock_client.query.return_value = [
        {
            "id": 42,
            "slug": "acme",
            "name": "Acme",
            "logo_url": None,
            "aff_url": "https://aff.example",
            "web_url": None,
            "h2_blocks": json.dumps([{"heading": "A"}, {"title": "B"}]),
            "h3_blocks": json.dumps({"not": "an array"}),
        }
    ]
    merchant = repo.get_merchant(42)
    assert [block.heading for block in merchant.h2_blocks] == ["A", "B"]
    assert merchant.h3_blocks == ()
    assert merchant.ref.aff_url == "https://aff.example"


def test_get_coupon_maps_row(mock_client: Mock, settings: Settings) -> None:
    repo = DatabricksOffersRepository(mock_client, settings)
    mock_client.query.return_value = [
        {
            "id": 5,
            "title": "Ten off",
            "description": None,
            "coupon_type": "coupon",
            "coupon_code": "TEN",
            "ends_at": None,
            "click_count": 3,
            "merchant_id": 42,
            "merchant_id_ref": 42,
            "merchant_slug": "acme",
            "merchant_name": "Acme",
            "merchant_logo_url": None,
            "merchant_aff_url": None,
            "merchant_web_url": "https://acme.example",
        }
    ]
    offer = repo.get_coupon("5")
    assert offer.id == "5"
    assert offer.code == "TEN"
    assert offer.merchant.web_url == "https://acme.example"
    assert mock_client.query.call_args[0][1] == ["5"]


def test_increment_is_a_single_update(mock_client: Mock, settings: Settings) -> None:
    repo = DatabricksOffersRepository(mock_client, settings)
    mock_client.query.return_value = [{"click_count": 4}]
    assert repo.increment_click_count("5") == 4
    sql, params = mock_client.execute.call_args[0]
    assert "SET click_count = coalesce(click_count, 0) + 1" in sql
    assert params == ["5"]


def test_click_audit_insert(mock_client: Mock, settings: Settings) -> None:
    sink = DatabricksClickAuditSink(mock_client, settings)
    sink.write_click(
        ClickAuditRecord(
            offer_id="h2-42-0",
            merchant_id=42,
            ip="1.2.3.4",
            user_agent="ua",
            created_at=NOW,
            source="merchant-block",
            block_meta={"kind": "h2", "index": 0, "raw": {}},
        )
    )
    sql, params = mock_client.execute.call_args[0]
    assert "INSERT INTO main.store.hp_offer_clicks" in sql
    assert params[0] == "h2-42-0"
    assert json.loads(params[7]) == {"kind": "h2", "index": 0, "raw": {}}
    assert params[8] == NOW.isoformat()


def test_subscription_merge(mock_client: Mock, settings: Settings) -> None:
    repo = DatabricksSubscriptionsRepository(mock_client, settings)
    repo.upsert_subscription("a@example.com", "footer", "1.2.3.4", NOW)
    sql, params = mock_client.execute.call_args[0]
    assert "MERGE INTO main.store.hp_newsletter_subscriptions AS target" in sql
    assert "ON target.email = source.email" in sql
    assert params == ["a@example.com", "footer", "1.2.3.4", NOW.isoformat()]


@pytest.fixture
def flaky_client() -> DatabricksSqlClient:
    """A real client over a connection whose first commit fails."""
    client = DatabricksSqlClient(Settings(), initial_delay=0)
    connection = Mock()
    connection.commit.side_effect = [RuntimeError("commit response lost"), None, None]
    client._connection = connection
    return client


def test_click_audit_insert_is_not_retried(flaky_client: DatabricksSqlClient, settings: Settings) -> None:
    sink = DatabricksClickAuditSink(flaky_client, settings)
    with pytest.raises(UpstreamError):
        sink.write_click(
            ClickAuditRecord(
                offer_id="5",
                merchant_id=42,
                ip="1.2.3.4",
                user_agent=None,
                created_at=NOW,
                source="coupon",
            )
        )
    cursor = flaky_client._connection.cursor.return_value
    assert cursor.execute.call_count == 1


def test_click_increment_is_not_retried(flaky_client: DatabricksSqlClient, settings: Settings) -> None:
    repo = DatabricksOffersRepository(flaky_client, settings)
    with pytest.raises(UpstreamError):
        repo.increment_click_count("5")
    cursor = flaky_client._connection.cursor.return_value
    assert cursor.execute.call_count == 1


def test_subscription_merge_is_retried(flaky_client: DatabricksSqlClient, settings: Settings) -> None:
    repo = DatabricksSubscriptionsRepository(flaky_client, settings)
    repo.upsert_subscription("a@example.com", None, "1.2.3.4", NOW)
    cursor = flaky_client._connection.cursor.return_value
    assert cursor.execute.call_count == 2
    assert flaky_client._connection.commit.call_count == 2
