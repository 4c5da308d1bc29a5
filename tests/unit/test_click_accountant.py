"""Unit tests for ClickAccountant and AuditWriter."""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from conftest import NOW
from handpicked_api.application.audit_writer import AuditWriter
from handpicked_api.application.click_accountant import ClickAccountant, ClickContext
from handpicked_api.application.offer_resolver import OfferIdentifierResolver
from handpicked_api.ports.audit_sink import ClickAuditRecord


@pytest.fixture
def writer(store) -> AuditWriter:
    return AuditWriter(store, max_queue_size=10)


@pytest.fixture
def accountant(store, writer) -> ClickAccountant:
    return ClickAccountant(store, writer, now=lambda: NOW)


def coupon_row(store, coupon_id: int) -> dict:
    return next(row for row in store.coupons if row["id"] == coupon_id)


def test_canonical_click_increments_and_reveals_code(store, accountant, writer) -> None:
    offer = OfferIdentifierResolver(store).resolve("5")
    before = coupon_row(store, 5)["click_count"]

    outcome = accountant.record_click(offer, ClickContext(ip="1.2.3.4", user_agent="pytest"))
    writer.flush()

    assert outcome.code == "CODE5"
    assert outcome.redirect_url == "https://aff.example/acme"
    assert outcome.click_count == before + 1
    assert coupon_row(store, 5)["click_count"] == before + 1
    [record] = store.clicks
    assert record.offer_id == "5"
    assert record.merchant_id == 42
    assert record.source == "coupon"
    assert record.block_meta is None
    assert record.created_at == NOW


def test_synthetic_click_is_audited_but_not_counted(store, accountant, writer) -> None:
    counts_before = [row.get("click_count") for row in store.coupons]
    offer = OfferIdentifierResolver(store).resolve("h2-42-1")

    outcome = accountant.record_click(offer, ClickContext(ip="1.2.3.4", referrer="https://ref.example"))
    writer.flush()

    assert outcome.code is None
    assert outcome.redirect_url == "https://acme.example/shipping"
    assert outcome.click_count is None
    assert [row.get("click_count") for row in store.coupons] == counts_before
    assert "increment_click_count" not in store.calls
    [record] = store.clicks
    assert record.source == "merchant-block"
    assert record.block_meta["kind"] == "h2"
    assert record.block_meta["index"] == 1
    assert record.referrer == "https://ref.example"


def test_increment_failure_still_answers(store, accountant, writer) -> None:
    store.failing.add("increment_click_count")
    offer = OfferIdentifierResolver(store).resolve("5")
    outcome = accountant.record_click(offer, ClickContext(ip="1.2.3.4"))
    writer.flush()
    assert outcome.code == "CODE5"
    assert outcome.click_count is None
    assert len(store.clicks) == 1


def test_audit_failure_is_swallowed(store, accountant, writer) -> None:
    store.failing.add("write_click")
    offer = OfferIdentifierResolver(store).resolve("5")
    outcome = accountant.record_click(offer, ClickContext(ip="1.2.3.4"))
    writer.flush()
    assert outcome.code == "CODE5"
    assert writer.failed == 1
    assert store.clicks == []


def record(offer_id: str = "1") -> ClickAuditRecord:
    return ClickAuditRecord(
        offer_id=offer_id,
        merchant_id=None,
        ip="1.2.3.4",
        user_agent=None,
        created_at=NOW,
        source="coupon",
    )


def test_full_queue_drops_records() -> None:
    sink = Mock()
    writer = AuditWriter(sink, max_queue_size=2)
    assert writer.submit(record("1"))
    assert writer.submit(record("2"))
    assert writer.submit(record("3")) is False
    assert writer.dropped == 1
    writer.flush()
    assert sink.write_click.call_count == 2


def test_worker_drains_queue_on_stop() -> None:
    sink = Mock()
    writer = AuditWriter(sink, max_queue_size=100)
    writer.start()
    assert writer.running
    for i in range(20):
        writer.submit(record(str(i)))
    writer.stop()
    assert not writer.running
    assert sink.write_click.call_count == 20
    assert writer.written == 20
