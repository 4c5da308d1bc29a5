from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable, Optional

from handpicked_api.adapters.databricks.catalog_repo import DatabricksCatalogRepository
from handpicked_api.adapters.databricks.client import DatabricksSqlClient
from handpicked_api.adapters.databricks.clicks_repo import (
    DatabricksClickAuditSink,
    DatabricksSubscriptionsRepository,
)
from handpicked_api.adapters.databricks.offers_repo import DatabricksOffersRepository
from handpicked_api.adapters.memory.store import InMemoryStore
from handpicked_api.application.audit_writer import AuditWriter
from handpicked_api.application.click_accountant import ClickAccountant
from handpicked_api.application.list_engine import ListQueryEngine
from handpicked_api.application.offer_resolver import OfferIdentifierResolver
from handpicked_api.application.rate_limiter import FixedWindowRateLimiter
from handpicked_api.application.result_cache import TTLResultCache
from handpicked_api.app.api.services.listing_service import ListingService
from handpicked_api.app.services import AppServices
from handpicked_api.settings import Settings, get_settings


def create_services(
    settings: Optional[Settings] = None,
    store: Optional[InMemoryStore] = None,
    clock: Callable[[], float] = time.monotonic,
    now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> AppServices:
    """
    Factory function to create the service container based on RUNTIME_ADAPTERS.

    If RUNTIME_ADAPTERS=databricks, creates Databricks adapters.
    Otherwise, uses an InMemoryStore (the one passed in, or an empty one).
    """
    settings = settings or get_settings()
    client: Optional[DatabricksSqlClient] = None

    if settings.runtime_adapters == "databricks":
        # Validate required Databricks settings
        required_settings = [
            ("DATABRICKS_SERVER_HOSTNAME", settings.databricks_server_hostname),
            ("DATABRICKS_HTTP_PATH", settings.databricks_http_path),
            ("DATABRICKS_ACCESS_TOKEN", settings.databricks_access_token),
        ]
        missing = [name for name, value in required_settings if not value]
        if missing:
            raise ValueError(f"Missing required Databricks settings: {', '.join(missing)}")

        client = DatabricksSqlClient(settings)
        catalog = DatabricksCatalogRepository(client, settings)
        offers = DatabricksOffersRepository(client, settings)
        audit_sink = DatabricksClickAuditSink(client, settings)
        subscriptions = DatabricksSubscriptionsRepository(client, settings)
    else:
        memory = store if store is not None else InMemoryStore()
        catalog = offers = audit_sink = subscriptions = memory

    cache = TTLResultCache(max_entries=settings.cache_max_entries, clock=clock)
    audit_writer = AuditWriter(audit_sink, max_queue_size=settings.audit_queue_size)

    return AppServices(
        settings=settings,
        catalog=catalog,
        offers=offers,
        subscriptions=subscriptions,
        cache=cache,
        click_limiter=FixedWindowRateLimiter(
            limit=settings.click_rate_limit,
            window_seconds=settings.click_rate_window_seconds,
            capacity=settings.click_rate_capacity,
            name="click",
        ),
        subscribe_limiter=FixedWindowRateLimiter(
            limit=settings.subscribe_rate_limit,
            window_seconds=settings.subscribe_rate_window_seconds,
            capacity=settings.click_rate_capacity,
            name="subscribe",
        ),
        audit_writer=audit_writer,
        listing=ListingService(ListQueryEngine(catalog, now=now), cache, catalog, settings),
        resolver=OfferIdentifierResolver(offers),
        accountant=ClickAccountant(offers, audit_writer, now=now),
        client=client,
    )
