from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Request

from handpicked_api.application.audit_writer import AuditWriter
from handpicked_api.application.click_accountant import ClickAccountant
from handpicked_api.application.offer_resolver import OfferIdentifierResolver
from handpicked_api.application.rate_limiter import FixedWindowRateLimiter
from handpicked_api.application.result_cache import TTLResultCache
from handpicked_api.app.api.services.listing_service import ListingService
from handpicked_api.ports.catalog_repository import CatalogRepository
from handpicked_api.ports.offers_repository import OffersRepository
from handpicked_api.ports.subscriptions_repository import SubscriptionsRepository
from handpicked_api.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    """Process-lifetime collaborators handed to request handlers."""

    settings: Settings
    catalog: CatalogRepository
    offers: OffersRepository
    subscriptions: SubscriptionsRepository
    cache: TTLResultCache
    click_limiter: FixedWindowRateLimiter
    subscribe_limiter: FixedWindowRateLimiter
    audit_writer: AuditWriter
    listing: ListingService
    resolver: OfferIdentifierResolver
    accountant: ClickAccountant
    client: Optional[Any] = None

    def start(self) -> None:
        self.audit_writer.start()
        logger.info("Storefront services started")

    def stop(self) -> None:
        self.audit_writer.stop()
        self.cache.clear()
        if self.client is not None:
            self.client.close()
        logger.info("Storefront services stopped")


def get_services(request: Request) -> AppServices:
    """Dependency to provide the application's service container."""
    return request.app.state.services
