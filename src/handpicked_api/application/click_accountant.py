from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from handpicked_api.application.audit_writer import AuditWriter
from handpicked_api.application.errors import UpstreamError
from handpicked_api.domain.offers.models import CanonicalOffer, ResolvedOffer, SyntheticOffer
from handpicked_api.domain.offers.redirects import choose_redirect_url
from handpicked_api.ports.audit_sink import ClickAuditRecord
from handpicked_api.ports.offers_repository import OffersRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClickContext:
    ip: str
    user_agent: Optional[str] = None
    referrer: Optional[str] = None
    platform: Optional[str] = None


@dataclass(frozen=True)
class ClickOutcome:
    code: Optional[str]
    redirect_url: Optional[str]
    click_count: Optional[int] = None


class ClickAccountant:
    """Computes the click response and records the click.

    Only canonical offers have their stored counter incremented. Every click
    is handed to the audit writer, which never blocks the caller.
    """

    def __init__(
        self,
        repository: OffersRepository,
        audit_writer: AuditWriter,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.repository = repository
        self.audit_writer = audit_writer
        self._now = now

    def record_click(self, offer: ResolvedOffer, context: ClickContext) -> ClickOutcome:
        redirect_url = choose_redirect_url(offer)
        code = offer.code if isinstance(offer, CanonicalOffer) else None

        click_count: Optional[int] = None
        if isinstance(offer, CanonicalOffer):
            try:
                click_count = self.repository.increment_click_count(offer.id)
            except UpstreamError as e:
                logger.warning(f"Click count increment failed for offer {offer.id}: {e}")

        self.audit_writer.submit(self._audit_record(offer, context))
        return ClickOutcome(code=code, redirect_url=redirect_url, click_count=click_count)

    def _audit_record(self, offer: ResolvedOffer, context: ClickContext) -> ClickAuditRecord:
        merchant_id = offer.merchant_id
        if merchant_id is None and offer.merchant is not None:
            merchant_id = offer.merchant.id
        return ClickAuditRecord(
            offer_id=offer.id,
            merchant_id=merchant_id,
            ip=context.ip,
            user_agent=context.user_agent,
            created_at=self._now(),
            source=offer.source,
            block_meta=offer.block.as_dict() if isinstance(offer, SyntheticOffer) else None,
            referrer=context.referrer,
            platform=context.platform,
        )
