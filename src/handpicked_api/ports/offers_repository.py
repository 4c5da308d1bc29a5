from __future__ import annotations

from typing import Optional, Protocol

from handpicked_api.domain.offers.models import CanonicalOffer, Merchant


class OffersRepository(Protocol):
    def get_coupon(self, offer_id: str) -> Optional[CanonicalOffer]: ...

    def get_merchant(self, merchant_id: int) -> Optional[Merchant]: ...

    def increment_click_count(self, offer_id: str) -> int:
        """Atomically add one click store-side and return the new count."""
        ...
