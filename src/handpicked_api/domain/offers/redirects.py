from __future__ import annotations

from typing import Iterable, Optional
from urllib.parse import urlsplit

from handpicked_api.domain.offers.models import ResolvedOffer


def is_http_url(candidate: Optional[str]) -> bool:
    if not candidate or not isinstance(candidate, str):
        return False
    parts = urlsplit(candidate.strip())
    return parts.scheme.lower() in ("http", "https") and bool(parts.netloc)


def first_http_url(candidates: Iterable[Optional[str]]) -> Optional[str]:
    """Return the first absolute http(s) candidate, skipping anything else."""
    for candidate in candidates:
        if is_http_url(candidate):
            return candidate.strip()  # type: ignore[union-attr]
    return None


def choose_redirect_url(offer: ResolvedOffer) -> Optional[str]:
    """Offer redirect, then merchant affiliate url, then merchant website."""
    merchant = offer.merchant
    return first_http_url(
        (
            offer.redirect_url,
            merchant.aff_url if merchant else None,
            merchant.web_url if merchant else None,
        )
    )
