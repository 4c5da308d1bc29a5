"""Resolution of inbound offer references to canonical or synthetic offers."""

from __future__ import annotations

import logging
from typing import Optional, Union

from handpicked_api.application.errors import UpstreamError
from handpicked_api.domain.offers.identifiers import (
    BlockKind,
    BlockRef,
    CanonicalRef,
    CompositeRef,
    LegacyRef,
    OfferRef,
    TrendingRef,
    UnresolvedRef,
    is_canonical_id,
    parse_composite_id,
)
from handpicked_api.domain.offers.models import (
    BlockMeta,
    CanonicalOffer,
    Merchant,
    MerchantBlock,
    ResolvedOffer,
    SyntheticOffer,
)
from handpicked_api.ports.offers_repository import OffersRepository

logger = logging.getLogger(__name__)


def classify(raw: str) -> OfferRef:
    if is_canonical_id(raw):
        return CanonicalRef(offer_id=raw)
    return parse_composite_id(raw)


def select_block(ref: CompositeRef, merchant: Merchant) -> Optional[tuple[BlockKind, int, MerchantBlock]]:
    """Pick the block ``ref`` points at; None when the index is out of range."""
    if isinstance(ref, TrendingRef):
        index = max(0, ref.position - 1)
        if index < len(merchant.h2_blocks):
            return "h2", index, merchant.h2_blocks[index]
        index -= len(merchant.h2_blocks)
        if index < len(merchant.h3_blocks):
            return "h3", index, merchant.h3_blocks[index]
        return None
    if isinstance(ref, BlockRef) or (isinstance(ref, LegacyRef) and ref.kind is not None):
        kind: BlockKind = ref.kind  # type: ignore[assignment]
        index = ref.index or 0
        blocks = merchant.blocks(kind)
        if index < len(blocks):
            return kind, index, blocks[index]
        return None
    if merchant.h2_blocks:
        return "h2", 0, merchant.h2_blocks[0]
    if merchant.h3_blocks:
        return "h3", 0, merchant.h3_blocks[0]
    return None


def synthesize_offer(offer_id: str, merchant: Merchant, kind: BlockKind, index: int, block: MerchantBlock) -> SyntheticOffer:
    return SyntheticOffer(
        id=offer_id,
        title=block.heading or f"Offer from {merchant.ref.name}",
        description=block.description,
        merchant=merchant.ref,
        block=BlockMeta(kind=kind, index=index, raw=block.raw),
        redirect_url=block.redirect_url,
    )


class OfferIdentifierResolver:
    """Turns an offer id into an offer view without mutating anything.

    A failing canonical lookup falls through to composite parsing. A failing
    merchant lookup propagates as UpstreamError.
    """

    def __init__(self, repository: OffersRepository) -> None:
        self.repository = repository

    def resolve(self, raw: str) -> Optional[ResolvedOffer]:
        offer_id = raw.strip()
        if not offer_id:
            return None
        ref = classify(offer_id)
        if isinstance(ref, CanonicalRef):
            offer = self._lookup_canonical(ref)
            if offer is not None:
                return offer
            ref = parse_composite_id(offer_id)
        if isinstance(ref, UnresolvedRef):
            return None
        return self._resolve_composite(offer_id, ref)

    def _lookup_canonical(self, ref: CanonicalRef) -> Optional[CanonicalOffer]:
        try:
            return self.repository.get_coupon(ref.offer_id)
        except UpstreamError as e:
            logger.warning(f"Coupon lookup failed for {ref.offer_id}, trying merchant blocks: {e}")
            return None

    def _resolve_composite(self, offer_id: str, ref: Union[TrendingRef, BlockRef, LegacyRef]) -> Optional[SyntheticOffer]:
        merchant = self.repository.get_merchant(ref.merchant_id)
        if merchant is None:
            logger.debug(f"Merchant {ref.merchant_id} not found for offer id {offer_id}")
            return None
        selected = select_block(ref, merchant)
        if selected is None:
            logger.debug(f"No block for offer id {offer_id} on merchant {merchant.id}")
            return None
        kind, index, block = selected
        return synthesize_offer(offer_id, merchant, kind, index, block)
