from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Optional, Union

from handpicked_api.domain.offers.identifiers import BlockKind

OfferSource = Literal["coupon", "merchant-block"]


@dataclass(frozen=True)
class MerchantBlock:
    """A heading/description block embedded in a merchant row."""

    heading: str
    description: str = ""
    redirect_url: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_payload(payload: dict[str, Any]) -> "MerchantBlock":
        return MerchantBlock(
            heading=str(payload.get("heading") or payload.get("title") or ""),
            description=str(payload.get("description") or ""),
            redirect_url=payload.get("redirect_url") or None,
            raw=dict(payload),
        )


@dataclass(frozen=True)
class MerchantRef:
    id: int
    slug: str
    name: str
    logo_url: Optional[str] = None
    aff_url: Optional[str] = None
    web_url: Optional[str] = None


@dataclass(frozen=True)
class Merchant:
    ref: MerchantRef
    h2_blocks: tuple[MerchantBlock, ...] = ()
    h3_blocks: tuple[MerchantBlock, ...] = ()

    @property
    def id(self) -> int:
        return self.ref.id

    def blocks(self, kind: BlockKind) -> tuple[MerchantBlock, ...]:
        return self.h2_blocks if kind == "h2" else self.h3_blocks


@dataclass(frozen=True)
class CanonicalOffer:
    """A coupon persisted as its own row."""

    id: str
    coupon_type: str
    title: str
    description: str = ""
    code: Optional[str] = None
    ends_at: Optional[datetime] = None
    click_count: int = 0
    merchant_id: Optional[int] = None
    merchant: Optional[MerchantRef] = None

    source: OfferSource = "coupon"

    @property
    def redirect_url(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class BlockMeta:
    kind: BlockKind
    index: int
    raw: dict[str, Any]

    def as_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "index": self.index, "raw": self.raw}


@dataclass(frozen=True)
class SyntheticOffer:
    """An offer rebuilt per request from a merchant block; never persisted."""

    id: str
    title: str
    description: str
    merchant: MerchantRef
    block: BlockMeta
    redirect_url: Optional[str] = None
    coupon_type: str = "deal"

    source: OfferSource = "merchant-block"

    @property
    def code(self) -> Optional[str]:
        return None

    @property
    def merchant_id(self) -> int:
        return self.merchant.id


ResolvedOffer = Union[CanonicalOffer, SyntheticOffer]
