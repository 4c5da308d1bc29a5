"""Offer identifier grammar.

Inbound offer references are either canonical store keys (digits or UUID) or
composite ids pointing at a block embedded in a merchant row:

- ``trending-<merchantId>-<n>``: 1-based position across h2 blocks then h3 blocks
- ``h2-<merchantId>-<i>`` / ``h3-<merchantId>-<i>``: 0-based index into that array
- ``merchant-<id>[-h2-<i>]``: legacy form; without a block part it means the
  merchant's first block
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Literal, Optional, Union

BlockKind = Literal["h2", "h3"]

_NUMERIC_ID = re.compile(r"^\d+$")
_UUID_ID = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


@dataclass(frozen=True)
class CanonicalRef:
    offer_id: str


@dataclass(frozen=True)
class TrendingRef:
    merchant_id: int
    position: int  # 1-based


@dataclass(frozen=True)
class BlockRef:
    kind: BlockKind
    merchant_id: int
    index: int  # 0-based


@dataclass(frozen=True)
class LegacyRef:
    merchant_id: int
    kind: Optional[BlockKind] = None
    index: Optional[int] = None


@dataclass(frozen=True)
class UnresolvedRef:
    raw: str


CompositeRef = Union[TrendingRef, BlockRef, LegacyRef]
OfferRef = Union[CanonicalRef, TrendingRef, BlockRef, LegacyRef, UnresolvedRef]


def is_canonical_id(raw: str) -> bool:
    return bool(_NUMERIC_ID.match(raw) or _UUID_ID.match(raw))


def _trending(m: re.Match[str]) -> TrendingRef:
    return TrendingRef(merchant_id=int(m.group(1)), position=int(m.group(2)))


def _block(m: re.Match[str]) -> BlockRef:
    kind: BlockKind = "h2" if m.group(1).lower() == "h2" else "h3"
    return BlockRef(kind=kind, merchant_id=int(m.group(2)), index=int(m.group(3)))


def _legacy(m: re.Match[str]) -> LegacyRef:
    if m.group(2) is None:
        return LegacyRef(merchant_id=int(m.group(1)))
    kind: BlockKind = "h2" if m.group(2) == "2" else "h3"
    return LegacyRef(merchant_id=int(m.group(1)), kind=kind, index=int(m.group(3)))


# Evaluated in order; first match wins.
COMPOSITE_PATTERNS: tuple[tuple[re.Pattern[str], Callable[[re.Match[str]], CompositeRef]], ...] = (
    (re.compile(r"^trending-(\d+)-(\d+)$", re.IGNORECASE), _trending),
    (re.compile(r"^(h[23])-(\d+)-(\d+)$", re.IGNORECASE), _block),
    (re.compile(r"^(?:merchant[:\-])?(\d+)(?:[:\-]h([23])[:\-]?(\d+))?$", re.IGNORECASE), _legacy),
)


def parse_composite_id(raw: str) -> Union[CompositeRef, UnresolvedRef]:
    for pattern, build in COMPOSITE_PATTERNS:
        match = pattern.match(raw)
        if match:
            return build(match)
    return UnresolvedRef(raw=raw)


def block_offer_id(kind: BlockKind, merchant_id: int, index: int) -> str:
    """Composite id a client can send back to click the block at ``index``."""
    return f"{kind}-{merchant_id}-{index}"
