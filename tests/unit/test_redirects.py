"""Unit tests for redirect target selection."""

from __future__ import annotations

from handpicked_api.domain.offers.models import BlockMeta, CanonicalOffer, MerchantRef, SyntheticOffer
from handpicked_api.domain.offers.redirects import choose_redirect_url, is_http_url


def merchant(aff_url=None, web_url=None) -> MerchantRef:
    return MerchantRef(id=1, slug="m", name="M", aff_url=aff_url, web_url=web_url)


def synthetic(redirect_url=None, **merchant_urls) -> SyntheticOffer:
    return SyntheticOffer(
        id="h2-1-0",
        title="Block",
        description="",
        merchant=merchant(**merchant_urls),
        block=BlockMeta(kind="h2", index=0, raw={}),
        redirect_url=redirect_url,
    )


def test_is_http_url() -> None:
    assert is_http_url("https://example.com/x")
    assert is_http_url("HTTP://example.com")
    assert not is_http_url("ftp://example.com")
    assert not is_http_url("javascript:alert(1)")
    assert not is_http_url("/relative/path")
    assert not is_http_url("")
    assert not is_http_url(None)


def test_block_redirect_wins() -> None:
    offer = synthetic("https://shop.example/deal", aff_url="https://aff.example", web_url="https://shop.example")
    assert choose_redirect_url(offer) == "https://shop.example/deal"


def test_affiliate_url_before_website() -> None:
    offer = CanonicalOffer(
        id="1",
        coupon_type="coupon",
        title="C",
        merchant=merchant(aff_url="https://aff.example", web_url="https://shop.example"),
    )
    assert choose_redirect_url(offer) == "https://aff.example"


def test_invalid_candidates_are_skipped() -> None:
    offer = synthetic("not a url", aff_url="javascript:alert(1)", web_url=" https://shop.example ")
    assert choose_redirect_url(offer) == "https://shop.example"


def test_no_valid_candidate() -> None:
    assert choose_redirect_url(synthetic(aff_url="ftp://x", web_url=None)) is None
    assert choose_redirect_url(CanonicalOffer(id="1", coupon_type="deal", title="C")) is None
