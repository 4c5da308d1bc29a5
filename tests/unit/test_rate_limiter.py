"""Unit tests for FixedWindowRateLimiter."""

from __future__ import annotations

import time

import pytest

from handpicked_api.application.errors import RateLimitedError
from handpicked_api.application.rate_limiter import FixedWindowRateLimiter


@pytest.fixture
def wall_clock(clock, monkeypatch):
    """Drive the window storage's wall clock from the fake clock."""
    monkeypatch.setattr(time, "time", clock)
    return clock


def test_thirteenth_click_in_window_is_rejected(wall_clock) -> None:
    limiter = FixedWindowRateLimiter(limit=12, window_seconds=60)
    key = "1.2.3.4:h2-42-0"
    for _ in range(12):
        assert limiter.check(key).allowed
    with pytest.raises(RateLimitedError) as exc_info:
        limiter.check(key)
    assert exc_info.value.retry_after_seconds == 60


def test_window_resets_after_expiry(wall_clock) -> None:
    limiter = FixedWindowRateLimiter(limit=12, window_seconds=60)
    key = "1.2.3.4:5"
    for _ in range(13):
        limiter.hit(key)
    wall_clock.advance(61)
    decision = limiter.check(key)
    assert decision.allowed
    assert decision.count == 1


def test_window_stays_closed_until_it_expires(wall_clock) -> None:
    limiter = FixedWindowRateLimiter(limit=1, window_seconds=60)
    limiter.hit("k")
    wall_clock.advance(59)
    decision = limiter.hit("k")
    assert decision.allowed is False
    assert decision.count == 2
    assert decision.reset_in_seconds == pytest.approx(1)


def test_keys_are_independent(wall_clock) -> None:
    limiter = FixedWindowRateLimiter(limit=1)
    assert limiter.hit("ip:a").allowed
    assert limiter.hit("ip:b").allowed
    assert limiter.hit("other-ip:a").allowed
    assert not limiter.hit("ip:a").allowed


def test_limiters_do_not_share_counters(wall_clock) -> None:
    clicks = FixedWindowRateLimiter(limit=1, name="click")
    subscribes = FixedWindowRateLimiter(limit=1, name="subscribe")
    clicks.hit("1.2.3.4")
    assert subscribes.hit("1.2.3.4").allowed


def test_capacity_evicts_least_recently_used(wall_clock) -> None:
    limiter = FixedWindowRateLimiter(limit=1, capacity=2)
    limiter.hit("a")
    limiter.hit("b")
    limiter.hit("a")  # refreshes "a"; its window is still over the limit
    limiter.hit("c")  # evicts "b"
    assert len(limiter) == 2
    assert limiter.hit("a").allowed is False
    assert limiter.hit("b").count == 1
