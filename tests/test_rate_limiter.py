from __future__ import annotations

from conftest import FakeClock
from orchestrator.rate_limiter import SlidingWindowRateLimiter


def test_ten_requests_admitted_eleventh_denied() -> None:
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(max_requests=10, window_sec=60, clock=clock)

    for _ in range(10):
        assert limiter.admit("1.2.3.4").allowed is True
        clock.advance(1.0)

    denied = limiter.admit("1.2.3.4")
    assert denied.allowed is False
    assert denied.retry_after_sec >= 1
    # oldest request at t=1000, now t=1010 -> 50s left in window
    assert denied.retry_after_sec == 50


def test_clients_are_isolated() -> None:
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(max_requests=2, window_sec=60, clock=clock)

    assert limiter.admit("a").allowed
    assert limiter.admit("a").allowed
    assert not limiter.admit("a").allowed
    assert limiter.admit("b").allowed
    assert limiter.tracked_clients() == 2


def test_window_slides_and_denials_are_not_recorded() -> None:
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(max_requests=2, window_sec=60, clock=clock)

    assert limiter.admit("a").allowed
    clock.advance(30)
    assert limiter.admit("a").allowed
    clock.advance(10)
    assert not limiter.admit("a").allowed
    assert not limiter.admit("a").allowed

    # first timestamp leaves the window exactly at +60s
    clock.advance(20)
    assert limiter.admit("a").allowed
    assert not limiter.admit("a").allowed


def test_retry_after_is_clamped_to_one_second() -> None:
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(max_requests=1, window_sec=60, clock=clock)

    assert limiter.admit("a").allowed
    clock.advance(59.9)
    decision = limiter.admit("a")
    assert decision.allowed is False
    assert decision.retry_after_sec == 1


def test_reset_clears_history() -> None:
    limiter = SlidingWindowRateLimiter(max_requests=1, window_sec=60, clock=FakeClock())
    assert limiter.admit("a").allowed
    assert not limiter.admit("a").allowed

    limiter.reset("a")
    assert limiter.admit("a").allowed


def test_idle_clients_are_dropped_after_a_window() -> None:
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(max_requests=10, window_sec=60, clock=clock)

    for idx in range(5):
        assert limiter.admit(f"198.51.100.{idx}").allowed
    assert limiter.tracked_clients() == 5

    clock.advance(30)
    assert limiter.admit("198.51.100.0").allowed
    assert limiter.tracked_clients() == 5

    clock.advance(31)
    assert limiter.admit("203.0.113.9").allowed
    # only the client seen at +30s still has a request inside the window
    assert limiter.tracked_clients() == 2
