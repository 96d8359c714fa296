# tests/site_guard/test_rate_limiter.py
import pytest

from site_guard.rate_limiter import RateLimiter


class FakeClock:
    """Handmatig verstelbare klok, zodat vensters zonder sleep getest kunnen worden."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(clock=clock)


def test_first_hit_opens_window(limiter):
    result = limiter.check("1.2.3.4", limit=3, window_seconds=60)
    assert result.allowed
    assert result.remaining == 2
    assert result.retry_after_seconds == 0


def test_limit_is_enforced_within_window(limiter, clock):
    """Na 'limit' verzoeken wordt geweigerd met een Retry-After in hele seconden."""
    for expected_remaining in (2, 1, 0):
        assert limiter.check("ip", 3, 60).remaining == expected_remaining

    clock.advance(10.5)
    denied = limiter.check("ip", 3, 60)
    assert not denied.allowed
    assert denied.remaining == 0
    assert denied.retry_after_seconds == 50


def test_window_expiry_resets_bucket(limiter, clock):
    limiter.check("ip", 1, 5)
    assert not limiter.check("ip", 1, 5).allowed

    clock.advance(5)
    result = limiter.check("ip", 1, 5)
    assert result.allowed
    assert result.remaining == 0


def test_keys_are_isolated(limiter):
    limiter.check("a", 1, 60)
    assert not limiter.check("a", 1, 60).allowed
    assert limiter.check("b", 1, 60).allowed


def test_limit_and_window_are_normalised(limiter, clock):
    """Een limiet onder 1 telt als 1 en een venster korter dan een seconde als 1 seconde."""
    assert limiter.check("ip", 0, 0.2).remaining == 0
    denied = limiter.check("ip", 0, 0.2)
    assert not denied.allowed
    assert denied.retry_after_seconds == 1

    clock.advance(1)
    assert limiter.check("ip", 2.9, 60).remaining == 1


def test_retry_after_is_at_least_one_second(limiter, clock):
    limiter.check("ip", 1, 2)
    clock.advance(1.99)
    assert limiter.check("ip", 1, 2).retry_after_seconds == 1


def test_expired_buckets_are_pruned_over_capacity(clock):
    """Verlopen buckets worden pas opgeruimd als de map boven max_buckets groeit."""
    limiter = RateLimiter(max_buckets=2, clock=clock)
    for key in ("a", "b", "c"):
        limiter.check(key, 5, 10)
    assert len(limiter) == 3

    clock.advance(11)
    limiter.check("d", 5, 10)
    assert len(limiter) == 1


def test_live_buckets_survive_pruning(clock):
    limiter = RateLimiter(max_buckets=1, clock=clock)
    limiter.check("old", 5, 10)
    clock.advance(8)
    limiter.check("new", 5, 10)
    clock.advance(3)
    limiter.check("newest", 5, 10)
    # 'old' expired at t+10, 'new' is still live until t+18
    assert len(limiter) == 2


def test_instances_do_not_share_state(clock):
    first = RateLimiter(clock=clock)
    second = RateLimiter(clock=clock)
    first.check("ip", 1, 60)
    assert second.check("ip", 1, 60).allowed


def test_reset_clears_buckets(limiter):
    limiter.check("ip", 1, 60)
    limiter.reset()
    assert len(limiter) == 0
    assert limiter.check("ip", 1, 60).allowed
