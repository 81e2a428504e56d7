from __future__ import annotations

from taskboard.rate_limit import RateLimiter


class FakeClock:
  def __init__(self) -> None:
    self.now = 1000.0

  def __call__(self) -> float:
    return self.now


def test_limit_and_window_reset() -> None:
  clock = FakeClock()
  limiter = RateLimiter(clock=clock)
  assert [limiter.hit("auth:login:ip:1", limit=2, window_seconds=60)[0] for _ in range(3)] == [True, True, False]
  allowed, retry_after = limiter.hit("auth:login:ip:1", limit=2, window_seconds=60)
  assert not allowed and 1 <= retry_after <= 60

  clock.now += 61
  assert limiter.hit("auth:login:ip:1", limit=2, window_seconds=60) == (True, 0)


def test_expired_buckets_are_evicted() -> None:
  clock = FakeClock()
  limiter = RateLimiter(sweep_seconds=30, clock=clock)
  for i in range(500):
    limiter.hit(f"auth:login:email:user{i}@example.com", limit=5, window_seconds=60)
  assert len(limiter) == 500

  clock.now += 61
  limiter.hit("auth:login:ip:1", limit=5, window_seconds=60)
  assert len(limiter) == 1


def test_live_buckets_survive_a_sweep() -> None:
  clock = FakeClock()
  limiter = RateLimiter(sweep_seconds=10, clock=clock)
  for _ in range(3):
    limiter.hit("auth:login:ip:slow", limit=3, window_seconds=300)
  limiter.hit("auth:login:ip:fast", limit=3, window_seconds=5)

  clock.now += 11
  allowed, _ = limiter.hit("auth:login:ip:slow", limit=3, window_seconds=300)
  assert not allowed
  assert len(limiter) == 1
