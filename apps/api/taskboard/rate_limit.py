from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from time import monotonic


@dataclass
class _Bucket:
  reset_at: float
  count: int


class RateLimiter:
  """Fixed-window counters keyed by strings like ``auth:login:ip:<ip>``.

  One instance per application (see ``create_app``); counts are per process.
  Keys can carry client-supplied values (login emails), so expired windows are
  swept out at most once every ``sweep_seconds``.
  """

  def __init__(self, *, sweep_seconds: float = 60.0, clock: Callable[[], float] = monotonic) -> None:
    self._lock = Lock()
    self._buckets: dict[str, _Bucket] = {}
    self._clock = clock
    self._sweep_seconds = sweep_seconds
    self._next_sweep = clock() + sweep_seconds

  def __len__(self) -> int:
    return len(self._buckets)

  def hit(self, key: str, *, limit: int, window_seconds: int) -> tuple[bool, int]:
    """Count one attempt; returns (allowed, retry_after_seconds)."""
    now = self._clock()
    with self._lock:
      if now >= self._next_sweep:
        self._sweep_locked(now)
      b = self._buckets.get(key)
      if b is None or now >= b.reset_at:
        self._buckets[key] = _Bucket(reset_at=now + window_seconds, count=1)
        return True, 0
      if b.count >= limit:
        return False, max(1, int(b.reset_at - now))
      b.count += 1
      return True, 0

  def _sweep_locked(self, now: float) -> None:
    expired = [k for k, b in self._buckets.items() if b.reset_at <= now]
    for k in expired:
      del self._buckets[k]
    self._next_sweep = now + self._sweep_seconds
