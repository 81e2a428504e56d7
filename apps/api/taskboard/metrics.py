from __future__ import annotations

from collections import Counter, deque
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from time import monotonic

WINDOW_SECONDS = 15 * 60


@dataclass
class RequestSample:
  at: float
  status_code: int
  latency_ms: float


class RuntimeMetrics:
  """Sliding-window request and error statistics for ``/health``.

  Request samples come from the HTTP middleware; error codes (``not_found``,
  ``conflict``, ``internal`` ...) come from the exception handlers so the
  window can say which failure kinds callers are hitting.
  """

  def __init__(self, *, window_seconds: int = WINDOW_SECONDS, clock: Callable[[], float] = monotonic) -> None:
    self._window = window_seconds
    self._clock = clock
    self._started = clock()
    self._samples: deque[RequestSample] = deque()
    self._errors: deque[tuple[float, str]] = deque()
    self._lock = Lock()

  def observe_request(self, status_code: int, latency_ms: float) -> None:
    now = self._clock()
    with self._lock:
      self._samples.append(RequestSample(at=now, status_code=status_code, latency_ms=latency_ms))
      self._prune_locked(now)

  def observe_error(self, code: str) -> None:
    now = self._clock()
    with self._lock:
      self._errors.append((now, code))
      self._prune_locked(now)

  def _prune_locked(self, now: float) -> None:
    cutoff = now - self._window
    while self._samples and self._samples[0].at < cutoff:
      self._samples.popleft()
    while self._errors and self._errors[0][0] < cutoff:
      self._errors.popleft()

  def snapshot(self) -> dict:
    now = self._clock()
    with self._lock:
      self._prune_locked(now)
      samples = list(self._samples)
      by_code = Counter(code for _, code in self._errors)

    total = len(samples)
    server_errors = sum(1 for s in samples if s.status_code >= 500)
    client_errors = sum(1 for s in samples if 400 <= s.status_code < 500)
    p95_ms = 0.0
    if samples:
      latencies = sorted(s.latency_ms for s in samples)
      p95_ms = latencies[max(0, int(len(latencies) * 0.95) - 1)]

    return {
      "uptimeSeconds": max(0, int(now - self._started)),
      "requestCount15m": total,
      "errorCount15m": server_errors,
      "clientErrorCount15m": client_errors,
      "errorRate15m": round((server_errors / total) * 100, 2) if total else 0.0,
      "errorsByCode15m": dict(sorted(by_code.items())),
      "p95LatencyMs15m": round(p95_ms, 2),
    }
