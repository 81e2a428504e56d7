from __future__ import annotations

from taskboard.metrics import RuntimeMetrics


class FakeClock:
  def __init__(self) -> None:
    self.now = 50.0

  def __call__(self) -> float:
    return self.now


def test_snapshot_counts_statuses_and_error_codes() -> None:
  metrics = RuntimeMetrics(clock=FakeClock())
  for status_code, latency in ((200, 5.0), (404, 2.0), (409, 3.0), (500, 40.0)):
    metrics.observe_request(status_code, latency)
  for code in ("not_found", "conflict", "internal", "not_found"):
    metrics.observe_error(code)

  snap = metrics.snapshot()
  assert snap["requestCount15m"] == 4
  assert snap["errorCount15m"] == 1
  assert snap["clientErrorCount15m"] == 2
  assert snap["errorRate15m"] == 25.0
  assert snap["errorsByCode15m"] == {"conflict": 1, "internal": 1, "not_found": 2}


def test_old_samples_leave_the_window() -> None:
  clock = FakeClock()
  metrics = RuntimeMetrics(window_seconds=60, clock=clock)
  metrics.observe_request(500, 10.0)
  metrics.observe_error("internal")

  clock.now += 61
  metrics.observe_request(200, 1.0)
  snap = metrics.snapshot()
  assert snap["requestCount15m"] == 1
  assert snap["errorCount15m"] == 0
  assert snap["errorsByCode15m"] == {}
  assert snap["uptimeSeconds"] == 61
