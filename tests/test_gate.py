import random

import pytest

from twelvedata_client.errors import ConfigError
from twelvedata_client.gate import WINDOW_MS, CallRateGate, RateQuota


def _gate(limit: int, clock) -> CallRateGate:
  return CallRateGate(RateQuota(limit), clock=clock)


def test_default_quota_is_free_tier() -> None:
  assert RateQuota().max_calls_per_minute == 8


@pytest.mark.parametrize("value", [0, -3])
def test_quota_rejects_non_positive_limits(value: int) -> None:
  with pytest.raises(ConfigError):
    RateQuota(value)


def test_quota_rejects_non_integers() -> None:
  with pytest.raises(ValueError):
    RateQuota(2.5)


def test_allows_calls_until_quota_reached(clock) -> None:
  gate = _gate(3, clock)
  for _ in range(3):
    assert gate.is_call_allowed()
    gate.record_call()
    clock.advance(1_000)
  assert not gate.is_call_allowed()


def test_check_does_not_record(clock) -> None:
  gate = _gate(1, clock)
  for _ in range(5):
    assert gate.is_call_allowed()
  assert gate.history == ()


def test_history_is_newest_first(clock) -> None:
  gate = _gate(8, clock)
  gate.record_call(100)
  gate.record_call(200)
  gate.record_call(150)
  assert gate.history == (200, 150, 100)


def test_window_rolls_over_after_a_minute(clock) -> None:
  gate = _gate(2, clock)
  gate.record_call(clock.now)
  gate.record_call(clock.now + 10)
  clock.advance(WINDOW_MS)
  assert gate.is_call_allowed()
  assert gate.history == (clock.now - WINDOW_MS + 10,)


def test_call_exactly_one_minute_old_has_expired(clock) -> None:
  gate = _gate(1, clock)
  gate.record_call(clock.now)
  assert not gate.is_call_allowed(now=clock.now + WINDOW_MS - 1)
  assert gate.is_call_allowed(now=clock.now + WINDOW_MS)


def test_compaction_keeps_exactly_the_calls_in_window(clock) -> None:
  gate = _gate(3, clock)
  start = clock.now
  for offset in (0, 10_000, 20_000, 70_000, 75_000):
    gate.record_call(start + offset)
  query = start + 80_001
  assert gate.is_call_allowed(now=query)
  assert gate.history == (start + 75_000, start + 70_000)


def test_compaction_evicts_all_stale_calls(clock) -> None:
  gate = _gate(2, clock)
  for offset in (0, 1, 2, 3):
    gate.record_call(clock.now + offset)
  assert gate.is_call_allowed(now=clock.now + 10 * WINDOW_MS)
  assert gate.history == ()


def test_sliding_window_matches_brute_force_count() -> None:
  rng = random.Random(1234)
  for _ in range(200):
    limit = rng.randint(1, 6)
    gate = CallRateGate(RateQuota(limit), clock=lambda: 0)
    stamps = sorted(rng.randint(0, 300_000) for _ in range(rng.randint(0, 15)))
    for stamp in stamps:
      gate.record_call(stamp)
    query = rng.randint(0, 400_000)
    expected = sum(1 for stamp in stamps if stamp > query - WINDOW_MS) < limit
    assert gate.is_call_allowed(now=query) is expected
    if expected and len(stamps) >= limit:
      assert gate.history == tuple(
        sorted((s for s in stamps if s > query - WINDOW_MS), reverse=True)
      )
