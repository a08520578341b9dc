from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

from twelvedata_client.errors import ConfigError

# --- Module-level Constants ---
FREE_TIER_CALLS_PER_MINUTE = 8
WINDOW_MS = 60_000

Clock = Callable[[], int]


def now_ms() -> int:
  """Wall-clock time in milliseconds since the epoch."""
  return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class RateQuota:
  max_calls_per_minute: int = FREE_TIER_CALLS_PER_MINUTE

  def __post_init__(self) -> None:
    if isinstance(self.max_calls_per_minute, bool) or not isinstance(
      self.max_calls_per_minute, int
    ):
      raise ConfigError(
        "max_calls_per_minute must be an integer",
        context={"value": repr(self.max_calls_per_minute)},
      )
    if self.max_calls_per_minute < 1:
      raise ConfigError(
        "max_calls_per_minute must be at least 1",
        context={"value": str(self.max_calls_per_minute)},
      )


class CallRateGate:
  """Sliding one-minute window over the calls one client has sent.

  The history is kept newest first. Only the quota-th most recent call needs
  to be inspected: if it is younger than a minute the window is full. Expired
  entries are dropped lazily, by the first check that finds the window rolled
  over.

  Not thread-safe on its own; the owning client serializes access.
  """

  def __init__(self, quota: RateQuota, clock: Clock = now_ms):
    self._quota = quota
    self._clock = clock
    self._history: deque[int] = deque()

  @property
  def quota(self) -> RateQuota:
    return self._quota

  @property
  def history(self) -> tuple[int, ...]:
    """Recorded call timestamps, newest first."""
    return tuple(self._history)

  def is_call_allowed(self, now: int | None = None) -> bool:
    """Tells whether one more call fits in the window ending at `now`.

    Does not record anything; the caller records with record_call once the
    request has actually been sent.
    """
    limit = self._quota.max_calls_per_minute
    if len(self._history) < limit:
      return True

    if now is None:
      now = self._clock()
    window_start = now - WINDOW_MS
    if self._history[limit - 1] > window_start:
      return False

    # Window rolled over: everything at or past the quota-th call has expired,
    # and so may some newer entries.
    while self._history and self._history[-1] <= window_start:
      self._history.pop()
    return True

  def record_call(self, timestamp: int | None = None) -> None:
    if timestamp is None:
      timestamp = self._clock()
    if not self._history or timestamp >= self._history[0]:
      self._history.appendleft(timestamp)
      return

    # Out-of-order timestamp: keep the history sorted newest first.
    for i, recorded in enumerate(self._history):
      if timestamp >= recorded:
        self._history.insert(i, timestamp)
        return
    self._history.append(timestamp)
