from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Protocol

from dateutil.relativedelta import relativedelta

from twelvedata_client.errors import TradingCalendarError, UnsupportedBarWidthError

# --- Module-level Constants ---
_MAX_CALENDAR_GAP = timedelta(days=366)


class BarInterval(str, Enum):
  """Trade bar widths accepted by the time_series endpoint."""

  MIN_1 = "1min"
  MIN_5 = "5min"
  MIN_15 = "15min"
  MIN_30 = "30min"
  MIN_45 = "45min"
  HR_1 = "1h"
  HR_2 = "2h"
  HR_4 = "4h"
  HR_8 = "8h"
  DY_1 = "1day"
  WK_1 = "1week"
  MO_1 = "1month"

  def __str__(self) -> str:
    return self.value


# Month is approximated as 30 days here; offset_bars uses calendar months.
_DURATIONS: dict[BarInterval, timedelta] = {
  BarInterval.MIN_1: timedelta(minutes=1),
  BarInterval.MIN_5: timedelta(minutes=5),
  BarInterval.MIN_15: timedelta(minutes=15),
  BarInterval.MIN_30: timedelta(minutes=30),
  BarInterval.MIN_45: timedelta(minutes=45),
  BarInterval.HR_1: timedelta(hours=1),
  BarInterval.HR_2: timedelta(hours=2),
  BarInterval.HR_4: timedelta(hours=4),
  BarInterval.HR_8: timedelta(hours=8),
  BarInterval.DY_1: timedelta(days=1),
  BarInterval.WK_1: timedelta(days=7),
  BarInterval.MO_1: timedelta(days=30),
}

_STEPS: dict[BarInterval, relativedelta] = {
  BarInterval.MIN_1: relativedelta(minutes=1),
  BarInterval.MIN_5: relativedelta(minutes=5),
  BarInterval.MIN_15: relativedelta(minutes=15),
  BarInterval.MIN_30: relativedelta(minutes=30),
  BarInterval.MIN_45: relativedelta(minutes=45),
  BarInterval.HR_1: relativedelta(hours=1),
  BarInterval.HR_2: relativedelta(hours=2),
  BarInterval.HR_4: relativedelta(hours=4),
  BarInterval.HR_8: relativedelta(hours=8),
  BarInterval.DY_1: relativedelta(days=1),
  BarInterval.WK_1: relativedelta(weeks=1),
  BarInterval.MO_1: relativedelta(months=1),
}

_CALENDAR_WIDTHS = {BarInterval.WK_1, BarInterval.MO_1}


def parse_bar_width(bar_width: BarInterval | str) -> BarInterval:
  """Resolves a bar-width token, raising UnsupportedBarWidthError if unknown."""
  if isinstance(bar_width, BarInterval):
    return bar_width
  try:
    return BarInterval(bar_width)
  except ValueError as e:
    logging.warning(f"Unsupported bar width '{bar_width}'")
    raise UnsupportedBarWidthError(
      f"Unsupported bar width '{bar_width}'", context={"bar_width": str(bar_width)}
    ) from e


def bar_duration(bar_width: BarInterval | str) -> timedelta:
  return _DURATIONS[parse_bar_width(bar_width)]


def offset_bars(base: datetime, bar_width: BarInterval | str, offset: int) -> datetime:
  """Returns `base + bar_width * offset`.

  Week and month widths advance the calendar (1month from Jan 15 is Feb 15),
  the rest are fixed-length.
  """
  step = _STEPS[parse_bar_width(bar_width)]
  return base + step * offset


class TradingCalendar(Protocol):
  def is_trading_day(self, day: date) -> bool: ...


class WeekdayCalendar:
  """Monday to Friday. Knows nothing about exchange holidays."""

  def is_trading_day(self, day: date) -> bool:
    return day.weekday() < 5


def offset_bars_counted(
  base: datetime,
  bar_width: BarInterval | str,
  offset_min: int,
  calendar: TradingCalendar,
) -> datetime:
  """Like offset_bars, but guarantees at least `abs(offset_min)` bars that fall
  on trading days of `calendar` between `base` and the returned datetime.

  Week and month bars always contain a trading session, so those widths are
  passed straight to offset_bars.
  """
  width = parse_bar_width(bar_width)
  if width in _CALENDAR_WIDTHS or offset_min == 0:
    return offset_bars(base, width, offset_min)

  direction = 1 if offset_min > 0 else -1
  remaining = abs(offset_min)
  dest = base
  last_counted = base
  while remaining > 0:
    dest = offset_bars(dest, width, direction)
    if calendar.is_trading_day(dest.date()):
      remaining -= 1
      last_counted = dest
    elif abs(dest - last_counted) > _MAX_CALENDAR_GAP:
      raise TradingCalendarError(
        "Trading calendar has no trading day within a year of "
        f"{last_counted.isoformat()}",
        context={"bar_width": width.value, "base": base.isoformat()},
      )
  return dest
