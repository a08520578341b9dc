from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
  from twelvedata_client.result import Failure

ErrorContext = Mapping[str, str]


class TwelvedataError(Exception):
  def __init__(self, message: str, *, context: ErrorContext | None = None) -> None:
    self.context = dict(context) if context else {}
    super().__init__(message)


class ConfigError(TwelvedataError, ValueError):
  pass


class UnsupportedBarWidthError(TwelvedataError, ValueError):
  pass


class TradingCalendarError(TwelvedataError):
  pass


class ResultError(TwelvedataError):
  """Raised when unwrapping a failed call result."""

  def __init__(self, failure: Failure) -> None:
    self.failure = failure
    context = {"kind": failure.kind.value}
    if failure.code is not None:
      context["code"] = str(failure.code)
    super().__init__(failure.message, context=context)
