from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from datetime import datetime
from typing import Any, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from twelvedata_client.config import TwelvedataConfig
from twelvedata_client.gate import (
  FREE_TIER_CALLS_PER_MINUTE,
  CallRateGate,
  Clock,
  RateQuota,
  now_ms,
)
from twelvedata_client.intervals import BarInterval
from twelvedata_client.models import SecuritySet, TimeSeries
from twelvedata_client.result import ErrorKind, Failure, Result, Success
from twelvedata_client.transport import RequestsTransport, Transport

M = TypeVar("M", bound=BaseModel)

# --- Module-level Constants ---
_TIME_SERIES_PATH = "time_series"
_SYMBOL_SEARCH_PATH = "symbol_search"
_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

SYMBOL_SEARCH_MIN_RESULTS = 1
SYMBOL_SEARCH_MAX_RESULTS = 120
TIME_SERIES_MIN_BARS = 1
TIME_SERIES_MAX_BARS = 5000


def clamp_output_size(requested: int, lower: int, upper: int) -> int:
  """Clamps a requested result count into [lower, upper] instead of rejecting it."""
  return max(lower, min(upper, requested))


def _format_datetime(value: datetime) -> str:
  return value.strftime(_DATETIME_FORMAT)


def _mask(api_key: str | None) -> str:
  if not api_key:
    return "None"
  return f"...{api_key[-4:]}" if len(api_key) > 8 else "***"


def _provider_failure(body: Mapping[str, Any]) -> Failure | None:
  """Twelvedata reports some errors inside a 200 response:
  {"code": 400, "message": "...", "status": "error"}.
  """
  code = body.get("code")
  if code is None and body.get("status") != "error":
    return None
  try:
    code = int(code) if code is not None else None
  except (TypeError, ValueError):
    code = None
  return Failure(ErrorKind.PROVIDER_ERROR, str(body.get("message") or ""), code=code)


def classify_response(response: requests.Response | None, model: type[M]) -> Result[M]:
  """Turns whatever the transport returned into a Success or a Failure."""
  if response is None:
    return Failure(ErrorKind.NULL_RESPONSE, "http api response is null")

  if not 200 <= response.status_code < 300:
    return Failure(ErrorKind.HTTP_ERROR, response.text, code=response.status_code)

  try:
    body = response.json()
  except ValueError as e:
    return Failure(ErrorKind.MALFORMED_RESPONSE, f"Response is not valid JSON: {e}")

  if isinstance(body, dict):
    failure = _provider_failure(body)
    if failure is not None:
      return failure

  try:
    return Success(model.model_validate(body))
  except ValidationError as e:
    return Failure(
      ErrorKind.MALFORMED_RESPONSE,
      f"Response does not match {model.__name__}: {e.error_count()} validation errors",
    )


class TwelvedataClient:
  """Client for the twelvedata REST API.

  Every call goes through a local gate that keeps this instance under
  `max_calls_per_minute`. Two clients never share a quota, even with the same
  key. Calls are blocking and serialized per instance; nothing is retried.

  The only time limit is the transport's timeout (`TwelvedataConfig.timeout`
  for the default transport). The instance lock is held for the whole HTTP
  call, so while a request is in flight `is_call_allowed()` and
  `call_history` wait for it, up to that timeout.
  """

  def __init__(
    self,
    api_key: str | None = None,
    max_calls_per_minute: int = FREE_TIER_CALLS_PER_MINUTE,
    *,
    transport: Transport | None = None,
    clock: Clock = now_ms,
  ):
    self.api_key = api_key
    self._gate = CallRateGate(RateQuota(max_calls_per_minute), clock=clock)
    self._clock = clock
    self._transport = transport or RequestsTransport()
    self._lock = threading.Lock()
    logging.info(f"Init new {self!r}")

  @classmethod
  def from_config(
    cls, config: TwelvedataConfig, transport: Transport | None = None, clock: Clock = now_ms
  ) -> TwelvedataClient:
    if transport is None:
      transport = RequestsTransport(base_url=config.base_url, timeout=config.timeout)
    return cls(
      config.api_key,
      config.max_calls_per_minute,
      transport=transport,
      clock=clock,
    )

  @property
  def api_key(self) -> str | None:
    return self._api_key

  @api_key.setter
  def api_key(self, value: str | None) -> None:
    if not value:
      logging.warning("Twelvedata client has no api key; calls will be rejected upstream")
      value = None
    self._api_key = value

  @property
  def max_calls_per_minute(self) -> int:
    return self._gate.quota.max_calls_per_minute

  @property
  def call_history(self) -> tuple[int, ...]:
    """Timestamps (ms) of calls sent, newest first."""
    with self._lock:
      return self._gate.history

  def is_call_allowed(self) -> bool:
    with self._lock:
      return self._gate.is_call_allowed()

  def fetch_time_series(
    self,
    symbol: str,
    interval: BarInterval | str,
    start: datetime,
    end: datetime,
  ) -> Result[TimeSeries]:
    """Fetches the bars of `symbol` between `start` and `end`.

    The interval token is passed through as is; twelvedata rejects unknown ones.
    `start` and `end` must both be naive or both be timezone-aware; a mixed
    pair is reported as an invalid date range.
    """
    try:
      ordered = start < end
    except TypeError:
      return Failure(
        ErrorKind.INVALID_DATE_RANGE,
        f"start {start} and end {end} mix naive and timezone-aware datetimes",
      )
    if not ordered:
      return Failure(
        ErrorKind.INVALID_DATE_RANGE, f"start {start} must be less than end {end}"
      )

    params = {
      "format": "json",
      "symbol": symbol,
      "interval": str(interval),
      "start_date": _format_datetime(start),
      "end_date": _format_datetime(end),
      "apikey": self._api_key,
    }
    logging.debug(f"Fetching {interval} time series for {symbol} from {start} to {end}")
    result = self._call(_TIME_SERIES_PATH, params, TimeSeries)
    if isinstance(result, Success):
      logging.info(f"Fetched time series of length {len(result.payload.values)} for {symbol}")
    return result

  def fetch_time_series_bars(
    self,
    symbol: str,
    interval: BarInterval | str,
    end: datetime,
    output_size: int,
  ) -> Result[TimeSeries]:
    """Fetches the `output_size` bars of `symbol` that end at `end`.

    Twelvedata ignores start_date when outputsize is given, so a bar count is
    always anchored on the end datetime. `output_size` is clamped to [1, 5000].
    """
    output_size = clamp_output_size(output_size, TIME_SERIES_MIN_BARS, TIME_SERIES_MAX_BARS)
    params = {
      "format": "json",
      "symbol": symbol,
      "interval": str(interval),
      "end_date": _format_datetime(end),
      "outputsize": output_size,
      "apikey": self._api_key,
    }
    logging.debug(f"Fetching {output_size} x {interval} bars for {symbol} ending {end}")
    result = self._call(_TIME_SERIES_PATH, params, TimeSeries)
    if isinstance(result, Success):
      logging.info(f"Fetched time series of length {len(result.payload.values)} for {symbol}")
    return result

  def symbol_lookup(self, symbol: str, max_results: int) -> Result[SecuritySet]:
    """Searches securities matching `symbol`.

    `max_results` is clamped to [1, 120], the range twelvedata accepts.
    """
    output_size = clamp_output_size(
      max_results, SYMBOL_SEARCH_MIN_RESULTS, SYMBOL_SEARCH_MAX_RESULTS
    )
    params = {"symbol": symbol, "outputsize": output_size, "apikey": self._api_key}
    logging.info(f"Performing symbol lookup for {symbol}")
    result = self._call(_SYMBOL_SEARCH_PATH, params, SecuritySet)
    if isinstance(result, Success):
      logging.info(f"Fetched {len(result.payload.data)} matching securities")
    return result

  def _call(self, path: str, params: Mapping[str, Any], model: type[M]) -> Result[M]:
    with self._lock:
      if not self._gate.is_call_allowed():
        message = f"Hit max api call limit of {self.max_calls_per_minute} per minute"
        logging.warning(message)
        return Failure(ErrorKind.CALL_LIMIT_EXCEEDED, message)

      try:
        response = self._transport.get(path, params)
      except (requests.exceptions.RequestException, OSError) as e:
        logging.error(f"No comms with twelvedata on /{path}: {e}", exc_info=True)
        return Failure(ErrorKind.NO_COMMS, str(e))
      finally:
        # Every request that left the process counts against the quota.
        self._gate.record_call(self._clock())

    result = classify_response(response, model)
    if isinstance(result, Failure):
      logging.error(f"Twelvedata /{path} failed: {result}")
    return result

  def __repr__(self) -> str:
    return (
      f"TwelvedataClient(api_key={_mask(self._api_key)}, "
      f"max_calls_per_minute={self.max_calls_per_minute})"
    )
