from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import pytest
import requests


def make_response(status: int, payload: Any = None, text: str | None = None) -> requests.Response:
  response = requests.Response()
  response.status_code = status
  response.encoding = "utf-8"
  if text is None:
    text = json.dumps(payload)
  response._content = text.encode("utf-8")
  return response


class StubTransport:
  """Records every GET and answers from a queue of responses or exceptions."""

  def __init__(self, *outcomes: Any):
    self.outcomes = list(outcomes)
    self.calls: list[tuple[str, dict[str, Any]]] = []

  def get(self, path: str, params: Mapping[str, Any]) -> requests.Response | None:
    self.calls.append((path, dict(params)))
    outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
    if isinstance(outcome, Exception):
      raise outcome
    return outcome


class FakeClock:
  def __init__(self, start: int = 1_700_000_000_000):
    self.now = start

  def __call__(self) -> int:
    return self.now

  def advance(self, ms: int) -> None:
    self.now += ms


TIME_SERIES_BODY = {
  "meta": {
    "symbol": "AAPL",
    "interval": "1day",
    "currency": "USD",
    "exchange_timezone": "America/New_York",
    "exchange": "NASDAQ",
    "mic_code": "XNGS",
    "type": "Common Stock",
  },
  "values": [
    {
      "datetime": "2021-06-08",
      "open": "126.59999",
      "high": "128.46001",
      "low": "126.21010",
      "close": "126.74000",
      "volume": "74403800",
    },
    {
      "datetime": "2021-06-07",
      "open": "126.17000",
      "high": "126.32000",
      "low": "124.83270",
      "close": "125.90000",
      "volume": "71057600",
    },
  ],
  "status": "ok",
}

SYMBOL_SEARCH_BODY = {
  "data": [
    {
      "symbol": "AA",
      "instrument_name": "Alcoa Corp",
      "exchange": "NYSE",
      "mic_code": "XNYS",
      "exchange_timezone": "America/New_York",
      "instrument_type": "Common Stock",
      "country": "United States",
      "currency": "USD",
    },
    {
      "symbol": "AAPL",
      "instrument_name": "Apple Inc",
      "exchange": "NASDAQ",
      "exchange_timezone": "America/New_York",
      "instrument_type": "Common Stock",
      "country": "United States",
      "currency": "USD",
    },
  ],
  "status": "ok",
}


@pytest.fixture
def clock() -> FakeClock:
  return FakeClock()
