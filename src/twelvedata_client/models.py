from __future__ import annotations

from enum import IntEnum

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field


class ProviderErrorCode(IntEnum):
  """Error codes twelvedata puts in the body of an error payload."""

  NO_BARS = 400  # No data between the requested datetimes.
  API_KEY = 401  # Incorrect or missing API key.
  FORBIDDEN = 403
  NOT_FOUND = 404
  TOO_MANY_REQUESTS = 429
  SERVER_ERROR = 500


class SecurityType:
  COMMON_STOCK = "Common Stock"
  ETF = "ETF"


class Meta(BaseModel):
  """Describes the security and bar width of a time series."""

  model_config = ConfigDict(from_attributes=True)

  symbol: str
  interval: str
  currency: str | None = None
  exchange_timezone: str | None = None
  exchange: str | None = None
  mic_code: str | None = None
  type: str | None = None


class TradeBar(BaseModel):
  """A single OHLCV bar. Twelvedata sends the numbers as strings."""

  model_config = ConfigDict(from_attributes=True)

  datetime: str
  open: float
  high: float
  low: float
  close: float
  # Forex and crypto series come without volume.
  volume: int = 0


class TimeSeries(BaseModel):
  """Historical trade bars for one security.

  Bars are kept in the order twelvedata sent them, which is newest first.
  """

  model_config = ConfigDict(from_attributes=True)

  meta: Meta
  values: list[TradeBar] = Field(default_factory=list)
  status: str | None = None

  def to_frame(self) -> pd.DataFrame:
    """One row per bar, in provider order."""
    columns = list(TradeBar.model_fields)
    return pd.DataFrame([bar.model_dump() for bar in self.values], columns=columns)


class Security(BaseModel):
  """A symbol_search match."""

  model_config = ConfigDict(from_attributes=True)

  symbol: str
  instrument_name: str | None = None
  exchange: str | None = None
  mic_code: str | None = None
  exchange_timezone: str | None = None
  instrument_type: str | None = None
  country: str | None = None
  currency: str | None = None


class SecuritySet(BaseModel):
  model_config = ConfigDict(from_attributes=True)

  data: list[Security] = Field(default_factory=list)
  status: str | None = None
