from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

import requests

# --- Module-level Constants ---
API_PREFIX = "https://api.twelvedata.com"
DEFAULT_TIMEOUT_SECONDS = 30.0


class Transport(Protocol):
  """Sends a GET to a twelvedata endpoint.

  Returns the response, or None if the HTTP layer produced nothing. Network
  failures are raised as requests.exceptions.RequestException.
  """

  def get(self, path: str, params: Mapping[str, Any]) -> requests.Response | None: ...


class RequestsTransport:
  """Transport backed by a requests.Session.

  `timeout` is the only time limit applied to a call; the client itself never
  cancels or retries.
  """

  def __init__(
    self,
    base_url: str = API_PREFIX,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    session: requests.Session | None = None,
  ):
    self.base_url = base_url.rstrip("/")
    self.timeout = timeout
    self._session = session or requests.Session()

  def get(self, path: str, params: Mapping[str, Any]) -> requests.Response | None:
    url = f"{self.base_url}/{path.lstrip('/')}"
    query = {key: value for key, value in params.items() if value is not None}
    logging.debug(f"GET {url} params={sorted(k for k in query if k != 'apikey')}")
    return self._session.get(url, params=query, timeout=self.timeout)
