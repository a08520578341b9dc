from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

from twelvedata_client.errors import ResultError

T = TypeVar("T")


class ErrorKind(Enum):
  """Why a client call did not produce a payload."""

  INVALID_DATE_RANGE = "invalid_date_range"
  CALL_LIMIT_EXCEEDED = "call_limit_exceeded"
  NULL_RESPONSE = "null_response"
  NO_COMMS = "no_comms"
  HTTP_ERROR = "http_error"
  PROVIDER_ERROR = "provider_error"
  MALFORMED_RESPONSE = "malformed_response"


@dataclass(frozen=True)
class Success(Generic[T]):
  """A call that returned a usable payload."""

  payload: T

  @property
  def ok(self) -> bool:
    return True

  def unwrap(self) -> T:
    return self.payload


@dataclass(frozen=True)
class Failure:
  """A call that failed.

  `code` is the HTTP status for HTTP_ERROR, the provider's own code for
  PROVIDER_ERROR, and None for failures detected locally.
  """

  kind: ErrorKind
  message: str
  code: int | None = None

  @property
  def ok(self) -> bool:
    return False

  def unwrap(self):
    raise ResultError(self)

  def __str__(self) -> str:
    if self.code is None:
      return f"{self.kind.value}: {self.message}"
    return f"{self.kind.value}({self.code}): {self.message}"


Result = Union[Success[T], Failure]
