from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def configure_logging(level: str | int | None = None) -> None:
  """Sends log records to stdout. Level defaults to $LOG_LEVEL, then INFO."""
  if level is None:
    load_dotenv()
    level = (os.getenv("LOG_LEVEL") or "INFO").upper()
  logging.basicConfig(level=level, format=_LOG_FORMAT, stream=sys.stdout, force=True)
  # Request lines from urllib3 duplicate the client's own debug output.
  logging.getLogger("urllib3").setLevel(logging.WARNING)
