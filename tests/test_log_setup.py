import logging

import pytest
from pytest import MonkeyPatch

from twelvedata_client.utils.log_setup import configure_logging


@pytest.fixture(autouse=True)
def _restore_root_logger():
  root = logging.getLogger()
  handlers, level = root.handlers[:], root.level
  yield
  root.handlers[:] = handlers
  root.setLevel(level)


def test_level_from_environment(monkeypatch: MonkeyPatch) -> None:
  monkeypatch.setenv("LOG_LEVEL", "debug")
  configure_logging()
  assert logging.getLogger().level == logging.DEBUG
  assert logging.getLogger("urllib3").level == logging.WARNING


def test_explicit_level_wins(monkeypatch: MonkeyPatch) -> None:
  monkeypatch.setenv("LOG_LEVEL", "DEBUG")
  configure_logging("ERROR")
  assert logging.getLogger().level == logging.ERROR
