from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from twelvedata_client.errors import ConfigError
from twelvedata_client.gate import FREE_TIER_CALLS_PER_MINUTE
from twelvedata_client.transport import API_PREFIX, DEFAULT_TIMEOUT_SECONDS

CONFIG_KEY_API_KEY = "api_key"
CONFIG_KEY_MAX_CALLS = "max_calls_per_minute"
CONFIG_KEY_BASE_URL = "base_url"
CONFIG_KEY_TIMEOUT = "timeout"

_ENV_VARS = {
  CONFIG_KEY_API_KEY: "TWELVEDATA_API_KEY",
  CONFIG_KEY_MAX_CALLS: "TWELVEDATA_MAX_CALLS_PER_MINUTE",
  CONFIG_KEY_BASE_URL: "TWELVEDATA_BASE_URL",
  CONFIG_KEY_TIMEOUT: "TWELVEDATA_TIMEOUT",
}


def _parse_number(key: str, raw: object, cast: type) -> int | float:
  try:
    return cast(raw)
  except (TypeError, ValueError) as e:
    raise ConfigError(
      f"Config value '{key}' must be a number", context={"key": key, "value": str(raw)}
    ) from e


@dataclass(frozen=True)
class TwelvedataConfig:
  """Settings a client is built from. Load once, then pass it around."""

  api_key: str | None = None
  max_calls_per_minute: int = FREE_TIER_CALLS_PER_MINUTE
  base_url: str = API_PREFIX
  timeout: float = DEFAULT_TIMEOUT_SECONDS

  @classmethod
  def from_mapping(cls, mapping: Mapping[str, object]) -> TwelvedataConfig:
    """Builds a config from a string key/value map. Unknown keys are ignored."""
    kwargs: dict[str, object] = {}

    api_key = mapping.get(CONFIG_KEY_API_KEY)
    kwargs["api_key"] = str(api_key) if api_key else None

    if mapping.get(CONFIG_KEY_MAX_CALLS) not in (None, ""):
      kwargs["max_calls_per_minute"] = _parse_number(
        CONFIG_KEY_MAX_CALLS, mapping[CONFIG_KEY_MAX_CALLS], int
      )
    if mapping.get(CONFIG_KEY_BASE_URL):
      kwargs["base_url"] = str(mapping[CONFIG_KEY_BASE_URL])
    if mapping.get(CONFIG_KEY_TIMEOUT) not in (None, ""):
      kwargs["timeout"] = _parse_number(CONFIG_KEY_TIMEOUT, mapping[CONFIG_KEY_TIMEOUT], float)

    return cls(**kwargs)

  @classmethod
  def from_env(cls) -> TwelvedataConfig:
    """Reads TWELVEDATA_* variables, after loading a .env file if there is one."""
    load_dotenv()
    values = {key: os.getenv(env_var) for key, env_var in _ENV_VARS.items()}
    return cls.from_mapping({k: v for k, v in values.items() if v is not None})


def load_config_file(path: str | Path) -> TwelvedataConfig:
  """Reads a JSON object of config strings, e.g. {"api_key": "..."}.

  A missing file is not an error: the config simply has no API key.
  """
  config_path = Path(path)
  if not config_path.exists():
    logging.warning(f"Twelvedata config file missing: {config_path.absolute()}")
    return TwelvedataConfig()

  logging.info(f"Reading twelvedata config file {config_path.absolute()}")
  try:
    data = json.loads(config_path.read_text(encoding="utf-8"))
  except (OSError, json.JSONDecodeError) as e:
    raise ConfigError(
      f"Failed to read config file {config_path}: {e}", context={"path": str(config_path)}
    ) from e

  if not isinstance(data, dict):
    raise ConfigError(
      "Config file must contain a JSON object", context={"path": str(config_path)}
    )
  return TwelvedataConfig.from_mapping(data)
