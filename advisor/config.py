"""Runtime settings read from environment variables.

Env vars:
  ADVISOR_DATA_DIR=<path>          -> folder for calculators.json / rates.json (default: user_data)
  ADVISOR_LOG_LEVEL=INFO           -> root logging level
  ADVISOR_DEFAULT_PROVINCE=ON      -> province used when a request omits one
  ADVISOR_INFLATION_RATE=2.5       -> preferred inflation rate (%) for new fixed income inputs
  ADVISOR_PORT=8000                -> port for `python -m advisor.backend`
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    data_dir: str = "user_data"
    log_level: str = "INFO"
    default_province: str = "ON"
    preferred_inflation_rate: float = 2.5
    port: int = 8000

    @property
    def calculators_path(self) -> str:
        return os.path.join(self.data_dir, "calculators.json")

    @property
    def rates_path(self) -> str:
        return os.path.join(self.data_dir, "rates.json")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            data_dir=os.getenv("ADVISOR_DATA_DIR", "user_data") or "user_data",
            log_level=(os.getenv("ADVISOR_LOG_LEVEL", "INFO") or "INFO").upper(),
            default_province=(os.getenv("ADVISOR_DEFAULT_PROVINCE", "ON") or "ON").upper(),
            preferred_inflation_rate=_env_float("ADVISOR_INFLATION_RATE", 2.5),
            port=_env_int("ADVISOR_PORT", 8000),
        )


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or Settings.from_env()
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
