"""Runtime configuration read from the environment.

Values may also come from a ``.env`` file in the working directory. The
engine itself takes every setting as an explicit argument; this module only
gathers them for the command-line front end and for callers that want the
same defaults.
"""

from __future__ import annotations

import json
import logging
import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

from currency import DEFAULT_RATES

load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if parsed <= 0:
        raise ValueError(f"{name} must be positive, got {parsed}")
    return parsed


def _env_path(name: str) -> Optional[Path]:
    value = os.getenv(name)
    if not value:
        return None
    return Path(value).expanduser()


def load_rate_table(path: Path) -> Dict[str, Decimal]:
    """Load a ``{code: rate}`` JSON mapping relative to the reference currency."""

    with Path(path).open(encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"Rate table in {path} must be a JSON object")

    rates: Dict[str, Decimal] = {}
    for code, rate in raw.items():
        try:
            value = Decimal(str(rate))
        except InvalidOperation:
            raise ValueError(f"Invalid rate for {code!r} in {path}: {rate!r}")
        if value <= 0:
            raise ValueError(f"Rate for {code!r} in {path} must be positive")
        rates[code] = value
    return rates


class Config:
    """Settings for a simulation run and the CLI around it."""

    def __init__(self) -> None:
        self.MAX_MONTHS = _env_int("PAYOFF_MAX_MONTHS", 1200)
        self.DEFAULT_STRATEGY = os.getenv("PAYOFF_DEFAULT_STRATEGY", "avalanche")
        self.RATES_FILE = _env_path("PAYOFF_RATES_FILE")
        self.LOG_DIR = _env_path("PAYOFF_LOG_DIR")
        self.DATA_FILE = _env_path("PAYOFF_DATA_FILE") or Path(__file__).with_name(
            "financial_data.json"
        )

        level = os.getenv("PAYOFF_LOG_LEVEL", "INFO").upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"PAYOFF_LOG_LEVEL is not a logging level: {level!r}")
        self.LOG_LEVEL = level

    def rate_table(self) -> Dict[str, Decimal]:
        """Return the built-in rates overlaid with ``RATES_FILE`` if set."""

        rates = dict(DEFAULT_RATES)
        if self.RATES_FILE is not None:
            rates.update(load_rate_table(self.RATES_FILE))
        return rates
