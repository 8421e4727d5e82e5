from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger: logging.Logger = logging.getLogger(__name__)

# Environment variables (may also be placed in a `.env` file)
ENV_WARN_ON_INCONSISTENCY = "MONETA_WARN_ON_INCONSISTENCY"
ENV_CURRENCIES_CSV = "MONETA_CURRENCIES_CSV"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    """Process-wide settings of moneta.

    Attributes:
        warn_on_inconsistency (bool): Log a warning when a registry update introduces an
            inconsistency (e.g. two ISO currencies sharing a numeric code).
        currencies_csv (Path | None): CSV file with the currency table used to seed the default
            registry instead of the built-in one.
    """

    warn_on_inconsistency: bool = True
    currencies_csv: Path | None = None


def _parse_bool(name: str, raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"${name} must be a boolean flag (1/0, true/false, yes/no, on/off), but provided value is: '{raw}'")


def load_settings(env_file: str | Path | None = None) -> Settings:
    """Load settings from the environment, after reading $env_file (or a discovered `.env`).

    Values already present in the environment win over values from the `.env` file.
    """
    load_dotenv(dotenv_path=env_file)

    warn = _parse_bool(ENV_WARN_ON_INCONSISTENCY, os.environ.get(ENV_WARN_ON_INCONSISTENCY), True)
    csv_path = os.environ.get(ENV_CURRENCIES_CSV)
    currencies_csv = Path(csv_path) if csv_path and csv_path.strip() else None

    result = Settings(warn_on_inconsistency=warn, currencies_csv=currencies_csv)
    logger.debug(f"Loaded {result}")
    return result


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def set_settings(settings: Settings | None) -> None:
    """Replace cached settings (None forces a reload on next `get_settings`)."""
    global _settings
    _settings = settings
