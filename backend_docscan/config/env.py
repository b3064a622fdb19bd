"""
Environment variable loading and typed getters for DocScan.

- Loads .env from project root when available.
- Getters strip whitespace, fall back to defaults on empty values, and raise
  ConfigError on values that cannot be parsed.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from backend_docscan.core.exceptions import ConfigError

# Project root: config is backend_docscan/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"


def load_docscan_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env."""
    if _ENV_PATH.is_file():
        load_dotenv(_ENV_PATH, override=False)


def env_str(key: str, default: str) -> str:
    raw = os.getenv(key)
    if raw is None:
        return default
    return raw.strip()


def env_float(key: str, default: float) -> float:
    raw = (os.getenv(key) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from e


def env_int(key: str, default: int) -> int:
    raw = (os.getenv(key) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from e


def env_choice(key: str, default: str, choices: tuple[str, ...]) -> str:
    raw = (os.getenv(key) or "").strip().lower() or default
    if raw not in choices:
        raise ConfigError(f"{key} must be one of {', '.join(choices)}, got {raw!r}")
    return raw
