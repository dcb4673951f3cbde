"""
Environment variable loading for the listener.

- Loads .env from the project root (or an explicit path) when available.
- env_str and env_bool read a variable with a default; blank values
  count as unset.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

# Project root: config is solana_event_listener/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

_TRUTHY = ("1", "true", "yes", "on")


def load_listener_env(path: str | Path | None = None) -> bool:
    """Load .env (project root by default) without overriding the real environment."""
    return load_dotenv(path or _ENV_PATH, override=False)


def env_str(name: str, default: str | None = None, environ: Mapping[str, str] | None = None) -> str | None:
    env = os.environ if environ is None else environ
    raw = (env.get(name) or "").strip()
    return raw if raw else default


def env_bool(name: str, default: bool = False, environ: Mapping[str, str] | None = None) -> bool:
    raw = env_str(name, None, environ)
    if raw is None:
        return default
    return raw.lower() in _TRUTHY
