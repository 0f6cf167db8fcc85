from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name, str(default)).strip()
    try:
        return int(v)
    except ValueError as err:
        raise ValueError(f"Environment variable {name} must be an integer; got {v!r}") from err


def _getenv_str(name: str, default: str) -> str:
    return os.getenv(name, default).strip()


def _getenv_bool(name: str, default: bool) -> bool:
    """
    Read a loosely-typed boolean from the environment.

    Treats "1", "true", "yes", "on" (case-insensitive) as True;
    "0", "false", "no", "off", "" as False. If unset, returns default.
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off", ""}:
        return False
    # Fallback: any other non-empty value -> True
    return True


# Load .env from project root if present
ROOT = Path(__file__).resolve().parents[1]
load_dotenv(ROOT / ".env", override=False)

DEFAULT_DB_URL = f"sqlite:///{(ROOT / 'dev.db').as_posix()}"

# -------------------------------
# Search endpoint (keyset pagination)
# -------------------------------
SEARCH_DEFAULT_LIMIT: int = _getenv_int("SEARCH_DEFAULT_LIMIT", 50)
SEARCH_MAX_LIMIT: int = _getenv_int("SEARCH_MAX_LIMIT", 200)

# Cache-Control for GET /api/advocates; identical query+cursor reads are idempotent.
SEARCH_CACHE_MAX_AGE: int = _getenv_int("SEARCH_CACHE_MAX_AGE", 60)
SEARCH_CACHE_SWR: int = _getenv_int("SEARCH_CACHE_SWR", 300)

# -------------------------------
# Optional Redis first-page cache
# -------------------------------
ADVOCATE_SEARCH_CACHE_ENABLED: bool = _getenv_bool("ADVOCATE_SEARCH_CACHE_ENABLED", False)
ADVOCATE_SEARCH_CACHE_TTL_SECONDS: int = _getenv_int("ADVOCATE_SEARCH_CACHE_TTL_SECONDS", 60)
REDIS_URL: str = _getenv_str("REDIS_URL", "redis://127.0.0.1:6379/0")

# -------------------------------
# Dev-data seeding
# -------------------------------
# The HTTP seed endpoint has no auth; keep it off unless explicitly enabled.
SEED_ENDPOINT_ENABLED: bool = _getenv_bool("SEED_ENDPOINT_ENABLED", False)
SEED_DEFAULT_COUNT: int = _getenv_int("SEED_DEFAULT_COUNT", 1000)
SEED_MAX_COUNT: int = _getenv_int("SEED_MAX_COUNT", 10000)
SEED_BATCH_SIZE: int = _getenv_int("SEED_BATCH_SIZE", 1000)

# -------------------------------
# Client controller
# -------------------------------
CLIENT_DEBOUNCE_MS: int = _getenv_int("CLIENT_DEBOUNCE_MS", 250)
CLIENT_BASE_URL: str = _getenv_str("CLIENT_BASE_URL", "http://127.0.0.1:8000")

# -------------------------------
# API server (scripts/serve.py)
# -------------------------------
API_HOST: str = _getenv_str("HOST", "127.0.0.1")
API_PORT: int = _getenv_int("PORT", 8000)

LOG_LEVEL: str = _getenv_str("LOG_LEVEL", "INFO").upper()


@dataclass(frozen=True)
class Settings:
    DB_URL: str = _getenv_str("DATABASE_URL", DEFAULT_DB_URL)
    LOG_LEVEL: str = LOG_LEVEL

    search_default_limit: int = SEARCH_DEFAULT_LIMIT
    search_max_limit: int = SEARCH_MAX_LIMIT
    search_cache_max_age: int = SEARCH_CACHE_MAX_AGE
    search_cache_swr: int = SEARCH_CACHE_SWR

    seed_endpoint_enabled: bool = SEED_ENDPOINT_ENABLED
    seed_default_count: int = SEED_DEFAULT_COUNT
    seed_max_count: int = SEED_MAX_COUNT


settings: Settings = Settings()

__all__ = [
    "Settings",
    "settings",
    "DEFAULT_DB_URL",
    "SEARCH_DEFAULT_LIMIT",
    "SEARCH_MAX_LIMIT",
    "SEARCH_CACHE_MAX_AGE",
    "SEARCH_CACHE_SWR",
    "ADVOCATE_SEARCH_CACHE_ENABLED",
    "ADVOCATE_SEARCH_CACHE_TTL_SECONDS",
    "REDIS_URL",
    "SEED_ENDPOINT_ENABLED",
    "SEED_DEFAULT_COUNT",
    "SEED_MAX_COUNT",
    "SEED_BATCH_SIZE",
    "CLIENT_DEBOUNCE_MS",
    "CLIENT_BASE_URL",
    "API_HOST",
    "API_PORT",
    "LOG_LEVEL",
]
