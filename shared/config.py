"""
config.py – centralised env-var handling
=======================================

• Loads the first `.env` file it finds (cwd or /app) exactly **once**.
• Exposes `ENV` – a dict-like object that also supports attribute access.
• `env(key, default=None, cast=None)` helper for one-off lookups
  with automatic type-casting (int, float, bool).
• `Settings.from_env()` – frozen snapshot of everything the services read.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from .constants import (
    HTTP_TIMEOUT_SEC,
    PUBLISH_EXCHANGE,
    PUBLISH_ROUTING_KEY,
    REFRESH_EVERY_SEC,
    STALE_AFTER_MIN,
)

# ───── locate & load .env (first one wins) ────────────────────────────
for candidate in (Path.cwd() / ".env", Path("/app/.env")):
    if candidate.is_file():
        load_dotenv(dotenv_path=candidate, override=False)
        break

# ───── ENV proxy object ───────────────────────────────────────────────
class _Env(dict):
    """Attr-style access to `os.environ` while staying dict-compatible."""

    def __getattr__(self, item: str) -> str | None:  # noqa: D401
        return os.getenv(item)

    def __getitem__(self, key: str) -> str:
        return os.environ[key]

    def get(self, key: str, default: Any = None, cast: Optional[type] = None) -> Any:  # noqa: D401
        val = os.getenv(key, default)
        if cast is not None and val is not None:
            try:
                if cast is bool:
                    return str(val).lower() in ("1", "true", "yes", "y")
                return cast(val)
            except (ValueError, TypeError):
                return default
        return val


ENV: _Env = _Env(os.environ)  # public alias

def env(key: str, default: Any = None, cast: Optional[type] = None) -> Any:
    """Shortcut for `ENV.get(key, default, cast)`."""
    return ENV.get(key, default, cast)


# ───── typed snapshot ─────────────────────────────────────────────────
@dataclass(frozen=True)
class Settings:
    redis_url: str = "redis://redis:6379/0"
    forex_exchange_url: str = "http://flask:8000/api/forex/exchange"
    forex_timeseries_url: str = "http://flask:8000/api/forex/time-series"
    forex_timeseries_intraday_url: str = "http://flask:8000/api/forex/time-series/intraday"
    options_base_url: str = "https://query1.finance.yahoo.com/v7/finance/options"
    http_timeout: float = HTTP_TIMEOUT_SEC
    stale_after_min: int = STALE_AFTER_MIN
    refresh_interval: int = REFRESH_EVERY_SEC
    options_interval: int = 0                   # 0 = ingest at start-up only
    publish_exchange: str = PUBLISH_EXCHANGE
    publish_routing_key: str = PUBLISH_ROUTING_KEY
    forex_pairs_csv: str = ""
    currencies_csv: str = ""
    option_representative: str = "first"
    api_port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        d = cls()
        return cls(
            redis_url=env("REDIS_URL", d.redis_url),
            forex_exchange_url=env("FOREX_EXCHANGE_URL", d.forex_exchange_url),
            forex_timeseries_url=env("FOREX_TIMESERIES_URL", d.forex_timeseries_url),
            forex_timeseries_intraday_url=env(
                "FOREX_TIMESERIES_INTRADAY_URL", d.forex_timeseries_intraday_url
            ),
            options_base_url=env("OPTIONS_BASE_URL", d.options_base_url),
            http_timeout=env("HTTP_TIMEOUT", d.http_timeout, float),
            stale_after_min=env("STALE_AFTER_MIN", d.stale_after_min, int),
            refresh_interval=env("REFRESH_INTERVAL", d.refresh_interval, int),
            options_interval=env("OPTIONS_INTERVAL", d.options_interval, int),
            publish_exchange=env("PUBLISH_EXCHANGE", d.publish_exchange),
            publish_routing_key=env("PUBLISH_ROUTING_KEY", d.publish_routing_key),
            forex_pairs_csv=env("FOREX_PAIRS_CSV", d.forex_pairs_csv),
            currencies_csv=env("CURRENCIES_CSV", d.currencies_csv),
            option_representative=env("OPTION_REPRESENTATIVE", d.option_representative),
            api_port=env("API_PORT", d.api_port, int),
        )


__all__ = ["ENV", "env", "Settings"]
