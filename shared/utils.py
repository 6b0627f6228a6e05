"""
utils.py – small generic helpers reused in multiple services
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional


def now_local() -> datetime:
    """Naive local wall-clock time, the timestamp type stored on records."""
    return datetime.now()


def epoch_ms_to_local_date(ms: int | float) -> date:
    """Calendar date of an epoch-millisecond instant in the local zone."""
    return datetime.fromtimestamp(float(ms) / 1000.0).date()


def parse_datetime(val: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(val) if val else None


def parse_date(val: Optional[str]) -> Optional[date]:
    return date.fromisoformat(val) if val else None


def pair_symbol(from_code: str, to_code: str) -> str:
    """'USD', 'EUR' → 'USD/EUR'."""
    return f"{from_code}/{to_code}"
