"""
staleness.py – when does a forex record need a new quote?
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from shared.constants import STALE_AFTER_MIN

STALE_AFTER = timedelta(minutes=STALE_AFTER_MIN)


def is_stale(last_refresh: Optional[datetime], now: datetime,
             threshold: timedelta = STALE_AFTER) -> bool:
    """True iff more than `threshold` has passed; never-refreshed counts as stale."""
    if last_refresh is None:
        return True
    return now - last_refresh > threshold


@dataclass(frozen=True)
class StalenessPolicy:
    threshold: timedelta = STALE_AFTER

    @classmethod
    def minutes(cls, n: int) -> "StalenessPolicy":
        return cls(timedelta(minutes=n))

    def is_stale(self, last_refresh: Optional[datetime], now: datetime) -> bool:
        return is_stale(last_refresh, now, self.threshold)
