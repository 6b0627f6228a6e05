"""
filters.py – query predicates for forex and option lookups
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from .models import Forex, Option, OptionType


@dataclass(frozen=True)
class ForexFilter:
    from_currency: Optional[str] = None
    to_currency: Optional[str] = None

    def __call__(self, fx: Forex) -> bool:
        if self.from_currency and fx.from_currency.code != self.from_currency.upper():
            return False
        if self.to_currency and fx.to_currency.code != self.to_currency.upper():
            return False
        return True


@dataclass(frozen=True)
class OptionFilter:
    """`symbol` is mandatory: it also names the stock used for pricing."""

    symbol: str
    option_type: Optional[OptionType] = None
    expiration_date: Optional[date] = None

    def __call__(self, opt: Option) -> bool:
        if opt.symbol != self.symbol:
            return False
        if self.option_type is not None and opt.option_type != self.option_type:
            return False
        if self.expiration_date is not None and opt.expiration_date != self.expiration_date:
            return False
        return True
