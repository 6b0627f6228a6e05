"""
models.py – entities shared by the forex and option services
============================================================

Plain dataclasses; `to_dict()` / `from_dict()` give the JSON shape used
both by the Redis repositories and by the forex publisher.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from .utils import pair_symbol, parse_date, parse_datetime

# quote-derived fields; everything else on a Forex is identity
QUOTE_FIELDS: Tuple[str, ...] = ("exchange_rate", "bid_price", "ask_price")


@dataclass(frozen=True)
class Currency:
    code: str
    name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "name": self.name}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Currency":
        return cls(code=d["code"], name=d.get("name", ""))


@dataclass
class Forex:
    from_currency: Currency
    to_currency: Currency
    symbol: str = ""
    exchange_rate: Optional[float] = None
    bid_price: Optional[float] = None
    ask_price: Optional[float] = None
    last_refresh: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.symbol:
            self.symbol = pair_symbol(self.from_currency.code, self.to_currency.code)

    @property
    def key(self) -> str:
        return pair_symbol(self.from_currency.code, self.to_currency.code)

    def merge_quote(self, quote: Mapping[str, Any], now: datetime) -> "Forex":
        """
        Return a copy with the quote fields present in `quote` overwritten
        and `last_refresh` advanced to `now` (never moved backwards).
        Identity fields are left alone.
        """
        changes: Dict[str, Any] = {
            f: float(quote[f]) for f in QUOTE_FIELDS if quote.get(f) is not None
        }
        last = self.last_refresh
        changes["last_refresh"] = now if last is None or now > last else last
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "from_currency": self.from_currency.to_dict(),
            "to_currency": self.to_currency.to_dict(),
            "exchange_rate": self.exchange_rate,
            "bid_price": self.bid_price,
            "ask_price": self.ask_price,
            "last_refresh": self.last_refresh.isoformat() if self.last_refresh else None,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Forex":
        return cls(
            from_currency=Currency.from_dict(d["from_currency"]),
            to_currency=Currency.from_dict(d["to_currency"]),
            symbol=d.get("symbol", ""),
            exchange_rate=d.get("exchange_rate"),
            bid_price=d.get("bid_price"),
            ask_price=d.get("ask_price"),
            last_refresh=parse_datetime(d.get("last_refresh")),
        )


@dataclass(frozen=True)
class Stock:
    symbol: str
    price: float

    @property
    def key(self) -> str:
        return self.symbol

    def to_dict(self) -> Dict[str, Any]:
        return {"symbol": self.symbol, "price": self.price}

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Stock":
        return cls(symbol=d["symbol"], price=float(d["price"]))


class OptionType(str, Enum):
    CALL = "CALL"
    PUT = "PUT"


class TimeSeries(Enum):
    """Granularities accepted by the forex time-series endpoints."""

    FIVE_MIN = "5min"
    HOUR = "60min"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def intraday(self) -> bool:
        return self in (TimeSeries.FIVE_MIN, TimeSeries.HOUR)


@dataclass
class Option:
    symbol: str
    strike: float
    option_type: OptionType
    expiration_date: date
    ask: Optional[float] = None
    bid: Optional[float] = None
    price: Optional[float] = None
    seq: int = 0                    # tells apart repeated (symbol, type, strike, expiry) rows

    @property
    def contract(self) -> str:
        return f"{self.symbol}:{self.option_type.value}:{self.strike}:{self.expiration_date.isoformat()}"

    @property
    def key(self) -> str:
        return f"{self.contract}#{self.seq}" if self.seq else self.contract

    def priced(self, price: float) -> "Option":
        """Copy with ask/bid/price all set to `price`."""
        return replace(self, ask=price, bid=price, price=price)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "strike": self.strike,
            "option_type": self.option_type.value,
            "expiration_date": self.expiration_date.isoformat(),
            "ask": self.ask,
            "bid": self.bid,
            "price": self.price,
            "seq": self.seq,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Option":
        return cls(
            symbol=d["symbol"],
            strike=float(d["strike"]),
            option_type=OptionType(d["option_type"]),
            expiration_date=parse_date(d["expiration_date"]),
            ask=d.get("ask"),
            bid=d.get("bid"),
            price=d.get("price"),
            seq=int(d.get("seq", 0)),
        )


@dataclass
class OptionSummary:
    """One row per (strike, type); computed per query, never stored."""

    strike: float
    option_type: OptionType
    open_interest: int
    symbol: str = ""
    expiration_date: Optional[date] = None
    ask: Optional[float] = None
    bid: Optional[float] = None
    price: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strike": self.strike,
            "option_type": self.option_type.value,
            "open_interest": self.open_interest,
            "symbol": self.symbol,
            "expiration_date": self.expiration_date.isoformat() if self.expiration_date else None,
            "ask": self.ask,
            "bid": self.bid,
            "price": self.price,
        }


@dataclass
class Page:
    content: list = field(default_factory=list)
    page: int = 0
    size: int = 0
    total: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": [c.to_dict() for c in self.content],
            "page": self.page,
            "size": self.size,
            "total": self.total,
        }
