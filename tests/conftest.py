"""
Shared fixtures: fake upstream client, recording publisher, seeded stores.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pytest

from shared.config import Settings
from shared.errors import FetchFailed
from shared.models import Currency, Forex
from shared.repository import InMemoryRepository

NOW = datetime(2024, 3, 1, 12, 0, 0)
EXCHANGE_URL = "http://quotes.test/exchange"


class FakeQuoteClient:
    """Answers `fetch()` from a table keyed by (from, to) or by URL."""

    def __init__(self, quotes: Optional[Dict[Any, Any]] = None) -> None:
        self.quotes = quotes or {}
        self.calls: List[Tuple[str, Optional[Mapping[str, Any]]]] = []

    def fetch(self, url: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        self.calls.append((url, dict(params) if params else None))
        key: Any = url
        if params and "from_currency" in params and url == EXCHANGE_URL:
            key = (params["from_currency"], params["to_currency"])
        answer = self.quotes.get(key)
        if answer is None:
            raise FetchFailed(url, "no canned answer", 404)
        if isinstance(answer, Exception):
            raise answer
        return answer


class RecordingPublisher:
    def __init__(self) -> None:
        self.sent: List[Mapping[str, Any]] = []

    def publish(self, payload: Mapping[str, Any]) -> bool:
        self.sent.append(payload)
        return True


@pytest.fixture
def settings() -> Settings:
    return Settings(
        forex_exchange_url=EXCHANGE_URL,
        forex_timeseries_url="http://quotes.test/series",
        forex_timeseries_intraday_url="http://quotes.test/series/intraday",
        options_base_url="http://options.test/v7/options",
    )


@pytest.fixture
def currencies() -> Dict[str, Currency]:
    return {c: Currency(c) for c in ("USD", "EUR", "JPY", "GBP")}


@pytest.fixture
def make_forex(currencies):
    def _make(from_code: str, to_code: str, age_min: Optional[float] = 30,
              rate: float = 1.0) -> Forex:
        return Forex(
            from_currency=currencies[from_code],
            to_currency=currencies[to_code],
            exchange_rate=rate,
            bid_price=rate,
            ask_price=rate,
            last_refresh=None if age_min is None else NOW - timedelta(minutes=age_min),
        )
    return _make


@pytest.fixture
def forex_repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()
