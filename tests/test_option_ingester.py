from datetime import date, datetime

import pytest

from option_service.aggregator import OptionAggregator
from option_service.ingester import OptionChainIngester, flatten_chain, ingest_from, number_contracts
from shared.errors import DecodeFailed, FetchFailed, PersistenceFailed
from shared.filters import OptionFilter
from shared.models import Option, OptionType, Stock
from shared.repository import InMemoryRepository

from tests.conftest import FakeQuoteClient

BASE = "http://options.test/v7/options"
EXPIRY = datetime(2024, 6, 21, 12, 0, 0)           # local noon, same date in every zone offset
EXPIRY_MS = int(EXPIRY.timestamp() * 1000)
LATER = datetime(2024, 7, 19, 12, 0, 0)
LATER_MS = int(LATER.timestamp() * 1000)


def chain(symbol, calls=(), puts=()):
    return {"optionChain": {"result": [{
        "underlyingSymbol": symbol,
        "options": [{
            "calls": [{"strike": s, "expiration": e} for s, e in calls],
            "puts": [{"strike": s, "expiration": e} for s, e in puts],
        }],
    }], "error": None}}


def test_one_call_one_put_yield_two_options():
    opts = flatten_chain(chain("AAPL", calls=[(100, EXPIRY_MS)], puts=[(95, EXPIRY_MS)]))

    assert [(o.option_type, o.strike) for o in opts] == [(OptionType.CALL, 100.0),
                                                         (OptionType.PUT, 95.0)]
    assert all(o.symbol == "AAPL" for o in opts)
    assert all(o.expiration_date == date(2024, 6, 21) for o in opts)
    assert all(o.price is None for o in opts)


def test_several_groups_and_dates_are_flattened():
    payload = {"optionChain": {"result": [
        {"underlyingSymbol": "AAPL", "options": [
            {"calls": [{"strike": 1, "expiration": EXPIRY_MS}], "puts": []},
            {"calls": [], "puts": [{"strike": 2, "expiration": LATER_MS}]},
        ]},
        {"underlyingSymbol": "AAPL.X", "options": [
            {"calls": [{"strike": 3, "expiration": EXPIRY_MS}]},
        ]},
    ]}}
    opts = flatten_chain(payload)
    assert [(o.symbol, o.strike, o.expiration_date) for o in opts] == [
        ("AAPL", 1.0, date(2024, 6, 21)),
        ("AAPL", 2.0, date(2024, 7, 19)),
        ("AAPL.X", 3.0, date(2024, 6, 21)),
    ]


@pytest.mark.parametrize("payload", [
    {},
    {"optionChain": {"result": None}},
    {"optionChain": {"result": [{"options": []}]}},
    {"optionChain": {"result": [{"underlyingSymbol": "X",
                                 "options": [{"calls": [{"strike": 1}]}]}]}},
])
def test_malformed_chain_is_a_decode_failure(payload):
    with pytest.raises(DecodeFailed):
        flatten_chain(payload, "http://x")


def test_failed_stock_is_skipped_and_rest_flushed_once():
    repo = InMemoryRepository()
    client = FakeQuoteClient({
        f"{BASE}/AAPL": chain("AAPL", calls=[(100, EXPIRY_MS)], puts=[(95, EXPIRY_MS)]),
        f"{BASE}/MSFT": {"optionChain": {"result": "garbage"}},
        f"{BASE}/TSLA": chain("TSLA", calls=[(200, LATER_MS)]),
    })
    saves = []
    original = repo.save_all
    repo.save_all = lambda batch: saves.append(list(batch)) or original(batch)

    stocks = [Stock("AAPL", 180.0), Stock("MSFT", 400.0), Stock("GOOG", 140.0), Stock("TSLA", 250.0)]
    result = OptionChainIngester(repo, client, BASE + "/").ingest_all(stocks)

    assert isinstance(result.failed["MSFT"], DecodeFailed)
    assert isinstance(result.failed["GOOG"], FetchFailed)
    assert len(result.options) == 3
    assert len(saves) == 1
    assert sorted(o.symbol for o in repo.find_all()) == ["AAPL", "AAPL", "TSLA"]


def test_reingestion_replaces_same_symbol_and_expiration():
    old_same_window = Option("AAPL", 90.0, OptionType.CALL, date(2024, 6, 21))
    old_other_window = Option("AAPL", 90.0, OptionType.CALL, date(2024, 9, 20))
    other_symbol = Option("TSLA", 90.0, OptionType.CALL, date(2024, 6, 21))
    repo = InMemoryRepository([old_same_window, old_other_window, other_symbol])
    client = FakeQuoteClient({f"{BASE}/AAPL": chain("AAPL", calls=[(100, EXPIRY_MS)])})

    result = OptionChainIngester(repo, client, BASE).ingest_all([Stock("AAPL", 1.0)])

    assert result.replaced == 1
    keys = {o.key for o in repo.find_all()}
    assert old_same_window.key not in keys
    assert old_other_window.key in keys and other_symbol.key in keys
    assert "AAPL:CALL:100.0:2024-06-21" in keys


def test_persistence_failure_loses_the_pass():
    class Failing(InMemoryRepository):
        def save_all(self, entities):
            batch = list(entities)
            if batch:
                raise PersistenceFailed("down")
            return batch

    client = FakeQuoteClient({f"{BASE}/AAPL": chain("AAPL", calls=[(100, EXPIRY_MS)])})
    with pytest.raises(PersistenceFailed):
        OptionChainIngester(Failing(), client, BASE).ingest_all([Stock("AAPL", 1.0)])


def test_ingest_from_reads_stock_store():
    stocks = InMemoryRepository([Stock("AAPL", 1.0), Stock("TSLA", 2.0)])
    client = FakeQuoteClient({f"{BASE}/TSLA": chain("TSLA", puts=[(5, EXPIRY_MS)])})
    ingester = OptionChainIngester(InMemoryRepository(), client, BASE)

    result = ingest_from(stocks, ingester, symbols=["TSLA"])
    assert [o.symbol for o in result.options] == ["TSLA"]
    assert [url for url, _ in client.calls] == [f"{BASE}/TSLA"]


def test_repeated_contract_entries_are_each_stored():
    repo = InMemoryRepository()
    client = FakeQuoteClient({
        f"{BASE}/AAPL": chain("AAPL", calls=[(100, EXPIRY_MS), (100, EXPIRY_MS)]),
    })
    result = OptionChainIngester(repo, client, BASE).ingest_all([Stock("AAPL", 180.0)])

    assert len(result.options) == 2
    assert len(repo) == 2
    assert sorted(o.key for o in repo.find_all()) == [
        "AAPL:CALL:100.0:2024-06-21", "AAPL:CALL:100.0:2024-06-21#1",
    ]
    rows = OptionAggregator(repo, InMemoryRepository([Stock("AAPL", 180.0)])).summarize(
        OptionFilter("AAPL"))
    assert [r.open_interest for r in rows] == [2]


def test_reingesting_repeated_entries_does_not_grow_the_store():
    repo = InMemoryRepository()
    client = FakeQuoteClient({
        f"{BASE}/AAPL": chain("AAPL", calls=[(100, EXPIRY_MS), (100, EXPIRY_MS)]),
    })
    ingester = OptionChainIngester(repo, client, BASE)
    ingester.ingest_all([Stock("AAPL", 180.0)])
    ingester.ingest_all([Stock("AAPL", 180.0)])
    assert len(repo) == 2


def test_number_contracts_only_renumbers_repeats():
    a = Option("AAPL", 1.0, OptionType.CALL, date(2024, 6, 21))
    b = Option("AAPL", 1.0, OptionType.PUT, date(2024, 6, 21))
    numbered = number_contracts([a, b, a, a])
    assert [o.seq for o in numbered] == [0, 0, 1, 2]
    assert numbered[0] is a
