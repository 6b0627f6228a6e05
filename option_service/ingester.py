"""
ingester.py – option-chain ingestion
====================================

Payload per underlying (`GET <options_base_url>/<SYM>`):

    {"optionChain": {"result": [
        {"underlyingSymbol": "AAPL",
         "options": [{"calls": [{"strike": 100.0, "expiration": <epoch-ms>}, …],
                      "puts":  [...]}, …]},
        …]}}

Every call/put entry becomes one `Option`. A failing underlying is logged
and skipped; everything collected in the pass is written once at the end.
Stored contracts sharing (symbol, expiration date) with the new batch are
dropped first, so re-ingestion replaces a chain instead of piling up.
Repeated entries for one contract are all kept (numbered by `seq`); each
one counts towards open interest.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from shared.errors import DecodeFailed, ExchangeError
from shared.http_client import QuoteClient
from shared.logging import context, get_logger
from shared.models import Option, OptionType, Stock
from shared.repository import Repository
from shared.utils import epoch_ms_to_local_date

log = get_logger("option_service.ingester")

_SIDES: Tuple[Tuple[str, OptionType], ...] = (
    ("calls", OptionType.CALL),
    ("puts", OptionType.PUT),
)


def flatten_chain(payload: Mapping[str, Any], url: str = "") -> List[Option]:
    """Nested chain payload → flat list of options (calls before puts per group)."""
    try:
        results = payload["optionChain"]["result"]
        options: List[Option] = []
        for group in results:
            symbol = group["underlyingSymbol"]
            for dated in group.get("options", []):
                for side, opt_type in _SIDES:
                    for entry in dated.get(side, []):
                        options.append(Option(
                            symbol=symbol,
                            strike=float(entry["strike"]),
                            option_type=opt_type,
                            expiration_date=epoch_ms_to_local_date(entry["expiration"]),
                        ))
        return options
    except (KeyError, TypeError, ValueError, OverflowError, OSError) as exc:
        raise DecodeFailed(url, f"unexpected chain shape – {exc!r}") from exc


def number_contracts(options: Iterable[Option]) -> List[Option]:
    """Give repeated (symbol, type, strike, expiry) entries distinct `seq`s so each is stored."""
    seen: Dict[str, int] = {}
    out: List[Option] = []
    for opt in options:
        n = seen.get(opt.contract, 0)
        seen[opt.contract] = n + 1
        out.append(opt if opt.seq == n else replace(opt, seq=n))
    return out


@dataclass
class IngestResult:
    options: List[Option] = field(default_factory=list)
    failed: Dict[str, ExchangeError] = field(default_factory=dict)   # symbol → error
    replaced: int = 0


class OptionChainIngester:
    def __init__(self, repository: Repository[Option], client: QuoteClient,
                 base_url: str) -> None:
        self.repository = repository
        self.client = client
        self.base_url = base_url.rstrip("/")

    def chain_url(self, symbol: str) -> str:
        return f"{self.base_url}/{symbol}"

    def fetch_chain(self, symbol: str) -> List[Option]:
        url = self.chain_url(symbol)
        return flatten_chain(self.client.fetch(url), url)

    def ingest_all(self, stocks: Iterable[Stock]) -> IngestResult:
        result = IngestResult()
        for stock in stocks:
            try:
                chain = self.fetch_chain(stock.symbol)
            except ExchangeError as exc:
                log.error("chain for %s skipped – %s", stock.symbol, exc,
                          extra=context(symbol=stock.symbol))
                result.failed[stock.symbol] = exc
                continue
            log.info("%s chain: %d contract(s)", stock.symbol, len(chain),
                     extra=context(symbol=stock.symbol, count=len(chain)))
            result.options.extend(chain)

        result.options = number_contracts(result.options)
        result.replaced = self._flush(result.options)
        log.info("option ingestion done: %d stored, %d replaced, %d symbol(s) failed",
                 len(result.options), result.replaced, len(result.failed),
                 extra=context(count=len(result.options), failed=len(result.failed)))
        return result

    def _flush(self, options: List[Option]) -> int:
        if not options:
            return 0
        windows: Set[Tuple[str, Any]] = {(o.symbol, o.expiration_date) for o in options}
        replaced = self.repository.delete_where(
            lambda o: (o.symbol, o.expiration_date) in windows
        )
        self.repository.save_all(options)
        return replaced


def ingest_from(stock_repo: Repository[Stock], ingester: OptionChainIngester,
                symbols: Optional[Iterable[str]] = None) -> IngestResult:
    """One pass over every stored stock (or just `symbols`)."""
    wanted = set(symbols) if symbols is not None else None
    stocks = stock_repo.find_all(
        None if wanted is None else (lambda s: s.symbol in wanted)
    )
    return ingester.ingest_all(stocks)
