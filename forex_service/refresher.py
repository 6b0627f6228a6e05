"""
refresher.py – fetch, merge, persist and fan out forex quotes
=============================================================

Three entry points share one merge rule (`Forex.merge_quote`):

refresh_if_stale()   read path: only stale records, one bulk save
refresh_all()        scheduled: every record, save + publish each
load_initial_pairs() bootstrap: new records from (from, to) rows

Both refresh paths isolate failures per record: one bad pair is logged
and skipped, its siblings still refresh. Records handed in are never
mutated; updated copies come back in `RefreshResult.records`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple

from shared.config import Settings
from shared.errors import DecodeFailed, ExchangeError, NotFound
from shared.filters import ForexFilter
from shared.http_client import QuoteClient
from shared.logging import context, get_logger
from shared.models import Currency, Forex, Page, TimeSeries
from shared.repository import Repository
from shared.utils import now_local, pair_symbol

from .staleness import StalenessPolicy

log = get_logger("forex_service.refresher")


class Publisher(Protocol):
    def publish(self, payload: Mapping[str, Any]) -> bool: ...


@dataclass
class RefreshResult:
    records: List[Forex] = field(default_factory=list)     # all, input order
    updated: List[Forex] = field(default_factory=list)
    failures: Dict[str, ExchangeError] = field(default_factory=dict)   # key → error
    published: int = 0


class ForexRefresher:
    def __init__(self, repository: Repository[Forex], client: QuoteClient,
                 publisher: Optional[Publisher] = None,
                 settings: Optional[Settings] = None,
                 policy: Optional[StalenessPolicy] = None,
                 clock: Callable[[], datetime] = now_local) -> None:
        self.repository = repository
        self.client = client
        self.publisher = publisher
        self.settings = settings or Settings()
        self.policy = policy or StalenessPolicy.minutes(self.settings.stale_after_min)
        self.clock = clock

    # ───── upstream ──────────────────────────────────────────────────
    def fetch_quote(self, from_code: str, to_code: str) -> Dict[str, Any]:
        return self.client.fetch(
            self.settings.forex_exchange_url,
            {"from_currency": from_code, "to_currency": to_code},
        )

    def get_time_series(self, from_code: str, to_code: str,
                        granularity: TimeSeries) -> Dict[str, Any]:
        params = {"from_currency": from_code, "to_currency": to_code}
        if granularity.intraday:
            url = self.settings.forex_timeseries_intraday_url
            params["interval"] = granularity.value
        else:
            url = self.settings.forex_timeseries_url
            params["time_series"] = granularity.value
        return self.client.fetch(url, params)

    def _refreshed(self, fx: Forex, now: datetime) -> Forex:
        quote = self.fetch_quote(fx.from_currency.code, fx.to_currency.code)
        try:
            return fx.merge_quote(quote, now)
        except (TypeError, ValueError) as exc:
            raise DecodeFailed(self.settings.forex_exchange_url,
                               f"bad quote for {fx.key}: {exc}") from exc

    # ───── read path ─────────────────────────────────────────────────
    def refresh_if_stale(self, records: Sequence[Forex],
                         now: Optional[datetime] = None) -> RefreshResult:
        now = now or self.clock()
        result = RefreshResult()

        for fx in records:
            if not self.policy.is_stale(fx.last_refresh, now):
                result.records.append(fx)
                continue
            try:
                fresh = self._refreshed(fx, now)
            except ExchangeError as exc:
                log.warning("on-demand refresh of %s failed – %s", fx.key, exc,
                            extra=context(pair=fx.key))
                result.failures[fx.key] = exc
                result.records.append(fx)
                continue
            result.records.append(fresh)
            result.updated.append(fresh)

        if result.updated:
            self.repository.save_all(result.updated)
        if result.updated or result.failures:
            log.info("on-demand refresh: %d updated, %d failed",
                     len(result.updated), len(result.failures),
                     extra=context(count=len(result.updated), failed=len(result.failures)))
        return result

    def get_forexes(self, page: int, size: int,
                    forex_filter: Optional[ForexFilter] = None,
                    now: Optional[datetime] = None) -> Page:
        """Page of stored records, refreshed first when stale."""
        found = self.repository.find_page(page, size, forex_filter)
        found.content = self.refresh_if_stale(found.content, now).records
        return found

    # ───── scheduled path ────────────────────────────────────────────
    def refresh_all(self, now: Optional[datetime] = None) -> RefreshResult:
        result = RefreshResult()
        for fx in self.repository.find_all():
            stamp = now or self.clock()
            try:
                fresh = self._refreshed(fx, stamp)
                self.repository.save(fresh)
            except ExchangeError as exc:
                log.warning("scheduled refresh skipped %s – %s", fx.key, exc,
                            extra=context(pair=fx.key))
                result.failures[fx.key] = exc
                result.records.append(fx)
                continue
            result.records.append(fresh)
            result.updated.append(fresh)
            if self.publisher is not None and self.publisher.publish(fresh.to_dict()):
                result.published += 1

        log.info("scheduled refresh: %d updated, %d failed, %d published",
                 len(result.updated), len(result.failures), result.published,
                 extra=context(count=len(result.updated), failed=len(result.failures)))
        return result

    # ───── bootstrap ─────────────────────────────────────────────────
    def load_initial_pairs(self, rows: Iterable[Tuple[str, str]],
                           currencies: Mapping[str, Currency],
                           now: Optional[datetime] = None) -> List[Forex]:
        """
        Create one new record per (from, to) row and insert them all at once.

        Existing records are never touched: pairs already stored (or
        repeated in `rows`) are skipped without a fetch.
        Any error aborts the whole load before anything is written.
        """
        now = now or self.clock()
        taken = {fx.key for fx in self.repository.find_all()}
        batch: List[Forex] = []
        for from_code, to_code in rows:
            key = pair_symbol(from_code, to_code)
            if key in taken:
                log.info("bootstrap skipped %s – already stored", key,
                         extra=context(pair=key))
                continue
            taken.add(key)
            base = _resolve(currencies, from_code)
            quote_ccy = _resolve(currencies, to_code)
            fx = Forex(from_currency=base, to_currency=quote_ccy,
                       symbol=pair_symbol(from_code, to_code))
            batch.append(self._refreshed(fx, now))

        self.repository.save_all(batch)
        log.info("bootstrap inserted %d forex pair(s)", len(batch),
                 extra=context(count=len(batch)))
        return batch


def _resolve(currencies: Mapping[str, Currency], code: str) -> Currency:
    try:
        return currencies[code]
    except KeyError:
        raise NotFound("currency", code) from None
