#!/usr/bin/env python3
"""
loader.py – exchange-feed background process
============================================
Start-up
--------
1. seed currencies from CURRENCIES_CSV when the store has none
2. load FOREX_PAIRS_CSV once (pairs already stored are left alone)
3. ingest option chains for every stored stock

Then forever
------------
• full forex refresh + publish every REFRESH_INTERVAL s (default 60)
• option re-ingestion every OPTIONS_INTERVAL s (0 = start-up only)
• heartbeat after each pass
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from shared.config import Settings
from shared.constants import KEY_CURRENCIES, KEY_FOREX, KEY_OPTIONS, KEY_STOCKS
from shared.errors import ExchangeError
from shared.http_client import QuoteClient
from shared.logging import get_logger
from shared.models import Currency, Forex, Option, Stock
from shared.redis_client import RedisPublisher, connect, heartbeat
from shared.repository import RedisRepository, Repository

from option_service.aggregator import OptionAggregator
from option_service.ingester import OptionChainIngester, ingest_from

from .bootstrap import read_currencies_csv, read_pairs_csv
from .refresher import ForexRefresher
from .scheduler import RefreshScheduler

log = get_logger("forex_service.loader")


@dataclass
class Services:
    settings: Settings
    redis: Any
    http: QuoteClient
    currencies: Repository[Currency]
    forexes: Repository[Forex]
    stocks: Repository[Stock]
    options: Repository[Option]
    refresher: ForexRefresher
    ingester: OptionChainIngester
    aggregator: OptionAggregator


def build_services(settings: Optional[Settings] = None, client: Any = None) -> Services:
    """Wire Redis-backed repositories, the HTTP client and the publisher."""
    settings = settings or Settings.from_env()
    client = client if client is not None else connect(settings.redis_url)
    http = QuoteClient(timeout=settings.http_timeout)

    currencies = RedisRepository(client, KEY_CURRENCIES, Currency.from_dict,
                                 key_fn=lambda c: c.code)
    forexes = RedisRepository(client, KEY_FOREX, Forex.from_dict)
    stocks = RedisRepository(client, KEY_STOCKS, Stock.from_dict)
    options = RedisRepository(client, KEY_OPTIONS, Option.from_dict)

    publisher = RedisPublisher(client, settings.publish_exchange, settings.publish_routing_key)
    return Services(
        settings=settings,
        redis=client,
        http=http,
        currencies=currencies,
        forexes=forexes,
        stocks=stocks,
        options=options,
        refresher=ForexRefresher(forexes, http, publisher, settings),
        ingester=OptionChainIngester(options, http, settings.options_base_url),
        aggregator=OptionAggregator(options, stocks, settings.option_representative),
    )


def seed(svc: Services) -> List[Forex]:
    """Currencies + forex pairs from CSV; only pairs not yet stored are loaded."""
    cfg = svc.settings
    if cfg.currencies_csv and not svc.currencies.find_all():
        seeded = svc.currencies.save_all(read_currencies_csv(cfg.currencies_csv))
        log.info("seeded %d currencies from %s", len(seeded), cfg.currencies_csv)

    if not cfg.forex_pairs_csv:
        return []
    by_code = {c.code: c for c in svc.currencies.find_all()}
    return svc.refresher.load_initial_pairs(read_pairs_csv(cfg.forex_pairs_csv), by_code)


def main() -> None:
    svc = build_services()
    cfg = svc.settings
    log.info("loader up – refresh every %d s, options every %s",
             cfg.refresh_interval,
             f"{cfg.options_interval} s" if cfg.options_interval > 0 else "start-up only")

    try:
        seed(svc)
    except (ExchangeError, OSError, ValueError) as exc:
        log.error("bootstrap failed – %s", exc)

    def forex_pass() -> None:
        svc.refresher.refresh_all()
        heartbeat("forex_refresh", svc.redis)

    def option_pass() -> None:
        ingest_from(svc.stocks, svc.ingester)
        heartbeat("option_ingest", svc.redis)

    options_job = RefreshScheduler(option_pass, cfg.options_interval or 1, "option_ingest")
    if cfg.options_interval > 0:
        options_job.start()
    else:
        options_job.run_once()

    forex_job = RefreshScheduler(forex_pass, cfg.refresh_interval, "forex_refresh")
    forex_job.start()
    try:
        forex_job.join()
    except KeyboardInterrupt:
        log.info("shutting down")
    finally:
        forex_job.stop()
        options_job.stop()
        svc.http.close()


if __name__ == "__main__":
    main()
