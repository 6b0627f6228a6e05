#!/usr/bin/env python3
"""
app.py – REST read API
----------------------
Endpoints
---------
GET /forexes               page, size, from_currency, to_currency
GET /forexes/time-series   from_currency, to_currency, time_series
GET /options               symbol, option_type, expiration_date

Error mapping
-------------
NotFound            → 404
FetchFailed/Decode  → 502
PersistenceFailed   → 503
"""

from __future__ import annotations

from datetime import date
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Query

from shared.errors import DecodeFailed, ExchangeError, FetchFailed, NotFound, PersistenceFailed
from shared.filters import ForexFilter, OptionFilter
from shared.logging import get_logger
from shared.models import OptionType, TimeSeries

from forex_service.refresher import ForexRefresher
from option_service.aggregator import OptionAggregator

log = get_logger("exchange_api")


def _http_error(exc: ExchangeError) -> HTTPException:
    if isinstance(exc, NotFound):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (FetchFailed, DecodeFailed)):
        return HTTPException(status_code=502, detail=str(exc))
    if isinstance(exc, PersistenceFailed):
        log.error("storage error – %s", exc)
        return HTTPException(status_code=503, detail="storage unavailable")
    return HTTPException(status_code=500, detail=str(exc))


def create_app(refresher: ForexRefresher, aggregator: OptionAggregator) -> FastAPI:
    app = FastAPI(title="Exchange Feed", docs_url=None, redoc_url=None)

    @app.get("/forexes")
    def forexes(page: int = Query(0, ge=0),
                size: int = Query(10, ge=1, le=500),
                from_currency: Optional[str] = None,
                to_currency: Optional[str] = None):
        try:
            found = refresher.get_forexes(page, size, ForexFilter(from_currency, to_currency))
        except ExchangeError as exc:
            raise _http_error(exc) from exc
        return found.to_dict()

    @app.get("/forexes/time-series")
    def time_series(from_currency: str, to_currency: str,
                    time_series: str = "DAILY"):
        try:
            granularity = TimeSeries[time_series.upper()]
        except KeyError:
            raise HTTPException(status_code=422,
                                detail=f"unknown time_series {time_series!r}") from None
        try:
            return refresher.get_time_series(from_currency, to_currency, granularity)
        except ExchangeError as exc:
            raise _http_error(exc) from exc

    @app.get("/options")
    def options(symbol: str,
                option_type: Optional[OptionType] = None,
                expiration_date: Optional[date] = None):
        try:
            rows = aggregator.summarize(OptionFilter(symbol, option_type, expiration_date))
        except ExchangeError as exc:
            raise _http_error(exc) from exc
        return [r.to_dict() for r in rows]

    return app


def main() -> None:
    from forex_service.loader import build_services

    svc = build_services()
    app = create_app(svc.refresher, svc.aggregator)
    uvicorn.run(app, host="0.0.0.0", port=svc.settings.api_port, log_level="warning")


if __name__ == "__main__":
    main()
