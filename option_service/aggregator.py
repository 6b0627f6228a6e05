"""
aggregator.py – per-symbol option summaries
===========================================

Selected contracts are priced off the underlying stock (ask = bid =
price = stock price, on copies only), grouped by exact (strike, type),
and reduced to one `OptionSummary` per group:

open_interest  → number of stored contracts in the group
other fields   → copied from one representative contract

Which contract represents a group spanning several expirations is a
tie-break chosen at construction:

first                 first contract in repository order
earliest_expiration   nearest expiration date
latest_expiration     furthest expiration date
"""

from __future__ import annotations

from typing import Callable, Dict, List, Tuple

from shared.errors import NotFound
from shared.filters import OptionFilter
from shared.logging import context, get_logger
from shared.models import Option, OptionSummary, OptionType, Stock
from shared.repository import Repository

log = get_logger("option_service.aggregator")

Picker = Callable[[List[Option]], Option]

REPRESENTATIVES: Dict[str, Picker] = {
    "first": lambda group: group[0],
    "earliest_expiration": lambda group: min(group, key=lambda o: o.expiration_date),
    "latest_expiration": lambda group: max(group, key=lambda o: o.expiration_date),
}


class OptionAggregator:
    def __init__(self, options: Repository[Option], stocks: Repository[Stock],
                 representative: str = "first") -> None:
        if representative not in REPRESENTATIVES:
            raise ValueError(
                f"unknown representative {representative!r}; "
                f"choose one of {', '.join(REPRESENTATIVES)}"
            )
        self.options = options
        self.stocks = stocks
        self.representative = representative
        self._pick = REPRESENTATIVES[representative]

    def summarize(self, option_filter: OptionFilter) -> List[OptionSummary]:
        selected = self.options.find_all(option_filter)

        stock = self.stocks.get(option_filter.symbol)
        if stock is None:
            raise NotFound("stock", option_filter.symbol)

        groups: Dict[Tuple[float, OptionType], List[Option]] = {}
        for opt in selected:
            groups.setdefault((opt.strike, opt.option_type), []).append(opt.priced(stock.price))

        summaries = []
        for (strike, opt_type), members in groups.items():
            rep = self._pick(members)
            summaries.append(OptionSummary(
                strike=strike,
                option_type=opt_type,
                open_interest=len(members),
                symbol=rep.symbol,
                expiration_date=rep.expiration_date,
                ask=rep.ask,
                bid=rep.bid,
                price=rep.price,
            ))

        log.debug("%s: %d contract(s) → %d summaries", stock.symbol,
                  len(selected), len(summaries),
                  extra=context(symbol=stock.symbol, count=len(summaries)))
        return summaries
