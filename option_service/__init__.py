"""
option_service
==============

Pulls the full option chain of every stored stock, flattens it into one
record per contract, and answers per-symbol open-interest summaries.

Modules
-------
ingester.py    – chain fetch + flatten + one flush per pass
aggregator.py  – (strike, type) grouping priced off the stock
"""
