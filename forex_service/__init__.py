"""
forex_service
=============

Keeps stored currency-pair quotes fresh: refreshes stale records when they
are read, refreshes everything once a minute and publishes each refreshed
snapshot, and seeds the store from a pairs CSV on first start.

Modules
-------
staleness.py  – 15-minute freshness rule
refresher.py  – on-demand / scheduled refresh + bootstrap load
scheduler.py  – fixed-interval runner with start/stop and skip-if-running
bootstrap.py  – CSV readers for pairs and currencies
loader.py     – main process (entry-point)
"""
