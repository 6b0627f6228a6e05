"""
shared – helpers imported by every exchange-feed service
--------------------------------------------------------
Modules
-------
config.py        → loads `.env` once per process, `Settings` snapshot
logging.py       → consistent JSON/stdout logger
constants.py     → Redis hash names, thresholds, publish destination
errors.py        → FetchFailed / DecodeFailed / NotFound / PersistenceFailed
models.py        → Currency, Forex, Stock, Option, OptionSummary
filters.py       → query predicates for forex and option lookups
repository.py    → in-memory + Redis-backed entity stores
redis_client.py  → lazy Redis singleton, heartbeat, best-effort publisher
http_client.py   → blocking GET client for upstream quote providers
utils.py         → small time helpers
"""
