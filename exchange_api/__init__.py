"""
exchange_api
============

Read-only REST surface over the stores kept fresh by *forex_service*
and *option_service*. Reading forex pages refreshes stale records first.

Modules
-------
app.py  – FastAPI app factory + uvicorn entry-point
"""
