"""
constants.py – single source of hard-coded names
"""

STALE_AFTER_MIN   = 15        # forex record eligible for on-demand refresh
REFRESH_EVERY_SEC = 60        # scheduled full refresh cadence
HTTP_TIMEOUT_SEC  = 5.0

# Redis hashes (one per entity kind, field = entity key, value = JSON)
KEY_CURRENCIES = "exchange:currencies"
KEY_FOREX      = "exchange:forex"
KEY_STOCKS     = "exchange:stocks"
KEY_OPTIONS    = "exchange:options"
KEY_HEARTBEAT  = "heartbeat:{}"        # service-specific

# publish destination for refreshed forex snapshots
PUBLISH_EXCHANGE    = "exchange-service"
PUBLISH_ROUTING_KEY = "forex"
CHANNEL_TEMPLATE    = "{}.{}"          # exchange.routing_key
