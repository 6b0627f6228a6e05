"""
errors.py – the four failure kinds of the refresh core
"""

from __future__ import annotations

from typing import Optional


class ExchangeError(Exception):
    """Root of every error raised by exchange-feed code."""


class FetchFailed(ExchangeError):
    """Transport error or non-success status from an upstream provider."""

    def __init__(self, url: str, reason: str, status: Optional[int] = None) -> None:
        self.url = url
        self.reason = reason
        self.status = status
        detail = f"status {status}" if status is not None else reason
        super().__init__(f"fetch failed for {url}: {detail}")


class DecodeFailed(ExchangeError):
    """Upstream answered but the payload could not be understood."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"malformed payload from {url}: {reason}")


class NotFound(ExchangeError):
    """Lookup of a currency code or stock symbol came back empty."""

    def __init__(self, kind: str, key: str) -> None:
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")


class PersistenceFailed(ExchangeError):
    """Storage write (or read) error."""


__all__ = [
    "ExchangeError",
    "FetchFailed",
    "DecodeFailed",
    "NotFound",
    "PersistenceFailed",
]
