"""
http_client.py – blocking GET client for upstream quote providers
=================================================================

One call, one request: no retries here, the caller decides what a
failure means. Outcomes are kept distinct:

• decoded JSON object       → returned as dict (may be empty = "no data")
• transport error / non-200 → `FetchFailed`
• body not a JSON object    → `DecodeFailed`
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import requests

from .constants import HTTP_TIMEOUT_SEC
from .errors import DecodeFailed, FetchFailed
from .logging import get_logger

log = get_logger("shared.http")


class QuoteClient:
    def __init__(self, timeout: float = HTTP_TIMEOUT_SEC,
                 session: Optional[requests.Session] = None) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, url: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise FetchFailed(url, str(exc)) from exc

        if resp.status_code != 200:
            raise FetchFailed(url, resp.reason or "non-success status", resp.status_code)

        try:
            body = resp.json()
        except ValueError as exc:
            raise DecodeFailed(url, f"invalid JSON – {exc}") from exc
        if not isinstance(body, dict):
            raise DecodeFailed(url, f"expected object, got {type(body).__name__}")

        log.debug("GET %s → %d keys", url, len(body))
        return body

    def close(self) -> None:
        self.session.close()
