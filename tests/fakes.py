"""Stand-ins for ``requests`` sessions used by the client and pipeline tests."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

import requests


class FakeResponse:
    def __init__(self, payload=None, status_code: int = 200, text: str = "") -> None:
        self._payload = payload
        self.status_code = status_code
        self.text = text

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Routes GET requests by URL suffix to canned handlers and records every call."""

    def __init__(self, routes: Optional[Dict[str, Callable[[Dict], FakeResponse]]] = None) -> None:
        self.routes = routes or {}
        self.headers: Dict[str, str] = {}
        self.calls: List[Dict] = []

    def get(self, url: str, params=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        for suffix, handler in self.routes.items():
            if url.endswith(suffix):
                return handler(params or {})
        raise requests.ConnectionError(f"no route for {url}")
