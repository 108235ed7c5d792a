# src/hostprep/fetch/http.py
from __future__ import annotations

import logging

import requests

from ..errors import FetchError

log = logging.getLogger("hostprep")


class HttpFetcher:
    def __init__(self, timeout: float = 30.0, session: requests.Session | None = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, url: str) -> bytes:
        """Return the raw body of ``url``; any transport or HTTP error is a FetchError."""
        log.debug(f"GET {url}")
        try:
            r = self.session.get(url, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            log.error(f"fetch of {url} failed: {e}")
            raise FetchError(str(e)) from e
        log.debug(f"GET {url} -> {r.status_code} ({len(r.content)} bytes)")
        return r.content
