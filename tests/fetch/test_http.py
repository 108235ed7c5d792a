import pytest
import requests

from hostprep.errors import FetchError
from hostprep.fetch.http import HttpFetcher


class FakeResponse:
    def __init__(self, status_code=200, content=b""):
        self.status_code = status_code
        self.content = content

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error:
            raise self.error
        return self.response


def test_fetch_returns_body_and_passes_timeout():
    session = FakeSession(FakeResponse(content=b"PermitRootLogin no\n"))
    body = HttpFetcher(timeout=5, session=session).fetch("https://example.test/h.conf")
    assert body == b"PermitRootLogin no\n"
    assert session.calls == [("https://example.test/h.conf", 5)]


def test_http_error_becomes_fetch_error():
    fetcher = HttpFetcher(session=FakeSession(FakeResponse(status_code=404)))
    with pytest.raises(FetchError, match="404"):
        fetcher.fetch("https://example.test/missing")


def test_connection_error_becomes_fetch_error():
    fetcher = HttpFetcher(session=FakeSession(error=requests.ConnectionError("refused")))
    with pytest.raises(FetchError, match="refused"):
        fetcher.fetch("https://example.test/h.conf")
