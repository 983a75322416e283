from __future__ import annotations

import pytest
import requests

from jobs2json.core.errors import FetchError
from jobs2json.scrape.fetcher import HttpFetcher


class FakeResponse:
    def __init__(self, status_code: int = 200, content: bytes = b"<html></html>", reason: str = "OK") -> None:
        self.status_code = status_code
        self.reason = reason
        self._content = content
        self.closed = False

    @property
    def content(self) -> bytes:
        if isinstance(self._content, Exception):
            raise self._content
        return self._content

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class FakeSession:
    def __init__(self, outcome) -> None:
        self.outcome = outcome
        self.headers = {}
        self.calls = []
        self.closed = False

    def get(self, url, timeout=None, stream=False):
        self.calls.append((url, timeout, stream))
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome

    def close(self) -> None:
        self.closed = True


def test_fetch_returns_body_and_releases_response():
    resp = FakeResponse(content=b"<h1>x</h1>")
    session = FakeSession(resp)
    fetcher = HttpFetcher(timeout=5, session=session)
    assert fetcher.fetch("https://site/a") == b"<h1>x</h1>"
    assert resp.closed
    assert session.calls == [("https://site/a", 5, True)]
    assert "User-Agent" in session.headers


@pytest.mark.parametrize("status", [301, 404, 500, 503])
def test_non_2xx_status_is_a_fetch_error_and_releases_response(status):
    resp = FakeResponse(status_code=status, reason="Nope")
    fetcher = HttpFetcher(session=FakeSession(resp))
    with pytest.raises(FetchError) as ei:
        fetcher.fetch("https://site/a")
    assert str(status) in ei.value.reason
    assert ei.value.url == "https://site/a"
    assert resp.closed


def test_transport_error_is_a_fetch_error():
    fetcher = HttpFetcher(session=FakeSession(requests.ConnectionError("refused")))
    with pytest.raises(FetchError) as ei:
        fetcher.fetch("https://site/a")
    assert "ConnectionError" in ei.value.reason


def test_error_while_reading_body_releases_response():
    resp = FakeResponse(content=requests.exceptions.ChunkedEncodingError("cut"))
    fetcher = HttpFetcher(session=FakeSession(resp))
    with pytest.raises(FetchError):
        fetcher.fetch("https://site/a")
    assert resp.closed


def test_invalid_url_is_a_fetch_error_with_real_session():
    with HttpFetcher(timeout=1) as fetcher:
        with pytest.raises(FetchError):
            fetcher.fetch("not a url")


def test_default_session_has_no_retries_and_sized_pool():
    fetcher = HttpFetcher(pool_size=7)
    adapter = fetcher.session.get_adapter("https://example.com")
    assert adapter.max_retries.total == 0
    assert adapter._pool_maxsize == 7
    fetcher.close()


def test_connection_pool_sized_for_concurrent_batches():
    fetcher = HttpFetcher(pool_size=4, max_connections=32)
    assert fetcher.session.get_adapter("https://example.com")._pool_maxsize == 32
    fetcher.close()
