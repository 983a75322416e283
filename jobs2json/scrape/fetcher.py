"""Document fetching over HTTP."""

from __future__ import annotations

from typing import Dict, Optional, Protocol

import requests
from requests.adapters import HTTPAdapter

from jobs2json.core.config import DEFAULT_POOL_SIZE, DEFAULT_TIMEOUT
from jobs2json.core.errors import FetchError
from jobs2json.infra.logging import get_unified_logger

DEFAULT_HEADERS: Dict[str, str] = {
    "User-Agent": "Mozilla/5.0 (compatible; Jobs2Json/1.0)",
    "Accept": "text/html,application/xhtml+xml,*/*;q=0.8",
}

logger = get_unified_logger("scrape", "fetch")


class Fetcher(Protocol):
    def fetch(self, url: str) -> bytes:
        """Return the document body or raise :class:`FetchError`."""
        ...


class HttpFetcher:
    """Single-attempt GET through a pooled :class:`requests.Session`.

    One fetcher serves every batch in flight, so the session's per-host
    connection pool is sized by ``max_connections`` (at least ``pool_size``)
    rather than by a single batch. Retries are disabled.
    """

    def __init__(
        self,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        pool_size: int = DEFAULT_POOL_SIZE,
        max_connections: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout = timeout
        if session is None:
            session = requests.Session()
            maxsize = max(pool_size, max_connections or 0)
            adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=maxsize, max_retries=0)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        session.headers.update(headers or DEFAULT_HEADERS)
        self.session = session

    def fetch(self, url: str) -> bytes:
        try:
            # the response context releases the connection on every exit path
            with self.session.get(url, timeout=self.timeout, stream=True) as resp:
                if not 200 <= resp.status_code < 300:
                    raise FetchError(url, f"status code {resp.status_code} {resp.reason or ''}".strip())
                return resp.content
        except requests.RequestException as e:
            logger.debug("fetch failed url=%s error=%s", url, e)
            raise FetchError(url, f"{e.__class__.__name__}: {e}") from e
        except FetchError as e:
            logger.debug("fetch failed url=%s reason=%s", url, e.reason)
            raise

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
