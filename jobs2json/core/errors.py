from __future__ import annotations


class Jobs2JsonError(Exception):
    """Base class for all errors raised by jobs2json."""


class FetchError(Jobs2JsonError):
    """A document could not be retrieved (transport error or non-2xx status)."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"fetch failed for {url}: {reason}")
        self.url = url
        self.reason = reason


class ParseError(Jobs2JsonError):
    """A fetched document could not be parsed into a queryable tree."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"parse failed for {url}: {reason}")
        self.url = url
        self.reason = reason


class SchemaError(Jobs2JsonError, ValueError):
    """Invalid extraction schema (bad selector, duplicate or reserved field)."""


class PoolStartupError(Jobs2JsonError):
    """Fewer worker threads than configured could be started."""


class QueueClosedError(Jobs2JsonError):
    """An item was put into a work queue after it was closed."""
