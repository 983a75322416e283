"""HTML field extraction driven by an :class:`ExtractionSchema`."""

from __future__ import annotations

from typing import Dict

from bs4 import BeautifulSoup, FeatureNotFound
from bs4.builder import ParserRejectedMarkup

from jobs2json.core.errors import ParseError
from jobs2json.core.models import Record
from jobs2json.scrape.schema import DEFAULT_SCHEMA, ExtractionSchema


def _node_text(node) -> str:
    # collapse whitespace runs; markup indentation is not part of the value
    return " ".join(node.get_text().split())


def extract_fields(
    document: bytes, schema: ExtractionSchema, parser: str = "html.parser", url: str = ""
) -> Dict[str, str]:
    """Return ``{field: text}`` for every schema field; misses map to ``""``."""
    try:
        soup = BeautifulSoup(document, parser)
    except ParserRejectedMarkup as e:
        raise ParseError(url, str(e)) from e

    out: Dict[str, str] = {}
    for fs in schema:
        node = fs.compiled.select_one(soup)
        out[fs.name] = _node_text(node) if node is not None else ""
    return out


class FieldExtractor:
    """Turn fetched documents into :class:`Record` objects.

    Stateless apart from the immutable schema, so one instance is shared by all
    workers of all batches.
    """

    def __init__(self, schema: ExtractionSchema = DEFAULT_SCHEMA, parser: str = "html.parser") -> None:
        try:
            BeautifulSoup("", parser)
        except FeatureNotFound as e:
            raise ValueError(f"HTML parser {parser!r} is not available") from e
        self.schema = schema
        self.parser = parser

    def extract(self, document: bytes, url: str) -> Record:
        return Record(
            source_url=url,
            fields=extract_fields(document, self.schema, self.parser, url=url),
        )
