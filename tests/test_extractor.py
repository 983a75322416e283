from __future__ import annotations

import pytest

from jobs2json.core.errors import SchemaError
from jobs2json.scrape.extractor import FieldExtractor, extract_fields
from jobs2json.scrape.schema import DEFAULT_SCHEMA, ExtractionSchema


def test_default_schema_extracts_all_fields(make_page):
    doc = make_page(title="Software Engineer", location="San Francisco, CA", company="MuleSoft")
    rec = FieldExtractor().extract(doc, "https://site/viewjob?jk=1")
    assert rec.fields == {
        "title": "Software Engineer",
        "location": "San Francisco, CA",
        "company": "MuleSoft",
    }
    assert rec.source_url == "https://site/viewjob?jk=1"
    assert rec.to_dict()["url"] == "https://site/viewjob?jk=1"


def test_missing_nodes_are_empty_strings(make_page):
    rec = FieldExtractor().extract(make_page(title="Engineer"), "https://site/a")
    assert rec.get("title") == "Engineer"
    assert rec.fields["location"] == ""
    assert rec.fields["company"] == ""
    assert list(rec.to_dict()) == ["title", "location", "company", "url"]


def test_document_without_markup_yields_empty_fields():
    rec = FieldExtractor().extract(b"plain text without any markup", "https://site/x")
    assert rec.source_url == "https://site/x"
    assert set(rec.fields.values()) == {""}


def test_first_match_wins_and_whitespace_is_collapsed():
    schema = ExtractionSchema([("name", "li.item")])
    doc = b"<ul><li class='item'>\n   first\n   <b>one</b> </li><li class='item'>second</li></ul>"
    assert extract_fields(doc, schema) == {"name": "first one"}


def test_custom_schema_is_pluggable():
    schema = ExtractionSchema.from_mapping({"headline": "article h2", "author": "span[rel=author]"})
    doc = b"<article><h2>News</h2><span rel='author'>Kim</span></article>"
    rec = FieldExtractor(schema).extract(doc, "https://news/1")
    assert rec.to_dict() == {"headline": "News", "author": "Kim", "url": "https://news/1"}


@pytest.mark.parametrize(
    "entries",
    [
        [("title", "h1[")],
        [("title", "h1"), ("title", "h2")],
        [("url", "a")],
        [("", "h1")],
        [("title", "  ")],
    ],
)
def test_invalid_schemas_are_rejected(entries):
    with pytest.raises(SchemaError):
        ExtractionSchema(entries)


def test_unknown_parser_is_rejected():
    with pytest.raises(ValueError):
        FieldExtractor(DEFAULT_SCHEMA, parser="no-such-parser")


def test_rejected_markup_raises_parse_error(monkeypatch):
    from bs4.builder import ParserRejectedMarkup

    from jobs2json.core.errors import ParseError
    from jobs2json.scrape import extractor as ext

    extractor = FieldExtractor()

    def reject(*_args, **_kwargs):
        raise ParserRejectedMarkup("broken markup")

    monkeypatch.setattr(ext, "BeautifulSoup", reject)
    with pytest.raises(ParseError) as ei:
        extractor.extract(b"<html", "https://site/bad")
    assert ei.value.url == "https://site/bad"
