"""Extraction schemas: ordered ``field -> CSS selector`` mappings."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Tuple

import soupsieve
import yaml

from jobs2json.core.errors import SchemaError

RESERVED_FIELDS = frozenset({"url"})


@dataclass(frozen=True)
class FieldSelector:
    name: str
    selector: str
    compiled: Any = field(default=None, compare=False, repr=False)


class ExtractionSchema:
    """Immutable, ordered set of field selectors compiled once at build time."""

    def __init__(self, entries: Iterable[Tuple[str, str]]) -> None:
        fields: List[FieldSelector] = []
        seen = set()
        for name, selector in entries:
            name = str(name or "").strip()
            selector = str(selector or "").strip()
            if not name:
                raise SchemaError("field name must not be empty")
            if name in RESERVED_FIELDS:
                raise SchemaError(f"field name {name!r} is reserved")
            if name in seen:
                raise SchemaError(f"duplicate field {name!r}")
            if not selector:
                raise SchemaError(f"field {name!r} has an empty selector")
            try:
                compiled = soupsieve.compile(selector)
            except soupsieve.SelectorSyntaxError as e:
                raise SchemaError(f"invalid selector for {name!r}: {selector!r} ({e})") from e
            seen.add(name)
            fields.append(FieldSelector(name, selector, compiled))
        self._fields: Tuple[FieldSelector, ...] = tuple(fields)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> "ExtractionSchema":
        return cls(mapping.items())

    @property
    def names(self) -> List[str]:
        return [f.name for f in self._fields]

    def as_dict(self) -> Dict[str, str]:
        return {f.name: f.selector for f in self._fields}

    def __iter__(self) -> Iterator[FieldSelector]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExtractionSchema):
            return NotImplemented
        return self._fields == other._fields

    def __repr__(self) -> str:
        return f"ExtractionSchema({self.as_dict()!r})"


# viewjob pages of the job board the service was built for
DEFAULT_SCHEMA = ExtractionSchema(
    [
        ("title", ".jobsearch-JobInfoHeader-title"),
        # location is the last div inside the company rating block
        ("location", ".jobsearch-InlineCompanyRating > div:last-child"),
        ("company", ".jobsearch-CompanyAvatar-companyLink"),
    ]
)


def _selector_of(name: Any, selector: Any) -> Tuple[str, str]:
    if not isinstance(selector, str):
        raise SchemaError(f"selector for {name!r} must be a string, got {selector!r}")
    return str(name), selector


def _entries_from_data(data: Any) -> List[Tuple[str, str]]:
    if isinstance(data, dict) and "fields" in data:
        data = data["fields"]
    if isinstance(data, dict):
        return [_selector_of(k, v) for k, v in data.items()]
    if isinstance(data, list):
        out: List[Tuple[str, str]] = []
        for item in data:
            if not isinstance(item, dict) or "name" not in item or "selector" not in item:
                raise SchemaError(f"schema entry must have 'name' and 'selector': {item!r}")
            out.append(_selector_of(item["name"], item["selector"]))
        return out
    raise SchemaError("schema file must contain a mapping or a list of {name, selector}")


def load_schema(path: str | Path) -> ExtractionSchema:
    """Load a schema from YAML or JSON; field order follows the file."""
    p = Path(path)
    if not p.exists():
        raise SchemaError(f"schema file not found: {p}")
    text = p.read_text(encoding="utf-8")
    try:
        if p.suffix.lower() in (".yml", ".yaml"):
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise SchemaError(f"cannot read schema file {p}: {e}") from e
    return ExtractionSchema(_entries_from_data(data))


def merge_schema(base: ExtractionSchema, overrides: ExtractionSchema) -> ExtractionSchema:
    """Override selectors of existing fields in place; append new fields at the end."""
    merged = base.as_dict()
    merged.update(overrides.as_dict())
    return ExtractionSchema(merged.items())
