from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class Record:
    """Fields extracted from one document, keyed by schema field name."""

    source_url: str
    fields: Dict[str, str] = field(default_factory=dict)

    def get(self, name: str) -> str:
        return self.fields.get(name, "")

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.fields)
        out["url"] = self.source_url
        return out


@dataclass
class BatchResult:
    total: int
    success: int
    failed: int
    records: List[Record] = field(default_factory=list)
    failed_urls: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "success": self.success,
            "failed": self.failed,
            "records": [r.to_dict() for r in self.records],
            "failed_urls": list(self.failed_urls),
        }
