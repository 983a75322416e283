from __future__ import annotations

import threading
from typing import List

from jobs2json.core.models import Record


class ResultAggregator:
    """Lock-protected list that a batch's workers append records into.

    ``snapshot`` is meant to be read once all producers are done; the completion
    barrier enforces that, not this class. Dropped URLs are tracked separately
    for diagnostics and never show up among the records.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: List[Record] = []
        self._failed: List[str] = []

    def append(self, record: Record) -> None:
        with self._lock:
            self._records.append(record)

    def mark_failed(self, url: str) -> None:
        with self._lock:
            self._failed.append(url)

    def snapshot(self) -> List[Record]:
        with self._lock:
            return list(self._records)

    def failed_urls(self) -> List[str]:
        with self._lock:
            return list(self._failed)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
