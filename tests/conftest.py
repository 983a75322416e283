# -*- coding: utf-8 -*-
from __future__ import annotations

import sys
import threading
import time
from pathlib import Path
from typing import Dict, List, Optional

import pytest


def pytest_sessionstart(session) -> None:
    # Ensure project root is importable for tests
    root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(root))


def job_page(title: str = "", location: str = "", company: str = "") -> bytes:
    """HTML shaped like a job posting page of the default schema's site."""
    parts = ["<html><head><title>job</title></head><body>"]
    if title:
        parts.append(f'<h1 class="jobsearch-JobInfoHeader-title">{title}</h1>')
    if company or location:
        parts.append('<div class="jobsearch-InlineCompanyRating">')
        parts.append("<div>4.1 stars</div>")
        if location:
            parts.append(f"<div>{location}</div>")
        parts.append("</div>")
    if company:
        parts.append(f'<a class="jobsearch-CompanyAvatar-companyLink" href="#">{company}</a>')
    parts.append("</body></html>")
    return "".join(parts).encode("utf-8")


class FakeFetcher:
    """Serves canned documents; URLs missing from ``pages`` fail like a transport error."""

    def __init__(self, pages: Dict[str, bytes], delay: float = 0.0, fail: Optional[set] = None) -> None:
        from jobs2json.core.errors import FetchError

        self._error = FetchError
        self.pages = pages
        self.delay = delay
        self.fail = set(fail or ())
        self.calls: List[str] = []
        self._lock = threading.Lock()
        self.active = 0
        self.max_active = 0

    def fetch(self, url: str) -> bytes:
        with self._lock:
            self.calls.append(url)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if url in self.fail or url not in self.pages:
                raise self._error(url, "simulated connection refused")
            return self.pages[url]
        finally:
            with self._lock:
                self.active -= 1


@pytest.fixture
def make_page():
    return job_page


@pytest.fixture
def fake_fetcher_cls():
    return FakeFetcher
