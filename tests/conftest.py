"""Shared pytest fixtures."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from changefeed.fetch import FetchError

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


class FakeFetcher:
    """Stand-in for ``fetch_html`` serving canned pages and recording calls."""

    def __init__(self, pages: dict[str, str] | None = None, fail: set[str] | None = None) -> None:
        self.pages = dict(pages or {})
        self.fail = set(fail or ())
        self.calls: list[tuple[str, float]] = []
        self._lock = threading.Lock()

    def __call__(self, url: str, *, timeout: float = 10, headers: dict[str, str] | None = None) -> str:
        with self._lock:
            self.calls.append((url, timeout))
        if url in self.fail:
            raise FetchError(f"Timed out fetching {url} after {timeout}s", url=url)
        try:
            return self.pages[url]
        except KeyError:
            raise FetchError(f"HTTP 404 fetching {url}: Not Found", url=url, status=404) from None

    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]


@pytest.fixture
def changelog_md() -> str:
    return _read_fixture("changelog.md")


@pytest.fixture
def release_notes_html() -> str:
    return _read_fixture("release_notes.html")


@pytest.fixture
def main_only_html() -> str:
    return _read_fixture("main_only.html")


@pytest.fixture
def detail_html() -> str:
    return _read_fixture("detail.html")


@pytest.fixture
def detail_empty_html() -> str:
    return _read_fixture("detail_empty.html")


@pytest.fixture
def make_fetcher():
    return FakeFetcher
