"""Shared fakes for crawler tests."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from linkcrawler.crawl import CrawlConfig, Crawler
from linkcrawler.frontier import MemoryFrontier

BASE = "http://example.com"


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        body: bytes = b"",
        headers: dict[str, str] | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.content = body
        self.headers = headers or {}
        self.url = url


def html_page(*hrefs: str) -> FakeResponse:
    anchors = "".join(f'<a href="{h}">link</a>' for h in hrefs)
    return FakeResponse(
        200,
        f"<html><body>{anchors}</body></html>".encode("utf-8"),
        {"Content-Type": "text/html; charset=utf-8"},
    )


class FakeSession:
    """Serves canned responses by URL; unknown URLs get a 404."""

    def __init__(self, pages: dict | None = None) -> None:
        self.pages = pages or {}
        self.calls: list[str] = []
        self.closed = False
        self._lock = threading.Lock()

    def get(self, url, timeout=None):
        with self._lock:
            self.calls.append(url)
        page = self.pages.get(url)
        if page is None:
            return FakeResponse(404, url=url)
        if isinstance(page, BaseException):
            raise page
        page.url = url
        return page

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def frontier() -> MemoryFrontier:
    return MemoryFrontier()


@pytest.fixture
def make_crawler(tmp_path: Path, frontier: MemoryFrontier):
    """Build a crawler wired to the in-memory frontier and a fake session."""

    def _make(session: FakeSession, *, emitted: list | None = None, **overrides):
        cfg = CrawlConfig(
            base_url=BASE,
            archive_dir=tmp_path / "downloaded",
            stats_interval_s=60,
        )
        for key, value in overrides.items():
            setattr(cfg, key, value)
        sink = emitted if emitted is not None else []
        return Crawler(
            cfg,
            frontier=frontier,
            session_factory=lambda: session,
            emit=sink.append,
        )

    return _make
