"""Shared fixtures and fakes.

No test needs a real browser, network access or the user's workspace: the
DB is in-memory (or under ``tmp_path``), httpx is mocked with ``respx`` and
renderers are replaced with :class:`FakeRenderer`.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Generator, Optional

import pytest

from crawldash.db.connection import get_connection
from crawldash.db.migrations import init_db
from crawldash.scraper.models import PageMetadata, RenderedPage, Viewport
from crawldash.scraper.renderer import Renderer


def make_page(
    title: str = "Example Domain",
    text: str = "This domain is for use in illustrative examples in documents.",
    url: str = "https://example.com",
    metadata: Optional[PageMetadata] = None,
) -> RenderedPage:
    return RenderedPage(
        title=title,
        text_content=text,
        metadata=metadata or PageMetadata(description="Example description"),
        source_url=url,
        crawl_method="fake",
        captured_at=datetime.now(timezone.utc).isoformat(),
        final_url=url,
        status_code=200,
        content_type="text/html; charset=UTF-8",
    )


class FakeRenderer(Renderer):
    """Returns a canned page, or raises a canned error."""

    def __init__(
        self,
        page: Optional[RenderedPage] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        self.page = page or make_page()
        self.error = error
        self.calls: list[dict] = []

    @property
    def name(self) -> str:
        return "fake"

    async def render(
        self,
        url: str,
        timeout_ms: Optional[int] = None,
        viewport: Optional[Viewport] = None,
        settle_ms: Optional[int] = None,
    ) -> RenderedPage:
        self.calls.append(
            {"url": url, "timeout_ms": timeout_ms, "viewport": viewport, "settle_ms": settle_ms}
        )
        if self.error is not None:
            raise self.error
        return self.page


@pytest.fixture()
def conn() -> Generator[sqlite3.Connection, None, None]:
    """In-memory connection with the schema initialised."""
    connection = get_connection(db_path=":memory:")
    init_db(connection)
    yield connection
    connection.close()


@pytest.fixture()
def fake_renderer(monkeypatch: pytest.MonkeyPatch) -> FakeRenderer:
    """Patch the pipeline so every crawl uses one :class:`FakeRenderer`."""
    renderer = FakeRenderer()
    monkeypatch.setattr(
        "crawldash.pipeline.build_renderer", lambda name, manager: renderer
    )
    return renderer


@pytest.fixture()
def workspace(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Point the workspace (and so the default DB) at ``tmp_path``."""
    monkeypatch.setattr("crawldash.config.settings.workspace_dir", tmp_path)
    monkeypatch.setattr("crawldash.config.settings.ai_provider", "")
    monkeypatch.setattr("crawldash.config.settings.ai_model", "")
    return tmp_path
