"""Tests for crawldash.pipeline and crawldash.assembler.

The renderer is replaced with :class:`FakeRenderer` (see ``conftest.py``) and
the store is an in-memory SQLite database, so these run without a browser or
network access.
"""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime
from unittest.mock import patch

import pytest

from crawldash.assembler import assemble, assemble_error
from crawldash.db.results import count_results, get_result
from crawldash.errors import (
    InvalidUrlError,
    NavigationError,
    PersistenceError,
    RenderEngineError,
    RenderTimeout,
)
from crawldash.extraction.models import AIConfig, ExtractionOutcome, Provider
from crawldash.extraction.router import build_router
from crawldash.pipeline import (
    CrawlOptions,
    CrawlRequest,
    rerun_crawl,
    run_crawl,
    validate_url,
)
from crawldash.scraper.models import PageMetadata, Viewport

from conftest import FakeRenderer, make_page

_ROUTER = build_router(AIConfig(provider="", model=""))


def _crawl(conn, url="https://example.com", prompt=None, **options):
    request = CrawlRequest(url=url, prompt=prompt, options=CrawlOptions(**options))
    return asyncio.run(run_crawl(conn, request, _ROUTER, manager=None))  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------

class TestValidation:
    @pytest.mark.parametrize("url", ["", "   ", None, "example.com", "ftp://example.com", "https://"])
    def test_invalid_urls(self, url) -> None:
        with pytest.raises(InvalidUrlError):
            validate_url(url)

    def test_url_is_stripped(self) -> None:
        assert validate_url("  https://example.com/a  ") == "https://example.com/a"

    def test_blank_prompt_becomes_none(self) -> None:
        assert CrawlRequest(url="https://example.com", prompt="   ").prompt is None

    def test_prompt_is_stripped(self) -> None:
        assert CrawlRequest(url="https://example.com", prompt=" emails ").prompt == "emails"

    def test_unknown_renderer(self) -> None:
        with pytest.raises(ValueError):
            CrawlOptions(renderer="lynx")

    def test_non_positive_timeout(self) -> None:
        with pytest.raises(ValueError):
            CrawlOptions(timeout_ms=0)

    def test_options_from_camel_case(self) -> None:
        options = CrawlOptions.from_dict(
            {"renderer": "http", "timeoutMs": 5000, "viewport": {"width": 375}, "extra": 1}
        )
        assert options.renderer == "http"
        assert options.timeout_ms == 5000
        assert options.viewport == Viewport(width=375, height=800)

    def test_options_from_snake_case(self) -> None:
        assert CrawlOptions.from_dict({"timeout_ms": 1234, "settle_ms": 0}).settle_ms == 0

    def test_options_defaults(self) -> None:
        options = CrawlOptions.from_dict(None)
        assert options.renderer == "browser"
        assert options.viewport == Viewport()

    def test_from_payload(self) -> None:
        request = CrawlRequest.from_payload("https://example.com", "", {"renderer": "auto"})
        assert request.prompt is None
        assert request.options.renderer == "auto"


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------

class TestAssemble:
    def test_success_metadata(self) -> None:
        page = make_page(metadata=PageMetadata(description="d", og_title="og"))
        outcome = ExtractionOutcome("body", Provider.LOCAL_HEURISTIC)

        result = assemble(page, outcome, "https://example.com", "  emails ")

        assert result.success
        assert result.content == "body"
        assert result.metadata["title"] == "Example Domain"
        assert result.metadata["description"] == "d"
        assert result.metadata["ogTitle"] == "og"
        assert result.metadata["statusCode"] == 200
        assert result.metadata["contentLength"] == len(page.text_content)
        assert result.metadata["timestamp"] == page.captured_at
        assert result.metadata["extractionPrompt"] == "emails"
        assert result.metadata["extractionProvider"] == "local-heuristic"
        assert result.metadata["extractionModel"] is None
        datetime.fromisoformat(result.crawled_at)

    def test_empty_title_is_stored_as_none(self) -> None:
        result = assemble(
            make_page(title=""), ExtractionOutcome("x", Provider.NONE), "https://example.com"
        )
        assert result.title is None
        assert result.metadata["title"] == ""

    def test_error_record(self) -> None:
        error = NavigationError("HTTP 404 loading https://example.com/x", status_code=404)
        result = assemble_error("https://example.com/x", error, "prices", "playwright")

        assert not result.success
        assert result.title is None
        assert result.content == "HTTP 404 loading https://example.com/x"
        assert result.metadata["code"] == "NavigationError"
        assert result.metadata["statusCode"] == 404
        assert result.metadata["crawlMethod"] == "playwright"
        assert result.metadata["extractionPrompt"] == "prices"
        assert result.crawled_at == result.metadata["timestamp"]

    def test_error_record_from_string(self) -> None:
        result = assemble_error("https://example.com", "boom")
        assert result.content == "boom"
        assert result.metadata["code"] is None


# ---------------------------------------------------------------------------
# run_crawl
# ---------------------------------------------------------------------------

class TestRunCrawl:
    def test_identity_without_prompt(self, conn: sqlite3.Connection, fake_renderer: FakeRenderer) -> None:
        result = _crawl(conn)

        assert result.success
        assert result.id is not None
        assert result.title == "Example Domain"
        assert result.content == fake_renderer.page.text_content
        assert result.metadata["extractionPrompt"] is None
        assert result.metadata["extractionProvider"] == "none"
        assert result.metadata["crawlMethod"] == "fake"
        assert get_result(conn, result.id) == result

    def test_passes_options_to_renderer(self, conn: sqlite3.Connection, fake_renderer: FakeRenderer) -> None:
        _crawl(conn, timeout_ms=1500, settle_ms=0, viewport=Viewport(width=640, height=480))
        assert fake_renderer.calls == [{
            "url": "https://example.com",
            "timeout_ms": 1500,
            "viewport": Viewport(width=640, height=480),
            "settle_ms": 0,
        }]

    def test_prompt_uses_heuristics_without_ai(self, conn: sqlite3.Connection, fake_renderer: FakeRenderer) -> None:
        fake_renderer.page = make_page(text="Email: a@b.com, Call 555-123-4567")

        result = _crawl(conn, prompt="contact info")

        assert result.success
        assert result.metadata["extractionPrompt"] == "contact info"
        assert result.metadata["extractionProvider"] == "local-heuristic"
        assert "Emails:\n- a@b.com" in result.content
        assert result.content.endswith("Full Page Content:\nEmail: a@b.com, Call 555-123-4567")

    @pytest.mark.parametrize(
        "error",
        [
            RenderTimeout("Timed out after 100ms loading https://example.com"),
            NavigationError("net::ERR_NAME_NOT_RESOLVED"),
            RenderEngineError("Browser closed"),
        ],
    )
    def test_render_failure_stores_error_row(
        self, conn: sqlite3.Connection, fake_renderer: FakeRenderer, error: Exception
    ) -> None:
        fake_renderer.error = error
        before = count_results(conn)

        result = _crawl(conn, prompt="emails")

        assert count_results(conn) == before + 1
        assert not result.success
        assert result.title is None
        assert result.content == str(error)
        assert result.metadata["code"] == type(error).__name__
        assert result.metadata["extractionPrompt"] == "emails"
        assert result.metadata["crawlMethod"] == "fake"

    def test_every_call_adds_exactly_one_row(self, conn: sqlite3.Connection, fake_renderer: FakeRenderer) -> None:
        for _ in range(3):
            _crawl(conn)
        assert count_results(conn) == 3

    def test_unknown_renderer_from_builder_becomes_error_row(self, conn: sqlite3.Connection) -> None:
        def refuse(name, manager):
            raise ValueError("no renderer")

        with patch("crawldash.pipeline.build_renderer", refuse):
            result = _crawl(conn)
            static = _crawl(conn, renderer="http")
        assert not result.success
        # Same tag a successful browser render would record.
        assert result.metadata["crawlMethod"] == "playwright"
        assert static.metadata["crawlMethod"] == "http"

    def test_success_insert_failure_stores_error_row(
        self, conn: sqlite3.Connection, fake_renderer: FakeRenderer
    ) -> None:
        from crawldash import pipeline

        real_insert = pipeline.insert_result
        calls = []

        def flaky_insert(connection, result):
            calls.append(result.status)
            if result.success:
                raise PersistenceError("disk full")
            return real_insert(connection, result)

        with patch("crawldash.pipeline.insert_result", flaky_insert):
            result = _crawl(conn)

        assert calls == ["success", "error"]
        assert not result.success
        assert result.content == "disk full"
        assert result.metadata["code"] == "PersistenceError"
        assert count_results(conn) == 1

    def test_persistence_failure_propagates(self, fake_renderer: FakeRenderer) -> None:
        from crawldash.db.connection import get_connection

        closed = get_connection(":memory:")
        closed.close()
        with pytest.raises(PersistenceError):
            _crawl(closed)


# ---------------------------------------------------------------------------
# rerun_crawl
# ---------------------------------------------------------------------------

class TestRerunCrawl:
    def test_rerun_creates_new_row_with_same_prompt(
        self, conn: sqlite3.Connection, fake_renderer: FakeRenderer
    ) -> None:
        first = _crawl(conn, url="https://example.com/a", prompt="emails")

        second = asyncio.run(rerun_crawl(conn, first.id, _ROUTER, manager=None))  # type: ignore[arg-type]

        assert second is not None
        assert second.id != first.id
        assert second.url == "https://example.com/a"
        assert second.metadata["extractionPrompt"] == "emails"
        assert get_result(conn, first.id) == first
        assert count_results(conn) == 2

    def test_rerun_missing_id(self, conn: sqlite3.Connection, fake_renderer: FakeRenderer) -> None:
        assert asyncio.run(rerun_crawl(conn, 42, _ROUTER, manager=None)) is None  # type: ignore[arg-type]
        assert fake_renderer.calls == []
