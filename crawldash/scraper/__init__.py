"""Scraper package: page rendering, DOM cleanup and metadata extraction."""

from crawldash.scraper.browser import BrowserManager
from crawldash.scraper.metadata import extract_metadata
from crawldash.scraper.models import PageMetadata, RenderedPage, Viewport
from crawldash.scraper.renderer import (
    AutoRenderer,
    BrowserRenderer,
    HttpRenderer,
    Renderer,
    build_renderer,
)

__all__ = [
    "BrowserManager",
    "Renderer",
    "BrowserRenderer",
    "HttpRenderer",
    "AutoRenderer",
    "build_renderer",
    "extract_metadata",
    "PageMetadata",
    "RenderedPage",
    "Viewport",
]
