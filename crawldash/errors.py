"""Exception hierarchy for the crawl pipeline.

Renderer and extraction errors are caught at the pipeline boundary and turned
into stored error rows.  Only :class:`InvalidUrlError` (bad caller input) and
:class:`PersistenceError` (store unavailable) are expected to reach callers.
"""

from __future__ import annotations

from typing import Optional


class CrawlError(Exception):
    """Base class for every failure raised by the crawl pipeline."""


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------

class RenderError(CrawlError):
    """The page could not be rendered."""


class RenderTimeout(RenderError):
    """Navigation did not reach the readiness condition within the timeout."""


class NavigationError(RenderError):
    """DNS, connection or HTTP-level failure while loading the page."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RenderEngineError(RenderError):
    """The rendering engine crashed or was closed underneath us."""


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

class ExtractionError(CrawlError):
    """AI extraction failed."""


class ProviderError(ExtractionError):
    """The provider rejected the call, was unreachable, or replied garbage."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnsupportedProviderError(ExtractionError):
    """The configured provider name is not one we know how to talk to."""


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

class PersistenceError(CrawlError):
    """The crawl_results store could not be read or written."""


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

class InvalidUrlError(ValueError):
    """The submitted URL is missing or not an absolute http(s) URL."""
