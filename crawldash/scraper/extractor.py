"""DOM cleanup: turns rendered HTML into a title and normalised body text."""

from __future__ import annotations

import re
from typing import Union

from bs4 import BeautifulSoup

# Non-content nodes stripped before the body text is read.
NON_CONTENT_SELECTORS = (
    "script",
    "style",
    "noscript",
    "template",
    "iframe",
    "nav",
    "header",
    "footer",
    "aside",
    ".nav",
    ".header",
    ".footer",
    ".sidebar",
    ".ad",
    ".ads",
    ".advert",
    ".advertisement",
    "[id*='cookie-banner']",
    "[id*='cookie-consent']",
    "[class*='cookie-banner']",
    "[class*='cookie-consent']",
)

_WHITESPACE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _soup(document: Union[str, BeautifulSoup]) -> BeautifulSoup:
    if isinstance(document, BeautifulSoup):
        return document
    return BeautifulSoup(document or "", "html.parser")


def normalise_whitespace(text: str) -> str:
    """Collapse every whitespace run to a single space and trim the ends."""
    return _WHITESPACE.sub(" ", text).strip()


def extract_title(document: Union[str, BeautifulSoup]) -> str:
    """Return the document title, else the first ``<h1>``, else ``""``."""
    soup = _soup(document)
    if soup.title is not None:
        title = normalise_whitespace(soup.title.get_text())
        if title:
            return title
    h1 = soup.find("h1")
    if h1 is not None:
        return normalise_whitespace(h1.get_text())
    return ""


def strip_non_content(soup: BeautifulSoup) -> BeautifulSoup:
    """Remove chrome and boilerplate nodes from *soup* in place."""
    for tag in soup.select(", ".join(NON_CONTENT_SELECTORS)):
        # An ancestor may already have been removed along with this tag.
        if tag.decomposed:
            continue
        tag.decompose()
    return soup


def extract_text(soup: BeautifulSoup) -> str:
    """Read ``body`` text (or the whole document when there is no body)."""
    container = soup.body or soup
    return normalise_whitespace(container.get_text(separator=" "))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def clean_document(document: Union[str, BeautifulSoup]) -> tuple[str, str]:
    """Return ``(title, text_content)`` for *document*.

    The title is resolved on the intact document, so a heading that lives
    inside a stripped ``<header>`` still counts.  Text is read after the
    non-content nodes are removed.
    """
    soup = _soup(document)
    title = extract_title(soup)
    strip_non_content(soup)
    return title, extract_text(soup)
