"""Metadata extraction from well-known ``<meta>`` and ``<link>`` tags."""

from __future__ import annotations

from typing import Union

from bs4 import BeautifulSoup

from crawldash.scraper.models import PageMetadata

# field name -> (CSS selector, attribute to read)
_METADATA_SELECTORS: dict[str, tuple[str, str]] = {
    "description": ('meta[name="description"]', "content"),
    "keywords": ('meta[name="keywords"]', "content"),
    "og_title": ('meta[property="og:title"]', "content"),
    "og_description": ('meta[property="og:description"]', "content"),
    "og_image": ('meta[property="og:image"]', "content"),
    "canonical": ('link[rel="canonical"]', "href"),
    "author": ('meta[name="author"]', "content"),
}


def _attr(soup: BeautifulSoup, selector: str, attribute: str) -> str:
    tag = soup.select_one(selector)
    if tag is None:
        return ""
    value = tag.get(attribute)
    # bs4 returns multi-valued attributes (rel, class) as lists.
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


def extract_metadata(document: Union[str, BeautifulSoup]) -> PageMetadata:
    """Return :class:`PageMetadata` for *document*.

    Missing tags and attributes yield ``""``.  Reads only, so calling it twice
    on the same document gives equal results.
    """
    soup = document if isinstance(document, BeautifulSoup) else BeautifulSoup(
        document or "", "html.parser"
    )
    values = {
        name: _attr(soup, selector, attribute)
        for name, (selector, attribute) in _METADATA_SELECTORS.items()
    }
    return PageMetadata(**values)
