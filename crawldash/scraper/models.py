"""Data models for the page renderer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PageMetadata:
    """Well-known meta/link tag values.  Every field is ``""`` when absent."""

    description: str = ""
    keywords: str = ""
    og_title: str = ""
    og_description: str = ""
    og_image: str = ""
    canonical: str = ""
    author: str = ""

    def as_dict(self) -> dict[str, str]:
        """Return the camelCase mapping stored in the result metadata blob."""
        return {
            "description": self.description,
            "keywords": self.keywords,
            "ogTitle": self.og_title,
            "ogDescription": self.og_description,
            "ogImage": self.og_image,
            "canonical": self.canonical,
            "author": self.author,
        }


@dataclass(frozen=True)
class Viewport:
    width: int = 1280
    height: int = 800

    def as_dict(self) -> dict[str, int]:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True)
class RenderedPage:
    """Cleaned output of one render attempt."""

    title: str
    text_content: str
    metadata: PageMetadata
    source_url: str
    crawl_method: str
    captured_at: str
    final_url: str = ""
    status_code: Optional[int] = None
    content_type: str = ""
