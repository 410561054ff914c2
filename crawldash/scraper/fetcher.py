"""Static HTTP fetcher and JavaScript SPA detection."""

from __future__ import annotations

import re
from dataclasses import dataclass

import httpx

from crawldash.errors import NavigationError, RenderTimeout

# Markers left by client-side frameworks in otherwise empty shells.
_SPA_PATTERNS = [
    re.compile(r'<div[^>]+id=["\'](?:root|app|__next|__nuxt)["\']', re.IGNORECASE),
    re.compile(r"window\.__NEXT_DATA__", re.IGNORECASE),
    re.compile(r"ng-version=", re.IGNORECASE),
    re.compile(r"data-reactroot", re.IGNORECASE),
]

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)

_DEFAULT_HEADERS = {"User-Agent": BROWSER_USER_AGENT}


@dataclass
class FetchedPage:
    """Body and headers of one static GET."""

    url: str
    final_url: str
    html: str
    status_code: int
    content_type: str


def is_spa(html: str) -> bool:
    """Guess whether *html* is a client-rendered shell that a browser must run."""
    if any(p.search(html) for p in _SPA_PATTERNS):
        return True
    # Very little visible text relative to total HTML size.  Script and style
    # bodies are dropped first so their source doesn't count as text.
    no_scripts = re.sub(
        r"<(script|style)[^>]*>.*?</(script|style)>",
        "",
        html,
        flags=re.IGNORECASE | re.DOTALL,
    )
    visible = re.sub(r"<[^>]+>", "", no_scripts).strip()
    return len(html) > 2000 and len(visible) < 200


async def fetch_html(url: str, timeout_ms: int) -> FetchedPage:
    """GET *url* and return its HTML.

    Raises:
        RenderTimeout: The request exceeded *timeout_ms*.
        NavigationError: Connection failure or a non-2xx response.
    """
    try:
        async with httpx.AsyncClient(
            headers=_DEFAULT_HEADERS,
            timeout=timeout_ms / 1000,
            follow_redirects=True,
        ) as client:
            response = await client.get(url)
    except httpx.TimeoutException as exc:
        raise RenderTimeout(f"Timed out after {timeout_ms}ms fetching {url}") from exc
    except httpx.HTTPError as exc:
        raise NavigationError(f"Could not fetch {url}: {exc}") from exc

    if response.is_error:
        raise NavigationError(
            f"HTTP {response.status_code} fetching {url}",
            status_code=response.status_code,
        )

    return FetchedPage(
        url=url,
        final_url=str(response.url),
        html=response.text,
        status_code=response.status_code,
        content_type=response.headers.get("content-type", ""),
    )
