"""Plain-text rendering of crawl results for the CLI."""

from __future__ import annotations

from crawldash.db.models import CrawlResult

_PREVIEW_CHARS = 80


def _preview(text: str, limit: int = _PREVIEW_CHARS) -> str:
    text = " ".join(text.split())
    return text if len(text) <= limit else text[: limit - 1] + "…"


def render_row(result: CrawlResult) -> str:
    """One history line: id, status, time, url and title."""
    marker = "✓" if result.success else "✗"
    title = result.title or "(no title)"
    return f"  {result.id:>5}  {marker}  {result.crawled_at[:19]}  {result.url}  {title!r}"


def render_detail(result: CrawlResult) -> str:
    """Multi-line detail view of a single result."""
    meta = result.metadata
    lines = [
        f"ID        : {result.id}",
        f"URL       : {result.url}",
        f"Status    : {result.status}",
        f"Crawled at: {result.crawled_at}",
        f"Title     : {result.title or '(none)'}",
    ]
    if result.success:
        lines += [
            f"Method    : {meta.get('crawlMethod') or '-'}",
            f"Length    : {meta.get('contentLength', len(result.content))} chars",
            f"Prompt    : {meta.get('extractionPrompt') or '(none)'}",
            f"Extractor : {meta.get('extractionProvider') or 'none'}"
            + (f" ({meta['extractionModel']})" if meta.get("extractionModel") else ""),
        ]
        if meta.get("description"):
            lines.append(f"Summary   : {_preview(meta['description'])}")
    else:
        lines.append(f"Error     : {meta.get('code') or 'Error'}: {result.content}")
    lines += ["", result.content if result.success else ""]
    return "\n".join(lines).rstrip() + "\n"
