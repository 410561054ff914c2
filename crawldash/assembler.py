"""Result assembly: renderer output + extraction outcome → :class:`CrawlResult`.

``crawled_at`` is stamped when the record is assembled, just before it is
stored, not when rendering started.  The render capture time is kept in
``metadata["timestamp"]``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, Union

from crawldash.db.models import STATUS_ERROR, STATUS_SUCCESS, CrawlResult
from crawldash.errors import NavigationError, ProviderError
from crawldash.extraction.models import ExtractionOutcome
from crawldash.scraper.models import RenderedPage


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _prompt_or_none(prompt: Optional[str]) -> Optional[str]:
    if prompt is None or not prompt.strip():
        return None
    return prompt.strip()


def assemble(
    page: RenderedPage,
    outcome: ExtractionOutcome,
    request_url: str,
    prompt: Optional[str] = None,
) -> CrawlResult:
    """Build the success record for one crawl."""
    metadata: dict[str, Any] = {"title": page.title}
    metadata.update(page.metadata.as_dict())
    metadata.update(
        {
            "url": page.final_url or page.source_url,
            "statusCode": page.status_code,
            "contentType": page.content_type,
            "contentLength": len(page.text_content),
            "timestamp": page.captured_at,
            "crawlMethod": page.crawl_method,
            "extractionPrompt": _prompt_or_none(prompt),
            "extractionProvider": outcome.provider.value,
            "extractionModel": outcome.model,
        }
    )
    return CrawlResult(
        url=request_url,
        title=page.title or None,
        content=outcome.content or "",
        metadata=metadata,
        crawled_at=_now(),
        status=STATUS_SUCCESS,
    )


def assemble_error(
    request_url: str,
    error: Union[BaseException, str],
    prompt: Optional[str] = None,
    crawl_method: Optional[str] = None,
) -> CrawlResult:
    """Build the error record for a crawl that failed upstream.

    The error message is stored as the content so the detail view shows it.
    """
    if isinstance(error, BaseException):
        message = str(error) or type(error).__name__
        code: Optional[str] = type(error).__name__
    else:
        message, code = error, None

    metadata: dict[str, Any] = {
        "error": message,
        "code": code,
        "url": request_url,
        "crawlMethod": crawl_method,
        "extractionPrompt": _prompt_or_none(prompt),
        "timestamp": _now(),
    }
    if isinstance(error, (NavigationError, ProviderError)) and error.status_code is not None:
        metadata["statusCode"] = error.status_code

    return CrawlResult(
        url=request_url,
        title=None,
        content=message,
        metadata=metadata,
        crawled_at=metadata["timestamp"],
        status=STATUS_ERROR,
    )
