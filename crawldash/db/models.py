"""Row types for the crawl store.

``metadata`` lives in a JSON text column; everything else maps one column to
one attribute.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"


@dataclass
class CrawlResult:
    """The stored record of one crawl attempt, success or failure."""

    url: str
    title: Optional[str]
    content: str
    crawled_at: str
    status: str = STATUS_SUCCESS
    metadata: dict[str, Any] = field(default_factory=dict)
    id: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.status == STATUS_SUCCESS

    def metadata_json(self) -> str:
        return json.dumps(self.metadata, ensure_ascii=False)

    def to_dict(self) -> dict[str, Any]:
        """Payload returned by the API and ``--json`` CLI output."""
        data = asdict(self)
        data["success"] = self.success
        if not self.success:
            data["error"] = self.metadata.get("error", self.content)
        return data
