"""Prompt templates for AI extraction."""

from __future__ import annotations

MAX_CONTENT_CHARS = 8000

SYSTEM_PROMPT = (
    "You are a precise web content extraction assistant. You are given the "
    "text of a web page and an extraction request. Extract only the "
    "information that matches the request. Do not add commentary, do not "
    "invent facts, and keep the original wording of extracted values. If the "
    "requested information is not present in the page, say plainly that it "
    "was not found."
)

USER_TEMPLATE = """Extraction request: {prompt}

Web page content:
\"\"\"
{content}
\"\"\"

Return only the extracted information."""


def truncate_content(content: str, limit: int = MAX_CONTENT_CHARS) -> str:
    """Cut *content* to *limit* characters."""
    return content[:limit]


def build_user_prompt(content: str, prompt: str) -> str:
    return USER_TEMPLATE.format(prompt=prompt.strip(), content=truncate_content(content))


# Used by the AI smoke test (``POST /ai/test`` and ``ai test``).
DEFAULT_TEST_PROMPT = (
    "Extract all contact information including emails, phone numbers, and prices"
)

SAMPLE_CONTENT = (
    "Acme Widgets - Contact Us. Questions about an order? Email "
    "support@acme-widgets.example or sales@acme-widgets.example, or call "
    "(555) 123-4567 Monday to Friday. Visit us at 42 Harbor View Road. "
    "Pricing: the Starter plan costs $19.99 per month and the Team plan is "
    "49 USD per seat. Our annual conference takes place on March 14, 2025 "
    "at 9:30 AM."
)
