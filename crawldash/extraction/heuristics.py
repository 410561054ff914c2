"""Local, rule-based extraction used when no AI provider is available.

The prompt is classified into a category by counting keyword hits against
:data:`CATEGORY_LEXICON`.  The category's extractor pulls matching values out
of the page text with regexes or keyword line filters.  When that finds
nothing the extractor falls back to keyword overlap, then to relevant
paragraphs, then to the start of the page.

The result always carries the full original text under ``Full Page Content``;
the heuristics annotate the page, they never replace it.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, Sequence

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "text"

# Ordered: on a tie the earlier category wins.
CATEGORY_LEXICON: tuple[tuple[str, frozenset[str]], ...] = (
    ("contact", frozenset({
        "contact", "contacts", "email", "emails", "mail", "phone", "phones",
        "telephone", "tel", "call", "address", "addresses", "reach", "fax",
    })),
    ("prices", frozenset({
        "price", "prices", "pricing", "cost", "costs", "fee", "fees", "rate",
        "rates", "dollar", "dollars", "euro", "euros", "cheap", "expensive",
        "discount", "discounts", "sale", "deal", "deals",
    })),
    ("games", frozenset({
        "game", "games", "gaming", "gamer", "play", "player", "players",
        "console", "xbox", "playstation", "nintendo", "switch", "steam",
        "esports", "rpg",
    })),
    ("products", frozenset({
        "product", "products", "item", "items", "buy", "shop", "store",
        "catalog", "catalogue", "brand", "brands", "model", "models", "sku",
        "inventory", "stock",
    })),
    ("events", frozenset({
        "event", "events", "date", "dates", "time", "times", "schedule",
        "calendar", "when", "concert", "concerts", "meeting", "meetings",
        "conference", "webinar", "festival", "agenda",
    })),
    ("people", frozenset({
        "people", "person", "persons", "name", "names", "team", "staff",
        "author", "authors", "employee", "employees", "who", "founder",
        "founders", "member", "members", "speaker", "speakers", "leadership",
    })),
    ("links", frozenset({
        "link", "links", "url", "urls", "href", "website", "websites",
        "hyperlink", "hyperlinks",
    })),
)

STOPWORDS = frozenset({
    "a", "about", "all", "an", "and", "any", "are", "as", "at", "be", "by",
    "can", "do", "details", "each", "every", "extract", "find", "for", "from",
    "get", "give", "grab", "has", "have", "how", "i", "in", "info",
    "information", "is", "it", "its", "list", "me", "of", "on", "or",
    "page", "please", "pull", "return", "show", "site", "that", "the",
    "their", "them", "there", "these", "this", "those", "to", "using",
    "want", "what", "which", "with", "you", "your",
})

MIN_TOKEN_LENGTH = 3
MAX_MATCHES_PER_GROUP = 50
MAX_KEYWORD_LINES = 20
MAX_PARAGRAPHS = 5
MIN_PARAGRAPH_CHARS = 50
PASSTHROUGH_CHARS = 1000
ELLIPSIS = "..."
LINE_MIN_CHARS = 10
LINE_MAX_CHARS = 300

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------
_TOKEN = re.compile(r"[a-z0-9]+")
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
PHONE_RE = re.compile(
    r"(?<![\d-])(?:\+?1[-.\s]?)?(?:\(\d{3}\)\s?|\d{3}[-.\s]?)\d{3}[-.\s]?\d{4}(?![\d-])"
)
ADDRESS_RE = re.compile(
    r"\b\d{1,5}\s+(?:[A-Z][A-Za-z0-9.'-]*\s+){1,4}"
    r"(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Lane|Ln|Drive|Dr|"
    r"Court|Ct|Way|Place|Pl|Parkway|Pkwy|Square|Sq|Highway|Hwy)\b\.?"
)
PRICE_RE = re.compile(
    r"\$\s?\d+(?:,\d{3})*(?:\.\d{1,2})?"
    r"|\b\d+(?:,\d{3})*(?:\.\d+)?\s?(?:USD|EUR|GBP|CAD|AUD|JPY|CHF|"
    r"dollars?|euros?|pounds?)\b",
    re.IGNORECASE,
)
_MONTH = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|Jun(?:e)?|"
    r"Jul(?:y)?|Aug(?:ust)?|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|"
    r"Dec(?:ember)?)"
)
DATE_RE = re.compile(
    r"\b(?:\d{4}-\d{2}-\d{2}"
    r"|\d{1,2}[/.-]\d{1,2}[/.-]\d{2,4}"
    rf"|{_MONTH}\.?\s+\d{{1,2}}(?:st|nd|rd|th)?(?:,?\s+\d{{4}})?"
    rf"|\d{{1,2}}(?:st|nd|rd|th)?\s+{_MONTH}\.?(?:,?\s+\d{{4}})?)\b",
    re.IGNORECASE,
)
TIME_RE = re.compile(
    r"\b(?:(?:[01]?\d|2[0-3]):[0-5]\d(?:\s?[ap]\.?m\.?)?"
    r"|(?:1[0-2]|0?[1-9])\s?[ap]\.?m\.?)(?!\w)",
    re.IGNORECASE,
)
_TITLE_SUFFIX = (
    r"(?:CEO|CTO|CFO|COO|CMO|Founder|Co-Founder|President|Vice President|"
    r"Director|Manager|Engineer|Editor|Professor|Chairman|Chair|Head of [A-Z][a-z]+)"
)
PERSON_RE = re.compile(
    r"\b(?:Mr|Mrs|Ms|Miss|Dr|Prof|Sir|Dame)\.?\s+[A-Z][a-z]+(?:\s+[A-Z][a-z]+)?"
    rf"|\b[A-Z][a-z]+\s+[A-Z][a-z]+(?:,?\s+{_TITLE_SUFFIX})?"
)
LINK_RE = re.compile(r"https?://[^\s<>\"'()\[\]{}]+")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _tokens(text: str) -> list[str]:
    return _TOKEN.findall(text.lower())


def _unique(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


def _findall(pattern: re.Pattern[str], content: str) -> list[str]:
    return _unique(m.group(0) for m in pattern.finditer(content))[:MAX_MATCHES_PER_GROUP]


def _segments(content: str) -> list[str]:
    """Split *content* into lines, or into sentences when it is a single line.

    Rendered text is whitespace-normalised to one line, so sentences stand in
    for lines there.
    """
    lines = [line.strip() for line in content.splitlines() if line.strip()]
    if len(lines) > 1:
        return lines
    return [s.strip() for s in _SENTENCE_SPLIT.split(content) if s.strip()]


def _format_groups(groups: Sequence[tuple[str, list[str]]]) -> str:
    blocks = [
        f"{label}:\n" + "\n".join(f"- {value}" for value in values)
        for label, values in groups
        if values
    ]
    return "\n\n".join(blocks)


def _contains_word(segment: str, words: Iterable[str]) -> bool:
    present = set(_tokens(segment))
    return any(word in present for word in words)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def classify_prompt(
    prompt: str,
    lexicon: Sequence[tuple[str, frozenset[str]]] = CATEGORY_LEXICON,
) -> str:
    """Return the category whose keywords appear most often in *prompt*.

    Ties keep the earlier entry of *lexicon*.  No hits at all gives
    :data:`DEFAULT_CATEGORY`.
    """
    tokens = _tokens(prompt or "")
    best, best_hits = DEFAULT_CATEGORY, 0
    for category, keywords in lexicon:
        hits = sum(1 for token in tokens if token in keywords)
        if hits > best_hits:
            best, best_hits = category, hits
    return best


def prompt_keywords(prompt: str) -> list[str]:
    """Prompt tokens with stopwords and short tokens removed."""
    return _unique(
        t for t in _tokens(prompt or "")
        if len(t) >= MIN_TOKEN_LENGTH and t not in STOPWORDS
    )


# ---------------------------------------------------------------------------
# Category extractors
# ---------------------------------------------------------------------------

def extract_contact(content: str) -> str:
    return _format_groups([
        ("Emails", _findall(EMAIL_RE, content)),
        ("Phone Numbers", _findall(PHONE_RE, content)),
        ("Addresses", _findall(ADDRESS_RE, content)),
    ])


def extract_prices(content: str) -> str:
    return _format_groups([("Prices", _findall(PRICE_RE, content))])


def _keyword_lines(content: str, keywords: frozenset[str]) -> list[str]:
    lines = [
        segment for segment in _segments(content)
        if LINE_MIN_CHARS <= len(segment) <= LINE_MAX_CHARS
        and _contains_word(segment, keywords)
    ]
    return _unique(lines)[:MAX_KEYWORD_LINES]


def _lexicon(category: str) -> frozenset[str]:
    return dict(CATEGORY_LEXICON)[category]


def extract_games(content: str) -> str:
    return _format_groups([("Games", _keyword_lines(content, _lexicon("games")))])


def extract_products(content: str) -> str:
    return _format_groups([("Products", _keyword_lines(content, _lexicon("products")))])


def extract_events(content: str) -> str:
    return _format_groups([
        ("Dates", _findall(DATE_RE, content)),
        ("Times", _findall(TIME_RE, content)),
    ])


def extract_people(content: str) -> str:
    return _format_groups([("People", _findall(PERSON_RE, content))])


def extract_links(content: str) -> str:
    links = _unique(m.group(0).rstrip(".,;:!?") for m in LINK_RE.finditer(content))
    return _format_groups([("Links", links[:MAX_MATCHES_PER_GROUP])])


CATEGORY_EXTRACTORS: dict[str, Callable[[str], str]] = {
    "contact": extract_contact,
    "prices": extract_prices,
    "games": extract_games,
    "products": extract_products,
    "events": extract_events,
    "people": extract_people,
    "links": extract_links,
}


# ---------------------------------------------------------------------------
# Fallbacks
# ---------------------------------------------------------------------------

def keyword_overlap(content: str, prompt: str) -> str:
    """Lines (or sentences) sharing a whole word with the prompt keywords."""
    keywords = prompt_keywords(prompt)
    if not keywords:
        return ""
    lines = [s for s in _segments(content) if _contains_word(s, keywords)]
    return "\n".join(_unique(lines)[:MAX_KEYWORD_LINES])


def relevant_paragraphs(content: str, prompt: str) -> str:
    """Paragraphs mentioning a prompt keyword, else the start of the page.

    Matching here is by substring, so ``warrant`` also finds ``warranty``.
    """
    keywords = prompt_keywords(prompt)
    matches = [
        p for p in _paragraphs(content)
        if len(p) >= MIN_PARAGRAPH_CHARS and any(k in p.lower() for k in keywords)
    ]
    if not matches:
        return truncated(content)
    snippet = "\n\n".join(matches[:MAX_PARAGRAPHS])
    if len(snippet) > PASSTHROUGH_CHARS:
        return truncated(snippet)
    return snippet


def _paragraphs(content: str) -> list[str]:
    paragraphs = [p.strip() for p in _PARAGRAPH_SPLIT.split(content) if p.strip()]
    if len(paragraphs) > 1:
        return paragraphs
    # Rendered page text has no blank lines; fall back to lines or sentences.
    return _segments(content)


def truncated(content: str) -> str:
    return content[:PASSTHROUGH_CHARS] + ELLIPSIS


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def format_extraction(prompt: str, extracted: str, content: str) -> str:
    """Lay out the extracted snippet above the untouched page text."""
    return (
        f'Extraction Request: "{prompt}"\n\n'
        f"Extracted Content:\n{extracted}\n\n"
        f"Full Page Content:\n{content}"
    )


def extract_snippet(content: str, prompt: str) -> str:
    """Run classification, the category extractor and the fallbacks."""
    category = classify_prompt(prompt)
    extractor = CATEGORY_EXTRACTORS.get(category)
    snippet = extractor(content) if extractor else ""
    if snippet:
        logger.debug("[extract] heuristic category %r matched", category)
        return snippet
    snippet = keyword_overlap(content, prompt)
    if snippet:
        logger.debug("[extract] category %r empty; keyword overlap matched", category)
        return snippet
    return relevant_paragraphs(content, prompt)


def extract_locally(content: str, prompt: str) -> str:
    """Annotate *content* with the parts relevant to *prompt*.

    Never raises.  An internal failure degrades to keyword overlap and then to
    the start of the page.
    """
    content = content or ""
    prompt = (prompt or "").strip()
    try:
        snippet = extract_snippet(content, prompt)
    except Exception:  # noqa: BLE001
        logger.exception("[extract] heuristic extraction failed; degrading")
        try:
            snippet = keyword_overlap(content, prompt) or truncated(content)
        except Exception:  # noqa: BLE001
            snippet = truncated(content)
    return format_extraction(prompt, snippet, content)
