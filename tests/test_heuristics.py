"""Tests for crawldash.extraction.heuristics.

Everything here is pure string processing, so no mocks are needed except to
force an internal failure in ``extract_locally``.
"""

from __future__ import annotations

import pytest

from crawldash.extraction import heuristics
from crawldash.extraction.heuristics import (
    DEFAULT_CATEGORY,
    PASSTHROUGH_CHARS,
    classify_prompt,
    extract_contact,
    extract_events,
    extract_games,
    extract_links,
    extract_locally,
    extract_people,
    extract_prices,
    extract_snippet,
    format_extraction,
    keyword_overlap,
    prompt_keywords,
    relevant_paragraphs,
)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class TestClassifyPrompt:
    @pytest.mark.parametrize(
        "prompt, expected",
        [
            ("Find contact emails and phone numbers", "contact"),
            ("What is the price of the pro plan?", "prices"),
            ("List the games on sale for Xbox", "games"),
            ("Which products are in stock?", "products"),
            ("When is the next event?", "events"),
            ("Who is on the leadership team?", "people"),
            ("Give me every link", "links"),
        ],
    )
    def test_categories(self, prompt: str, expected: str) -> None:
        assert classify_prompt(prompt) == expected

    def test_no_hits_gives_default(self) -> None:
        assert classify_prompt("summarise the article") == DEFAULT_CATEGORY

    def test_empty_prompt(self) -> None:
        assert classify_prompt("") == DEFAULT_CATEGORY

    def test_tie_keeps_earlier_category(self) -> None:
        # one contact word, one prices word
        assert classify_prompt("email the price") == "contact"

    def test_more_hits_beat_order(self) -> None:
        assert classify_prompt("email the price, cost and fees") == "prices"

    def test_custom_lexicon(self) -> None:
        lexicon = (("b", frozenset({"x"})), ("a", frozenset({"x"})))
        assert classify_prompt("x", lexicon) == "b"

    def test_is_case_insensitive(self) -> None:
        assert classify_prompt("CONTACT DETAILS") == "contact"


class TestPromptKeywords:
    def test_drops_stopwords_and_short_tokens(self) -> None:
        assert prompt_keywords("Find the price of the widgets") == ["price", "widgets"]

    def test_deduplicates(self) -> None:
        assert prompt_keywords("battery battery life") == ["battery", "life"]


# ---------------------------------------------------------------------------
# Category extractors
# ---------------------------------------------------------------------------

class TestCategoryExtractors:
    def test_contact(self) -> None:
        out = extract_contact(
            "Write to info@acme.example or call (555) 123-4567. "
            "Visit 42 Harbor View Road for the showroom."
        )
        assert "Emails:\n- info@acme.example" in out
        assert "Phone Numbers:\n- (555) 123-4567" in out
        assert "Addresses:\n- 42 Harbor View Road" in out

    def test_contact_omits_empty_groups(self) -> None:
        out = extract_contact("Email us at hello@example.org")
        assert out == "Emails:\n- hello@example.org"

    def test_contact_deduplicates(self) -> None:
        out = extract_contact("a@b.com and again a@b.com")
        assert out == "Emails:\n- a@b.com"

    def test_prices(self) -> None:
        out = extract_prices("Starter costs $19.99, Pro is 49 USD and Max is $1,299.")
        assert out == "Prices:\n- $19.99\n- 49 USD\n- $1,299"

    def test_events(self) -> None:
        out = extract_events("The conference is on March 14, 2025 at 9:30 AM in Lisbon.")
        assert "Dates:\n- March 14, 2025" in out
        assert "Times:\n- 9:30 AM" in out

    def test_events_iso_date(self) -> None:
        assert "- 2024-06-01" in extract_events("Released 2024-06-01.")

    def test_people(self) -> None:
        out = extract_people(
            "Our team: Dr. Jane Smith leads research. John Doe, CEO, founded the company."
        )
        assert "- Dr. Jane Smith" in out
        assert "- John Doe, CEO" in out

    def test_links_strip_trailing_punctuation(self) -> None:
        out = extract_links(
            "Docs at https://example.com/docs. Source: https://github.com/acme/widgets,"
        )
        assert out == "Links:\n- https://example.com/docs\n- https://github.com/acme/widgets"

    def test_games_keep_matching_lines_only(self) -> None:
        content = (
            "Top games this week:\n"
            "Elden Ring is an action RPG for PlayStation and Xbox.\n"
            "Weather is sunny today.\n"
            "OK"
        )
        out = extract_games(content)
        assert out.startswith("Games:\n")
        assert "- Elden Ring is an action RPG for PlayStation and Xbox." in out
        assert "Weather" not in out

    def test_games_split_single_line_into_sentences(self) -> None:
        content = "New console bundles arrive Friday. The cafe opens at noon."
        assert extract_games(content) == "Games:\n- New console bundles arrive Friday."

    def test_no_matches_gives_empty_string(self) -> None:
        assert extract_prices("nothing costs anything here") == ""


# ---------------------------------------------------------------------------
# Fallbacks
# ---------------------------------------------------------------------------

class TestFallbacks:
    def test_keyword_overlap_matches_whole_words(self) -> None:
        content = "Our warranty lasts two years. Shipping is free. Returns take 30 days."
        assert keyword_overlap(content, "describe the warranty terms") == (
            "Our warranty lasts two years."
        )

    def test_keyword_overlap_ignores_partial_words(self) -> None:
        assert keyword_overlap("Our warranty lasts two years.", "warrant") == ""

    def test_keyword_overlap_without_keywords(self) -> None:
        assert keyword_overlap("Anything at all.", "the of and") == ""

    def test_paragraphs_match_substrings(self) -> None:
        content = (
            "Shipping is free on every order over fifty dollars placed online.\n\n"
            "Every device ships with a two-year limited warranty covering defects."
        )
        assert relevant_paragraphs(content, "warrant") == (
            "Every device ships with a two-year limited warranty covering defects."
        )

    def test_paragraphs_skip_short_matches(self) -> None:
        content = "warranty: yes"
        assert relevant_paragraphs(content, "warrant") == "warranty: yes..."

    def test_single_line_page_matches_sentences_not_whole_page(self) -> None:
        filler = " ".join(
            f"Section {n} covers shipping times and the returns desk." for n in range(80)
        )
        content = f"{filler} Our plan prices start at twelve dollars per seat each month. {filler}"
        assert len(content) > 4000

        assert relevant_paragraphs(content, "what does it price") == (
            "Our plan prices start at twelve dollars per seat each month."
        )

    def test_long_paragraph_match_is_capped(self) -> None:
        block = "warranty " * 300
        content = f"{block}\n\nShipping is free on every order over fifty dollars."
        snippet = relevant_paragraphs(content, "warrant")
        assert len(snippet) == PASSTHROUGH_CHARS + len("...")
        assert snippet.endswith("...")

    def test_snippet_uses_paragraphs_when_overlap_is_empty(self) -> None:
        content = (
            "Shipping is free on every order over fifty dollars placed online.\n\n"
            "Every device ships with a two-year limited warranty covering defects."
        )
        assert extract_snippet(content, "warrant") == (
            "Every device ships with a two-year limited warranty covering defects."
        )

    def test_snippet_prefers_category_extractor(self) -> None:
        assert extract_snippet("Call 555-123-4567 today.", "phone") == (
            "Phone Numbers:\n- 555-123-4567"
        )

    def test_snippet_falls_back_when_category_finds_nothing(self) -> None:
        content = "Our email desk is closed. Phones ring all day."
        # 'contact' finds no address, email or phone number; overlap matches.
        assert extract_snippet(content, "email") == "Our email desk is closed."


# ---------------------------------------------------------------------------
# extract_locally
# ---------------------------------------------------------------------------

class TestExtractLocally:
    def test_contact_layout(self) -> None:
        content = "Email: a@b.com, Call 555-123-4567"
        out = extract_locally(content, "find contact emails and phone numbers")

        assert out.startswith('Extraction Request: "find contact emails and phone numbers"')
        assert out.index("Emails:") < out.index("Phone Numbers:") < out.index(
            "Full Page Content:"
        )
        assert "- a@b.com" in out
        assert "- 555-123-4567" in out
        assert out.endswith("Full Page Content:\n" + content)

    def test_truncates_when_nothing_matches(self) -> None:
        content = "x" * 1500
        out = extract_locally(content, "summarize this page")
        assert out == (
            'Extraction Request: "summarize this page"\n\n'
            "Extracted Content:\n" + "x" * 1000 + "...\n\n"
            "Full Page Content:\n" + content
        )

    def test_full_text_always_present(self) -> None:
        content = "Prices: $5 and $10. Nothing else."
        assert extract_locally(content, "prices").endswith(content)

    def test_never_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def broken(content: str, prompt: str) -> str:
            raise RuntimeError("regex exploded")

        monkeypatch.setattr(heuristics, "extract_snippet", broken)
        out = extract_locally("Battery life is ten hours.", "battery life")
        assert out == format_extraction(
            "battery life", "Battery life is ten hours.", "Battery life is ten hours."
        )

    def test_handles_empty_content(self) -> None:
        out = extract_locally("", "anything")
        assert out == format_extraction("anything", "...", "")
