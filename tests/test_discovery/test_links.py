"""Tests for the provider-directory markup heuristics."""

from __future__ import annotations

import pytest

from apidocs.discovery.links import (
    SCORE_CONTEXT_TEXT,
    SCORE_EXACT_SLUG,
    SCORE_LINK_TEXT,
    SCORE_SLUG_PREFIX,
    SCORE_SLUG_SUBSTRING,
    extract_docs_link,
    find_api_reference_url,
    find_best_candidate,
    is_provider_page,
    score_candidate,
    slug_from_url,
    slugify,
)

PROVIDER_URL = "https://apitracker.io/a/acme"
SEARCH_URL = "https://apitracker.io/search?q=stripe"


def _links(*links: tuple[str, str]) -> str:
    anchors = "".join(f'<a href="{href}">{text}</a>' for href, text in links)
    return f"<html><body><h1>Acme</h1>{anchors}</body></html>"


# ------------------------------------------------------------------ #
# Slugs
# ------------------------------------------------------------------ #


class TestSlugs:
    def test_slug_from_url(self) -> None:
        assert slug_from_url("https://apitracker.io/a/Stripe?ref=x") == "stripe"
        assert slug_from_url("/a/twilio#docs") == "twilio"

    def test_not_a_provider_page(self) -> None:
        assert slug_from_url(SEARCH_URL) is None
        assert not is_provider_page(SEARCH_URL)
        assert is_provider_page(PROVIDER_URL)

    def test_slugify(self) -> None:
        assert slugify("  Stripe ") == "stripe"


# ------------------------------------------------------------------ #
# Search results
# ------------------------------------------------------------------ #


class TestScoring:
    @pytest.mark.parametrize(
        "slug, text, context, expected",
        [
            ("stripe", "", "", SCORE_EXACT_SLUG),
            ("stripe-connect", "", "", SCORE_SLUG_PREFIX),
            ("go-stripe", "", "", SCORE_SLUG_SUBSTRING),
            ("payments-co", "stripe alternative", "", SCORE_LINK_TEXT),
            ("payments-co", "payments co", "works with stripe", SCORE_CONTEXT_TEXT),
            ("payments-co", "payments co", "card processing", 0),
        ],
    )
    def test_score(self, slug: str, text: str, context: str, expected: int) -> None:
        assert score_candidate("stripe", slug, text, context) == expected


class TestFindBestCandidate:
    def test_exact_slug_wins(self) -> None:
        html = """
        <ul>
          <li><a href="/a/stripe-connect">Stripe Connect</a></li>
          <li><a href="/a/paymentsco">Stripe alternative</a></li>
          <li><a href="/a/stripe">Stripe</a></li>
        </ul>"""
        candidate = find_best_candidate(html, SEARCH_URL, "Stripe")
        assert candidate is not None
        assert candidate.url == "https://apitracker.io/a/stripe"
        assert candidate.slug == "stripe"
        assert candidate.score == SCORE_EXACT_SLUG

    def test_ties_keep_document_order(self) -> None:
        html = '<a href="/a/stripe-connect">A</a><a href="/a/stripe-terminal">B</a>'
        candidate = find_best_candidate(html, SEARCH_URL, "stripe")
        assert candidate is not None
        assert candidate.slug == "stripe-connect"

    def test_context_text(self) -> None:
        html = '<div class="result"><a href="/a/acme">Acme</a><p>Payments like Stripe</p></div>'
        candidate = find_best_candidate(html, SEARCH_URL, "stripe")
        assert candidate is not None
        assert candidate.score == SCORE_CONTEXT_TEXT

    def test_no_match(self) -> None:
        html = '<a href="/a/acme">Acme</a><a href="/about">About</a>'
        assert find_best_candidate(html, SEARCH_URL, "doesnotexistco") is None


# ------------------------------------------------------------------ #
# Provider pages
# ------------------------------------------------------------------ #


class TestExtractDocsLink:
    def test_developer_portal_first(self) -> None:
        html = _links(
            ("https://acme.io/documentation", "Documentation"),
            ("https://developers.acme.io", "Developer Portal"),
        )
        assert extract_docs_link(html, PROVIDER_URL) == "https://developers.acme.io"

    def test_keyword_text(self) -> None:
        html = _links(
            ("https://acme.io", "Website"),
            ("https://acme.io/reference", "API Reference"),
        )
        assert extract_docs_link(html, PROVIDER_URL) == "https://acme.io/reference"

    def test_href_pattern(self) -> None:
        html = _links(
            ("https://status.acme-api.io", "Status"),
            ("https://acme.io/swagger/index.html", "Reference"),
        )
        assert extract_docs_link(html, PROVIDER_URL) == "https://acme.io/swagger/index.html"

    def test_external_api_link(self) -> None:
        html = _links(
            ("https://twitter.com/acme_api", "Twitter"),
            ("https://developer.acme.io", "Visit"),
            ("https://acme-api.io", "Home"),
        )
        assert extract_docs_link(html, PROVIDER_URL) == "https://acme-api.io"

    def test_developer_fallback(self) -> None:
        html = _links(("https://acme.io", "Home"), ("https://developer.acme.io", "Visit"))
        assert extract_docs_link(html, PROVIDER_URL) == "https://developer.acme.io"

    def test_surface_links_ignored(self) -> None:
        html = _links(
            ("/docs", "API docs"),
            ("https://blog.apitracker.io/documentation", "Documentation"),
            ("#overview", "Developer docs"),
        )
        assert extract_docs_link(html, PROVIDER_URL) is None

    def test_nothing_usable(self) -> None:
        assert extract_docs_link(_links(("https://acme.io", "Home")), PROVIDER_URL) is None


class TestFindApiReferenceUrl:
    def test_link_text(self) -> None:
        html = _links(("/guides", "Guides"), ("/reference", "API Reference"))
        assert find_api_reference_url(html, "https://docs.acme.io/") == "https://docs.acme.io/reference"

    def test_href_pattern(self) -> None:
        html = _links(("/guides", "Guides"), ("/v1/api", "Endpoints"))
        assert find_api_reference_url(html, "https://docs.acme.io/") == "https://docs.acme.io/v1/api"

    def test_self_link_ignored(self) -> None:
        html = _links(("https://docs.acme.io/", "REST API"))
        assert find_api_reference_url(html, "https://docs.acme.io") is None
