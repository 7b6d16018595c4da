"""Markup heuristics for the discovery surface.

Everything here is pure: it takes HTML text and returns URLs, so the
resolver can be tested against saved pages. Unexpected markup yields
``None`` rather than an exception.
"""

from __future__ import annotations

import re
from typing import NamedTuple, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Tag

# Candidate scores; only their relative order matters.
SCORE_EXACT_SLUG = 100
SCORE_SLUG_PREFIX = 80
SCORE_SLUG_SUBSTRING = 60
SCORE_LINK_TEXT = 40
SCORE_CONTEXT_TEXT = 20

DOCS_KEYWORDS = (
    "api reference",
    "api docs",
    "documentation",
    "api documentation",
    "openapi",
    "swagger",
    "developer",
)

DOCS_HREF_SELECTORS = (
    'a[href*="api-reference"]',
    'a[href*="api-docs"]',
    'a[href*="/docs"]',
    'a[href*="documentation"]',
    'a[href*="swagger"]',
    'a[href*="openapi"]',
    'a[href*="redoc"]',
)

EXCLUDED_DOMAINS = ("github.com", "twitter.com", "linkedin.com", "facebook.com")

API_REFERENCE_KEYWORDS = ("api reference", "api-reference", "api docs", "rest api", "api documentation")
API_REFERENCE_HREFS = ("api-reference", "api/reference", "/api")

_SLUG_RE = re.compile(r"/a/([^/?#]+)")


class Candidate(NamedTuple):
    """A provider page link on a search results page."""

    url: str
    slug: str
    score: int


def slug_from_url(url: str) -> Optional[str]:
    """The provider slug in a ``/a/<slug>`` URL, lower-cased."""
    match = _SLUG_RE.search(url)
    return match.group(1).lower() if match else None


def is_provider_page(url: str) -> bool:
    return slug_from_url(url) is not None


def slugify(query: str) -> str:
    """Normalize a free-text provider name the way the surface builds slugs."""
    return query.strip().lower()


def score_candidate(query: str, slug: str, text: str, context: str) -> int:
    """Score one result link against the normalized *query*; ``0`` means no match."""
    if slug == query:
        return SCORE_EXACT_SLUG
    if slug.startswith(query):
        return SCORE_SLUG_PREFIX
    if query in slug:
        return SCORE_SLUG_SUBSTRING
    if query in text:
        return SCORE_LINK_TEXT
    if query in context:
        return SCORE_CONTEXT_TEXT
    return 0


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _link_text(link: Tag) -> str:
    return link.get_text(" ", strip=True).lower()


def find_best_candidate(html: str, page_url: str, query: str) -> Optional[Candidate]:
    """Return the highest-scoring provider link on a search results page.

    Ties keep document order.
    """
    query = slugify(query)
    best: Optional[Candidate] = None
    for link in _soup(html).select('a[href*="/a/"]'):
        href = str(link.get("href") or "")
        slug = slug_from_url(href)
        if slug is None:
            continue
        parent = link.find_parent(["div", "li", "article"])
        context = parent.get_text(" ", strip=True).lower() if parent else ""
        score = score_candidate(query, slug, _link_text(link), context)
        if score > 0 and (best is None or score > best.score):
            best = Candidate(urljoin(page_url, href), slug, score)
    return best


def _absolute(href: str, page_url: str) -> str:
    return urljoin(page_url, href)


def _external_href(link: Tag, page_url: str, search_host: str) -> Optional[str]:
    """Absolute http(s) URL of *link*, unless it is a fragment or points at the surface."""
    href = str(link.get("href") or "").strip()
    if not href or href.startswith("#"):
        return None
    absolute = _absolute(href, page_url)
    host = urlsplit(absolute).hostname or ""
    if not absolute.startswith("http") or host == search_host or host.endswith("." + search_host):
        return None
    return absolute


def extract_docs_link(html: str, page_url: str) -> Optional[str]:
    """Find the documentation link on a provider page.

    Cascade, first hit wins:

    1. link text containing "developer portal", or exactly "developer docs"
    2. link text containing a documentation keyword (:data:`DOCS_KEYWORDS`)
    3. an href matching a conventional docs pattern (:data:`DOCS_HREF_SELECTORS`)
    4. an external link containing "api", else the first external link
       containing "docs" or "developer"

    Only links leaving the search surface count (relative links resolve
    against *page_url* and so never do); fragment links are ignored.
    """
    soup = _soup(html)
    search_host = urlsplit(page_url).hostname or ""
    links = soup.select("a[href]")

    for link in links:
        href = _external_href(link, page_url, search_host)
        text = _link_text(link)
        if href and ("developer portal" in text or text == "developer docs"):
            return href

    for link in links:
        href = _external_href(link, page_url, search_host)
        text = _link_text(link)
        if href and any(keyword in text for keyword in DOCS_KEYWORDS):
            return href

    for selector in DOCS_HREF_SELECTORS:
        for link in soup.select(selector):
            href = _external_href(link, page_url, search_host)
            if href:
                return href

    fallback: Optional[str] = None
    for link in links:
        href = _external_href(link, page_url, search_host)
        if not href:
            continue
        if any(domain in href for domain in EXCLUDED_DOMAINS):
            continue
        if "api" in href:
            return href
        if fallback is None and ("docs" in href or "developer" in href):
            fallback = href
    return fallback


def find_api_reference_url(html: str, page_url: str) -> Optional[str]:
    """Find an "API reference" link on a documentation landing page.

    Link text keywords are tried first, then href patterns. Returns ``None``
    when the only candidates point back at *page_url*.
    """
    soup = _soup(html)
    links = soup.select("a[href]")
    current = page_url.rstrip("/")

    def usable(link: Tag) -> Optional[str]:
        href = str(link.get("href") or "").strip()
        if not href or href.startswith("#") or "apitracker" in href:
            return None
        absolute = _absolute(href, page_url)
        if absolute.rstrip("/") == current or not absolute.startswith("http"):
            return None
        return absolute

    for link in links:
        if any(keyword in _link_text(link) for keyword in API_REFERENCE_KEYWORDS):
            url = usable(link)
            if url:
                return url

    for link in links:
        href = str(link.get("href") or "")
        if any(pattern in href for pattern in API_REFERENCE_HREFS):
            url = usable(link)
            if url:
                return url
    return None
