"""Resolve a provider name to the URL of its API documentation.

The lookup runs against a provider directory (``apitracker.io`` by
default) in three steps, stopping at the first that yields a docs link:

1. the direct provider page ``<surface>/a/<slug>``
2. the search page ``<surface>/search?q=<slug>``, which may redirect
   straight onto a provider page
3. the best-scoring provider link among the search results

Successful resolutions are remembered in a
:class:`~apidocs.cache.DiscoveryCache`.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from apidocs.cache.discovery import DiscoveryCache
from apidocs.client.fetcher import FetchedDocument, HttpFetcher
from apidocs.discovery.links import (
    extract_docs_link,
    find_best_candidate,
    is_provider_page,
    slug_from_url,
    slugify,
)
from apidocs.exceptions import (
    DocsUrlNotFoundError,
    FetchError,
    ProviderNotFoundError,
    SearchError,
)
from apidocs.models import DiscoveryConfig, DiscoveryResult
from apidocs.output import get_output


class DiscoveryResolver:
    """Maps provider names to documentation URLs.

    Args:
        fetcher: HTTP client for the directory's pages.
        cache: Optional cache of previous resolutions.
        config: Directory base URL.

    Example::

        resolver = DiscoveryResolver(HttpFetcher(), DiscoveryCache(path))
        result = resolver.resolve("stripe")
        print(result.docs_url)
    """

    def __init__(
        self,
        fetcher: HttpFetcher,
        cache: Optional[DiscoveryCache] = None,
        config: Optional[DiscoveryConfig] = None,
    ) -> None:
        self._fetcher = fetcher
        self._cache = cache
        self._base_url = (config or DiscoveryConfig()).base_url.rstrip("/")

    @property
    def base_url(self) -> str:
        return self._base_url

    def resolve(self, query: str, force_refresh: bool = False) -> DiscoveryResult:
        """Return where *query*'s documentation lives.

        Args:
            query: Provider name, e.g. ``"stripe"``.
            force_refresh: Skip the cache lookup (the fresh result is still
                written back).

        Raises:
            ProviderNotFoundError: No provider matches *query*.
            DocsUrlNotFoundError: The provider page has no usable docs link.
            SearchError: The directory could not be reached.
        """
        slug = slugify(query)
        if not slug:
            raise ProviderNotFoundError(query)

        output = get_output()
        if self._cache is not None and not force_refresh:
            entry = self._cache.get(slug)
            if entry is not None:
                output.debug(f"Discovery cache hit for '{slug}': {entry.docs_url}")
                return DiscoveryResult(
                    provider_id=entry.provider_id,
                    docs_url=entry.docs_url,
                    source_origin=entry.source_origin,
                    search_url=entry.search_url,
                    from_cache=True,
                )

        result = self._lookup(query, slug)
        if self._cache is not None:
            self._cache.put(slug, result)
        return result

    # ------------------------------------------------------------------ #
    # Lookup steps
    # ------------------------------------------------------------------ #

    def _lookup(self, query: str, slug: str) -> DiscoveryResult:
        output = get_output()

        direct_url = f"{self._base_url}/a/{quote(slug, safe='')}"
        page = self._fetch_direct(direct_url, query)
        if page is not None and is_provider_page(page.url):
            try:
                return self._from_provider_page(page, query)
            except DocsUrlNotFoundError:
                output.debug(f"No docs link on {page.url}; falling back to search")

        search_url = f"{self._base_url}/search?q={quote(slug, safe='')}"
        results = self._fetch(search_url, query)
        if is_provider_page(results.url):
            return self._from_provider_page(results, query, search_url)

        candidate = find_best_candidate(results.text, results.url, slug)
        if candidate is None:
            raise ProviderNotFoundError(query)
        output.debug(f"Best match for '{slug}': {candidate.url} (score {candidate.score})")
        return self._from_provider_page(self._fetch(candidate.url, query), query, search_url)

    def _fetch_direct(self, url: str, query: str) -> Optional[FetchedDocument]:
        """The direct provider page, or ``None`` when the directory answered with an error."""
        try:
            return self._fetcher.get_page(url)
        except FetchError as exc:
            if exc.status_code is None:
                raise SearchError(f"Discovery failed for '{query}': {exc}", url=url) from exc
            get_output().debug(f"No provider page at {url} (HTTP {exc.status_code})")
            return None

    def _fetch(self, url: str, query: str) -> FetchedDocument:
        try:
            return self._fetcher.get_page(url)
        except FetchError as exc:
            raise SearchError(
                f"Discovery failed for '{query}': {exc}", url=url, status_code=exc.status_code
            ) from exc

    @staticmethod
    def _from_provider_page(
        page: FetchedDocument,
        query: str,
        search_url: Optional[str] = None,
    ) -> DiscoveryResult:
        provider_id = slug_from_url(page.url) or slugify(query)
        docs_url = extract_docs_link(page.text, page.url)
        if docs_url is None:
            raise DocsUrlNotFoundError(provider_id, page.url)
        return DiscoveryResult(
            provider_id=provider_id,
            docs_url=docs_url,
            source_origin=page.url,
            search_url=search_url,
        )
