"""Multi-strategy acquisition of an API's endpoint list.

:class:`SpecAcquisitionPipeline` turns a provider name or URL into an
:class:`~apidocs.models.ExtractionResult`. Strategies are tried in order,
cheapest and most precise first, and the first to produce a result wins:

1. ``direct`` -- :class:`DirectFetchStrategy`: GET the target when it
   already looks like a spec document URL.
2. ``probe`` -- :class:`PathProbeStrategy`: GET each of
   :data:`COMMON_SPEC_PATHS` on the target's origin.
3. ``generic-scrape`` -- :class:`GenericScrapeStrategy`: render the page and
   scan it for ``METHOD /path`` patterns.
4. ``framework`` -- :class:`FrameworkExtractionStrategy`: render the page,
   detect its documentation UI, and run that UI's extractor.

A strategy that fails with a not-found, schema or network error hands over
to the next and its reason is recorded; when all fail,
:class:`~apidocs.exceptions.SpecNotFoundError` lists every reason. Login
walls, browser failures and cache corruption stop the run immediately.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from pydantic import ValidationError

from apidocs.browser.session import BrowserSession
from apidocs.cache.store import CacheStore
from apidocs.client.fetcher import HttpFetcher
from apidocs.detect import Framework, detect_framework
from apidocs.discovery.links import find_api_reference_url
from apidocs.discovery.resolver import DiscoveryResolver
from apidocs.exceptions import (
    CacheExpiredError,
    CacheNotFoundError,
    FetchError,
    FrameworkNotDetectedError,
    InvalidUsageError,
    NotFoundError,
    SchemaInvalidError,
    SpecNotFoundError,
)
from apidocs.extractors import EXTRACTORS, ExtractionContext, check_auth_wall, combined_capture_pattern, get_extractor
from apidocs.models import ExtractionResult, GlobalConfig, HTTPConfig, SpecInfo
from apidocs.output import get_output
from apidocs.parser.extractor import result_from_spec
from apidocs.parser.loader import is_url, looks_like_spec_url, normalize_url, origin_of, parse_spec_content
from apidocs.parser.validator import validate_spec

COMMON_SPEC_PATHS = (
    "/openapi.json",
    "/openapi.yaml",
    "/openapi.yml",
    "/swagger.json",
    "/swagger.yaml",
    "/swagger.yml",
    "/api-docs",
    "/api-docs.json",
    "/api-docs.yaml",
    "/api-docs.yml",
    "/v2/api-docs",
    "/v3/api-docs",
    "/docs/openapi.json",
    "/docs/swagger.json",
    "/docs/openapi.yaml",
    "/docs/swagger.yaml",
    "/api/openapi.json",
    "/api/swagger.json",
    "/spec/openapi.json",
    "/swagger/v2/api-docs",
    "/swagger/v3/api-docs",
)

# Errors that mean "this strategy found nothing"; anything else aborts the run.
_ABSORBED_ERRORS = (NotFoundError, SchemaInvalidError, FetchError)


def _looks_like_html_page(text: str, is_html: bool) -> bool:
    return is_html and not text.lstrip().startswith("{")


# ------------------------------------------------------------------ #
# Strategies
# ------------------------------------------------------------------ #


class AcquisitionStrategy(ABC):
    """One way of turning a URL into an :class:`ExtractionResult`."""

    #: Errors that end the whole run instead of advancing to the next strategy.
    terminal_errors: tuple[type[Exception], ...] = ()

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier recorded on results and in failure reports."""

    def applies_to(self, target: str) -> bool:
        """Whether this strategy should run for *target* at all."""
        return True

    @abstractmethod
    def attempt(self, target: str) -> Optional[ExtractionResult]:
        """Try to acquire *target*.

        Returns ``None`` or raises one of the absorbed error types when
        nothing was found.
        """


class DirectFetchStrategy(AcquisitionStrategy):
    """GET a URL that names a spec document and validate the body.

    A body that fails to parse or validate is terminal: the user pointed at
    this document explicitly, so probing elsewhere would hide the problem.
    An HTML answer or a network failure just advances.
    """

    terminal_errors = (SchemaInvalidError,)

    def __init__(self, fetcher: HttpFetcher, timeout: Optional[float] = None) -> None:
        self._fetcher = fetcher
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "direct"

    def applies_to(self, target: str) -> bool:
        return looks_like_spec_url(target)

    def attempt(self, target: str) -> Optional[ExtractionResult]:
        doc = self._fetcher.get(target, timeout=self._timeout)
        if _looks_like_html_page(doc.text, doc.is_html):
            raise NotFoundError(f"{target} returned an HTML page, not a spec document")
        raw, fmt = parse_spec_content(doc.text, target)
        spec = validate_spec(raw, target, fmt)
        return result_from_spec(spec, doc.url)


class PathProbeStrategy(AcquisitionStrategy):
    """Try :data:`COMMON_SPEC_PATHS` on the target's origin, one at a time.

    Non-2xx answers, HTML pages, and bodies that do not parse or validate
    all move on to the next path.
    """

    def __init__(
        self,
        fetcher: HttpFetcher,
        timeout: Optional[float] = None,
        paths: Sequence[str] = COMMON_SPEC_PATHS,
    ) -> None:
        self._fetcher = fetcher
        self._timeout = timeout
        self._paths = tuple(paths)

    @property
    def name(self) -> str:
        return "probe"

    def attempt(self, target: str) -> Optional[ExtractionResult]:
        output = get_output()
        origin = origin_of(target)
        for path in self._paths:
            url = f"{origin}{path}"
            try:
                doc = self._fetcher.get(url, timeout=self._timeout)
            except FetchError as exc:
                output.debug(f"Probe {path}: {exc}")
                continue
            if _looks_like_html_page(doc.text, doc.is_html):
                output.debug(f"Probe {path}: HTML page")
                continue
            try:
                raw, fmt = parse_spec_content(doc.text, url)
                spec = validate_spec(raw, url, fmt)
            except SchemaInvalidError as exc:
                output.debug(f"Probe {path}: {exc}")
                continue
            output.debug(f"Probe {path}: found {spec.spec_type} {spec.spec_version}")
            return result_from_spec(spec, doc.url)

        raise NotFoundError(f"None of {len(self._paths)} common spec paths on {origin} served a spec")


class GenericScrapeStrategy(AcquisitionStrategy):
    """Render the page and scan it for ``METHOD /path`` patterns."""

    def __init__(self, browser: BrowserSession, fetcher: Optional[HttpFetcher] = None) -> None:
        self._browser = browser
        self._ctx = ExtractionContext(fetcher)

    @property
    def name(self) -> str:
        return "generic-scrape"

    def attempt(self, target: str) -> Optional[ExtractionResult]:
        extractor = EXTRACTORS[Framework.GENERIC]()
        with self._browser.open_page(target) as page:
            result = extractor.extract(page, self._ctx)
        if result is None:
            raise NotFoundError(f"No method/path patterns on {target}")
        return result


class FrameworkExtractionStrategy(AcquisitionStrategy):
    """Render the page, detect its documentation UI, and run that UI's extractor.

    Network responses that any framework's extractor might want are
    recorded from the start of navigation, since the framework is only
    known once the page has rendered.
    """

    def __init__(self, browser: BrowserSession, fetcher: Optional[HttpFetcher] = None) -> None:
        self._browser = browser
        self._ctx = ExtractionContext(fetcher)

    @property
    def name(self) -> str:
        return "framework"

    def attempt(self, target: str) -> Optional[ExtractionResult]:
        with self._browser.open_page(target, capture=combined_capture_pattern()) as page:
            check_auth_wall(page)
            framework = detect_framework(page)
            extractor = get_extractor(framework)
            if extractor is None:
                raise FrameworkNotDetectedError(page.url)
            get_output().debug(f"Extracting with the {framework.value} extractor")
            result = extractor.extract(page, self._ctx)
        if result is None:
            raise NotFoundError(f"The {framework.value} page at {target} yielded no endpoints")
        return result


def default_strategies(
    fetcher: HttpFetcher,
    browser: Optional[BrowserSession],
    http: Optional[HTTPConfig] = None,
) -> list[AcquisitionStrategy]:
    """The standard strategy order; rendering strategies need a *browser*."""
    http = http or HTTPConfig()
    strategies: list[AcquisitionStrategy] = [
        DirectFetchStrategy(fetcher, http.timeout),
        PathProbeStrategy(fetcher, http.probe_timeout),
    ]
    if browser is not None:
        strategies.append(GenericScrapeStrategy(browser, fetcher))
        strategies.append(FrameworkExtractionStrategy(browser, fetcher))
    return strategies


# ------------------------------------------------------------------ #
# Pipeline
# ------------------------------------------------------------------ #


class SpecAcquisitionPipeline:
    """Resolve, acquire and cache an API's endpoints.

    Args:
        fetcher: HTTP client for direct fetches, probes and declared spec URLs.
        browser: Rendering session; without one only the HTTP strategies run.
        cache: Spec cache; ``None`` disables caching.
        resolver: Provider-name discovery; ``None`` means only URLs are accepted.
        config: TTLs and timeouts.
        strategies: Override the standard strategy list.

    Example::

        pipeline = SpecAcquisitionPipeline(fetcher, browser, cache, resolver)
        result = pipeline.acquire("https://petstore.swagger.io")
        for ep in result.endpoints:
            print(ep.method.value, ep.path)
    """

    def __init__(
        self,
        fetcher: HttpFetcher,
        browser: Optional[BrowserSession] = None,
        cache: Optional[CacheStore] = None,
        resolver: Optional[DiscoveryResolver] = None,
        config: Optional[GlobalConfig] = None,
        strategies: Optional[Sequence[AcquisitionStrategy]] = None,
    ) -> None:
        self._config = config or GlobalConfig()
        self._fetcher = fetcher
        self._browser = browser
        self._cache = cache
        self._resolver = resolver
        if strategies is None:
            strategies = default_strategies(fetcher, browser, self._config.http)
        self.strategies = list(strategies)

    def acquire(
        self,
        target: str,
        force_refresh: bool = False,
        use_cache: bool = True,
    ) -> ExtractionResult:
        """Return the endpoints of *target*.

        Args:
            target: A URL, or a provider name to resolve through discovery.
            force_refresh: Ignore cached discovery and spec entries (fresh
                results are still written back).
            use_cache: When false the spec cache is neither read nor written.

        Raises:
            InvalidUsageError: Empty target, or a name with no resolver.
            SpecNotFoundError: Every strategy failed; lists each reason.
            AuthenticationRequiredError: The documentation is behind a login.
            SchemaInvalidError: A direct spec URL served an invalid document.
            BrowserError: The headless browser could not be started.
            CacheIOError: The cache is unreadable.
            NotFoundError, SearchError: Discovery failed for a provider name.
        """
        target = target.strip()
        if not target:
            raise InvalidUsageError("A provider name or URL is required")

        output = get_output()
        discovered = False
        if is_url(target):
            url = normalize_url(target)
        else:
            if self._resolver is None:
                raise InvalidUsageError(f"'{target}' is not a URL and discovery is not available")
            found = self._resolver.resolve(target, force_refresh=force_refresh)
            output.progress(f"Found {found.provider_id} docs at {found.docs_url}")
            url = normalize_url(found.docs_url)
            discovered = True

        cache = self._cache if use_cache else None
        if cache is not None and not force_refresh:
            cached = self._load_cached(cache, url)
            if cached is not None:
                return cached

        attempts: list[tuple[str, str]] = []
        result = self._run_strategies(url, attempts)

        if result is None and discovered:
            reference_url = self._api_reference_url(url)
            if reference_url is not None:
                output.progress(f"Trying API reference page {reference_url}")
                result = self._run_strategies(reference_url, attempts)

        if result is None:
            raise SpecNotFoundError(target, attempts)

        if cache is not None:
            self._store(cache, url, result)
        return result

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _run_strategies(
        self, url: str, attempts: list[tuple[str, str]]
    ) -> Optional[ExtractionResult]:
        output = get_output()
        for strategy in self.strategies:
            if not strategy.applies_to(url):
                continue
            output.progress(f"Trying {strategy.name} on {url}")
            try:
                result = strategy.attempt(url)
            except strategy.terminal_errors:
                raise
            except _ABSORBED_ERRORS as exc:
                output.debug(f"{strategy.name} failed: {exc}")
                attempts.append((strategy.name, str(exc).splitlines()[0]))
                continue
            if result is None or (not result.endpoints and result.spec is None):
                attempts.append((strategy.name, "no endpoints found"))
                continue
            return result.model_copy(update={"strategy": strategy.name})
        return None

    def _api_reference_url(self, docs_url: str) -> Optional[str]:
        """Locate an "API reference" link on the discovered docs page."""
        try:
            if self._browser is not None:
                with self._browser.open_page(docs_url) as page:
                    html, page_url = page.content(), page.url
            else:
                doc = self._fetcher.get_page(docs_url)
                html, page_url = doc.text, doc.url
        except FetchError as exc:
            get_output().debug(f"Could not load {docs_url} for the API reference link: {exc}")
            return None
        return find_api_reference_url(html, page_url)

    def _load_cached(self, cache: CacheStore, url: str) -> Optional[ExtractionResult]:
        try:
            value = cache.get(url)
        except (CacheNotFoundError, CacheExpiredError) as exc:
            get_output().debug(f"Cache miss: {exc}")
            return None
        try:
            result = ExtractionResult.model_validate(value)
        except ValidationError as exc:
            get_output().debug(f"Ignoring unreadable cache entry for {url}: {exc}")
            return None
        get_output().debug(f"Cache hit for {url}")
        return result.model_copy(update={"from_cache": True})

    def _store(self, cache: CacheStore, url: str, result: ExtractionResult) -> None:
        spec = result.spec
        info = SpecInfo(
            title=result.api_info.title,
            version=spec.spec_version if spec else result.api_info.version,
            type=spec.spec_type if spec else result.framework,
        )
        cache.put(
            url,
            result.model_dump(mode="json"),
            ttl=self._config.cache.spec_ttl_seconds,
            spec_info=info,
            original_format=spec.original_format if spec else "json",
        )
