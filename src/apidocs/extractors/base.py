"""Layered extraction framework shared by every documentation-UI adapter.

A :class:`FrameworkExtractor` is an ordered list of :class:`ExtractionLayer`
objects. Layers run in order and the first one to produce at least one
endpoint wins; a layer that finds nothing (or fails on bad page data) hands
over to the next. The standard order, highest fidelity first:

a. live application state (:class:`~apidocs.extractors.layers.LiveStateLayer`)
b. network-traffic capture (:class:`~apidocs.extractors.layers.NetworkCaptureLayer`)
c. embedded scripts (:class:`~apidocs.extractors.layers.ScriptLayer`)
d. DOM heuristics (:mod:`apidocs.extractors.dom`)

Before any layer runs, :func:`check_auth_wall` aborts extraction with
:class:`~apidocs.exceptions.AuthenticationRequiredError` when the page is a
login screen.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Iterable, NamedTuple, Optional, Sequence

from apidocs.browser.page import DocumentPage
from apidocs.client.fetcher import HttpFetcher
from apidocs.exceptions import AuthenticationRequiredError
from apidocs.models import APIInfo, ExtractionResult, NormalizedEndpoint, SpecDocument
from apidocs.output import get_output
from apidocs.parser.extractor import extract_api_info, extract_endpoints


class LayerOutput(NamedTuple):
    """What a layer found: endpoints, and the spec they came from if any."""

    endpoints: list[NormalizedEndpoint]
    spec: Optional[SpecDocument] = None

    @classmethod
    def empty(cls) -> LayerOutput:
        return cls([])

    @classmethod
    def from_spec(cls, spec: SpecDocument) -> LayerOutput:
        return cls(extract_endpoints(spec.raw), spec)


class ExtractionContext:
    """Collaborators a layer may need beyond the page itself.

    Args:
        fetcher: Used to download spec URLs declared in page scripts.
    """

    def __init__(self, fetcher: Optional[HttpFetcher] = None) -> None:
        self.fetcher = fetcher


class ExtractionLayer(ABC):
    """One way of reading endpoints off a rendered page."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in diagnostics (``state``, ``network``, ...)."""

    @abstractmethod
    def extract(self, page: DocumentPage, ctx: ExtractionContext) -> LayerOutput:
        """Return what this layer found; an empty output means "try the next layer"."""


def dedupe_endpoints(endpoints: Iterable[NormalizedEndpoint]) -> list[NormalizedEndpoint]:
    """Collapse endpoints sharing ``(method, path)``, keeping the first one seen."""
    seen: set[tuple[str, str]] = set()
    unique: list[NormalizedEndpoint] = []
    for endpoint in endpoints:
        if endpoint.key in seen:
            continue
        seen.add(endpoint.key)
        unique.append(endpoint)
    return unique


# ------------------------------------------------------------------ #
# Auth wall
# ------------------------------------------------------------------ #

_AUTH_TITLE_RE = re.compile(r"log\s?in|sign\s?in|authentication", re.IGNORECASE)
_AUTH_HEADING_RE = re.compile(r"log in|sign in|authentication required", re.IGNORECASE)


def is_auth_wall(page: DocumentPage) -> bool:
    """True when the page shows login signals.

    Signals: a password input, a form posting to a login URL, or sign-in /
    authentication wording in the title or the first ``<h1>``.
    """
    soup = page.soup()
    if soup.select_one('input[type="password"]') is not None:
        return True
    if soup.select_one('form[action*="login"]') is not None:
        return True
    if _AUTH_TITLE_RE.search(page.title() or ""):
        return True
    heading = soup.find("h1")
    return heading is not None and bool(_AUTH_HEADING_RE.search(heading.get_text(" ", strip=True)))


def check_auth_wall(page: DocumentPage) -> None:
    """Raise :class:`AuthenticationRequiredError` if *page* is a login screen."""
    if is_auth_wall(page):
        raise AuthenticationRequiredError(page.url)


# ------------------------------------------------------------------ #
# API info from the page
# ------------------------------------------------------------------ #

_TITLE_SUFFIX_RE = re.compile(r"\s*[-|]\s*API\s*(Reference|Documentation|Docs)?$", re.IGNORECASE)


def page_api_info(page: DocumentPage) -> APIInfo:
    """Best-effort API title, version and description from page markup."""
    soup = page.soup()
    title = _TITLE_SUFFIX_RE.sub("", page.title() or "").strip()
    version_el = soup.select_one('[class*="version"], .api-version')
    version = version_el.get_text(" ", strip=True) if version_el else ""
    meta = soup.select_one('meta[name="description"]')
    description = str(meta.get("content") or "") if meta else ""
    return APIInfo(
        title=title or "Unknown API",
        version=version or "unknown",
        description=description.strip(),
    )


# ------------------------------------------------------------------ #
# Framework extractor
# ------------------------------------------------------------------ #


class FrameworkExtractor:
    """Runs a framework's layers in order until one finds endpoints.

    Args:
        framework: Framework identifier recorded on the result.
        layers: Layers in priority order.
        capture_pattern: URL pattern of responses worth recording while the
            page loads; passed to
            :meth:`~apidocs.browser.BrowserSession.open_page` by the pipeline.
    """

    def __init__(
        self,
        framework: str,
        layers: Sequence[ExtractionLayer],
        capture_pattern: Optional[re.Pattern[str]] = None,
    ) -> None:
        self.framework = framework
        self.layers = list(layers)
        self.capture_pattern = capture_pattern

    def extract(
        self,
        page: DocumentPage,
        ctx: Optional[ExtractionContext] = None,
    ) -> Optional[ExtractionResult]:
        """Extract endpoints from *page*.

        Returns:
            The first non-empty layer's endpoints wrapped as an
            :class:`~apidocs.models.ExtractionResult`, or ``None`` when
            every layer came up empty.

        Raises:
            AuthenticationRequiredError: The page is a login screen.
        """
        ctx = ctx or ExtractionContext()
        output = get_output()
        check_auth_wall(page)

        for layer in self.layers:
            found = layer.extract(page, ctx)
            endpoints = dedupe_endpoints(found.endpoints)
            output.debug(f"{self.framework}/{layer.name}: {len(endpoints)} endpoint(s)")
            if not endpoints:
                continue

            if found.spec is not None:
                api_info = extract_api_info(found.spec.raw)
            else:
                api_info = page_api_info(page)
            return ExtractionResult(
                framework=self.framework,
                api_info=api_info,
                endpoints=endpoints,
                source_url=page.url,
                spec=found.spec,
            )
        return None
