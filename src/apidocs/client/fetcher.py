"""Plain HTTP fetching for spec documents, probes and discovery pages.

This module provides :class:`HttpFetcher`, a thin blocking wrapper around
:class:`httpx.Client` used by the direct-fetch and path-probe strategies,
by script-declared spec URLs, and by the discovery resolver. It adds:

- **Per-request timeouts** -- probes use a shorter bound than direct fetches.
- **Error mapping** -- timeouts become
  :class:`~apidocs.exceptions.ExtractionTimeoutError`, network failures and
  non-2xx answers become :class:`~apidocs.exceptions.FetchError` carrying
  the status code.
- **No retries** -- a failed request is reported once; the caller decides
  whether to move on to another candidate.
"""

from __future__ import annotations

from typing import Optional

import httpx

from apidocs import __version__
from apidocs.exceptions import ExtractionTimeoutError, FetchError
from apidocs.models import HTTPConfig
from apidocs.output import get_output

SPEC_ACCEPT = "application/json, application/yaml, text/yaml, */*"
HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


class FetchedDocument:
    """The body and metadata of a successful (2xx) response.

    Attributes:
        url: The final URL after redirects.
        status_code: HTTP status.
        content_type: The ``Content-Type`` header, lower-cased (may be empty).
        text: The decoded response body.
    """

    __slots__ = ("url", "status_code", "content_type", "text")

    def __init__(self, url: str, status_code: int, content_type: str, text: str) -> None:
        self.url = url
        self.status_code = status_code
        self.content_type = content_type
        self.text = text

    @property
    def is_html(self) -> bool:
        """True when the server labelled the body as HTML."""
        return "text/html" in self.content_type

    def __repr__(self) -> str:
        return f"FetchedDocument({self.url!r}, {self.status_code}, {self.content_type!r})"


class HttpFetcher:
    """Blocking HTTP client for spec and discovery fetches.

    Can be used as a context manager, or opened lazily on first request and
    closed with :meth:`close`.

    Args:
        config: Timeouts, user agent and TLS verification.
        transport: Optional custom transport (``httpx.MockTransport`` in tests).

    Example::

        with HttpFetcher(HTTPConfig()) as fetcher:
            doc = fetcher.get("https://petstore3.swagger.io/api/v3/openapi.json")
    """

    def __init__(
        self,
        config: Optional[HTTPConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config or HTTPConfig()
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def config(self) -> HTTPConfig:
        return self._config

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpFetcher:
        self._ensure_client()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying :class:`httpx.Client`."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            user_agent = self._config.user_agent or f"apidocs/{__version__}"
            self._client = httpx.Client(
                timeout=self._config.timeout,
                verify=self._config.verify_ssl,
                follow_redirects=True,
                headers={"User-Agent": user_agent},
                transport=self._transport,
            )
        return self._client

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def get(
        self,
        url: str,
        timeout: Optional[float] = None,
        accept: str = SPEC_ACCEPT,
    ) -> FetchedDocument:
        """GET *url* and return its body.

        Args:
            url: Absolute URL.
            timeout: Override the configured timeout for this request.
            accept: ``Accept`` header value.

        Returns:
            The decoded 2xx response.

        Raises:
            ExtractionTimeoutError: The request exceeded its timeout.
            FetchError: Network failure, or a non-2xx status (``status_code`` set).
        """
        client = self._ensure_client()
        effective_timeout = timeout if timeout is not None else self._config.timeout
        get_output().debug(f"GET {url} (timeout {effective_timeout}s)")

        try:
            response = client.get(url, timeout=effective_timeout, headers={"Accept": accept})
        except httpx.TimeoutException as exc:
            raise ExtractionTimeoutError(
                f"Timed out after {effective_timeout}s fetching {url}", url=url
            ) from exc
        except httpx.RequestError as exc:
            raise FetchError(f"Failed to fetch {url}: {exc}", url=url) from exc

        if not response.is_success:
            raise FetchError(
                f"HTTP {response.status_code} fetching {url}",
                url=url,
                status_code=response.status_code,
            )

        return FetchedDocument(
            url=str(response.url),
            status_code=response.status_code,
            content_type=response.headers.get("content-type", "").lower(),
            text=response.text,
        )

    def get_page(self, url: str, timeout: Optional[float] = None) -> FetchedDocument:
        """GET an HTML page (discovery surfaces, provider pages)."""
        return self.get(url, timeout=timeout, accept=HTML_ACCEPT)
