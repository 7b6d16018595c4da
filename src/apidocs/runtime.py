"""Per-invocation wiring of config, HTTP client, browser, caches and pipeline.

Commands build one :class:`Runtime` per run with :func:`open_runtime`.
Collaborators are created on first use, so ``cache list`` never launches a
browser and ``lookup`` never renders a page. :func:`shutdown` closes
whatever the active runtime opened; the CLI entry point calls it in a
``finally`` block so the headless browser never outlives the process.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from apidocs.browser.session import BrowserSession
from apidocs.cache import CacheStore, DiscoveryCache, open_caches
from apidocs.client.fetcher import HttpFetcher
from apidocs.config import resolve_config
from apidocs.discovery.resolver import DiscoveryResolver
from apidocs.models import GlobalConfig
from apidocs.output import get_output
from apidocs.pipeline import SpecAcquisitionPipeline


class Runtime:
    """Lazily constructed collaborators for one CLI invocation.

    Args:
        config: Effective configuration.
        transport: Optional httpx transport (tests).
    """

    def __init__(
        self,
        config: GlobalConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self._fetcher: Optional[HttpFetcher] = None
        self._browser: Optional[BrowserSession] = None
        self._caches: Optional[tuple[CacheStore, DiscoveryCache]] = None

    @property
    def fetcher(self) -> HttpFetcher:
        if self._fetcher is None:
            self._fetcher = HttpFetcher(self.config.http, transport=self._transport)
        return self._fetcher

    @property
    def browser(self) -> BrowserSession:
        if self._browser is None:
            self._browser = BrowserSession(self.config.browser)
        return self._browser

    @property
    def spec_cache(self) -> CacheStore:
        return self._open_caches()[0]

    @property
    def discovery_cache(self) -> DiscoveryCache:
        return self._open_caches()[1]

    def _open_caches(self) -> tuple[CacheStore, DiscoveryCache]:
        if self._caches is None:
            self._caches = open_caches(self.config)
        return self._caches

    def resolver(self) -> DiscoveryResolver:
        cache = self.discovery_cache if self.config.cache.enabled else None
        return DiscoveryResolver(self.fetcher, cache, self.config.discovery)

    def pipeline(self) -> SpecAcquisitionPipeline:
        cache = self.spec_cache if self.config.cache.enabled else None
        return SpecAcquisitionPipeline(
            self.fetcher,
            browser=self.browser,
            cache=cache,
            resolver=self.resolver(),
            config=self.config,
        )

    def close(self) -> None:
        """Stop the browser (if started) and close the HTTP client."""
        if self._browser is not None:
            self._browser.stop()
        if self._fetcher is not None:
            self._fetcher.close()

    def __enter__(self) -> Runtime:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


_active: Optional[Runtime] = None


def open_runtime(options: Optional[dict[str, Any]] = None) -> Runtime:
    """Resolve config from *options* (the Typer ``ctx.obj``) and build a :class:`Runtime`.

    Raises:
        ConfigError: The config file or an environment override is invalid.
    """
    global _active
    options = options or {}
    config = resolve_config(
        cli_no_cache=options.get("no_cache"),
        cli_discovery_url=options.get("discovery_url"),
        cli_cache_dir=options.get("cache_dir"),
    )
    get_output().debug(f"Cache enabled: {config.cache.enabled}; discovery: {config.discovery.base_url}")
    _active = Runtime(config)
    return _active


def shutdown() -> None:
    """Close the active runtime, if any. Safe to call repeatedly."""
    global _active
    if _active is not None:
        _active.close()
        _active = None
