"""Durable caches for acquired specs and discovery results.

This package provides two stores, both persisted as JSON under the cache
root returned by :func:`~apidocs.config.resolve_cache_root`:

* :class:`CacheStore` -- manifest plus one blob per entry, keyed by a hash
  of the normalized source URL, with per-entry TTL evaluated at read time.
* :class:`DiscoveryCache` -- provider name -> documentation URL, with a
  seven-day default lifetime.

:func:`open_caches` builds both from a :class:`~apidocs.models.GlobalConfig`.
"""

from __future__ import annotations

from apidocs.cache.discovery import DISCOVERY_FILENAME, DiscoveryCache, provider_key
from apidocs.cache.store import CacheStore, cache_key
from apidocs.config import resolve_cache_root
from apidocs.models import GlobalConfig


def open_caches(config: GlobalConfig) -> tuple[CacheStore, DiscoveryCache]:
    """Return the spec cache and discovery cache configured by *config*."""
    root = resolve_cache_root(config)
    return (
        CacheStore(root / "specs"),
        DiscoveryCache(root / DISCOVERY_FILENAME, ttl_seconds=config.cache.discovery_ttl_seconds),
    )


__all__ = ["CacheStore", "DiscoveryCache", "cache_key", "open_caches", "provider_key"]
