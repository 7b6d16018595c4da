"""Provider -> documentation URL cache.

A single ``discovery.json`` file in the cache root, in the same manifest
shape as the spec cache::

    {"version": 1, "entries": {"stripe": DiscoveryCacheEntry, ...}}

Entries live for seven days by default. Unlike :class:`~apidocs.cache.CacheStore`,
an expired entry simply reads as absent: discovery is cheap to redo and the
resolver has no use for a stale docs URL.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Optional

from apidocs.cache.store import MANIFEST_VERSION, read_manifest, write_json
from apidocs.exceptions import CacheIOError
from apidocs.models import DiscoveryCacheEntry, DiscoveryResult, utcnow
from apidocs.output import debug

DISCOVERY_FILENAME = "discovery.json"
DEFAULT_DISCOVERY_TTL = 7 * 24 * 3600


def provider_key(name: str) -> str:
    """Normalize a provider name for use as a cache key."""
    return name.strip().lower()


class DiscoveryCache:
    """Stores :class:`~apidocs.models.DiscoveryCacheEntry` records keyed by provider.

    Args:
        path: Location of ``discovery.json``.
        ttl_seconds: Lifetime of new entries.
        clock: Returns the current UTC time.
    """

    def __init__(
        self,
        path: str | Path,
        ttl_seconds: int = DEFAULT_DISCOVERY_TTL,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._path = Path(path)
        self._ttl = ttl_seconds
        self._clock = clock

    @property
    def path(self) -> Path:
        return self._path

    def get(self, provider: str) -> Optional[DiscoveryCacheEntry]:
        """Return the live entry for *provider*, or ``None`` if missing or expired."""
        raw = read_manifest(self._path)["entries"].get(provider_key(provider))
        if raw is None:
            return None
        entry = self._parse_entry(raw)
        if entry.expired(self._clock()):
            debug(f"Discovery cache entry for '{provider}' expired at {entry.expires_at}")
            return None
        return entry

    def put(self, provider: str, result: DiscoveryResult) -> DiscoveryCacheEntry:
        """Record a fresh resolution for *provider*, replacing any previous one."""
        now = self._clock()
        entry = DiscoveryCacheEntry(
            provider_key=provider_key(provider),
            provider_id=result.provider_id,
            docs_url=result.docs_url,
            source_origin=result.source_origin,
            search_url=result.search_url,
            cached_at=now,
            expires_at=now + timedelta(seconds=self._ttl),
        )
        manifest = read_manifest(self._path)
        manifest["version"] = MANIFEST_VERSION
        manifest["entries"][entry.provider_key] = entry.model_dump(mode="json")
        write_json(self._path, manifest)
        return entry

    def list(self) -> list[DiscoveryCacheEntry]:
        """Return every entry, expired ones included and flagged, newest first."""
        now = self._clock()
        entries = []
        for raw in read_manifest(self._path)["entries"].values():
            entry = self._parse_entry(raw)
            entries.append(entry.model_copy(update={"is_expired": entry.expired(now)}))
        entries.sort(key=lambda e: e.cached_at, reverse=True)
        return entries

    def clear(self, provider: Optional[str] = None) -> int:
        """Remove one provider's entry, or all entries.

        Returns:
            The number of entries removed (``0`` when *provider* was not cached).
        """
        manifest = read_manifest(self._path)
        entries = manifest["entries"]
        if provider is None:
            count = len(entries)
            manifest["entries"] = {}
        else:
            count = 1 if entries.pop(provider_key(provider), None) is not None else 0
        if count:
            write_json(self._path, manifest)
        return count

    def _parse_entry(self, raw: Any) -> DiscoveryCacheEntry:
        try:
            return DiscoveryCacheEntry.model_validate(raw)
        except ValueError as exc:
            raise CacheIOError(f"Corrupt entry in {self._path}: {exc}") from exc
