"""Manifest-plus-blob spec cache with lazy TTL evaluation.

The cache directory holds one manifest (``index.json``) and one blob file
per entry (``<key>.json``)::

    specs/
        index.json          {"version": 1, "entries": {key: SpecCacheEntry}}
        3f1c9a0b7d2e4f61.json
        ...

Keys are the first 16 hex characters of the SHA-256 of the trimmed,
lower-cased source string (:func:`cache_key`), so ``" FOO "`` and ``"foo"``
address the same entry in every process.

Writes go blob first, then manifest, each through
:func:`~apidocs.config.atomic_write`. A crash between the two leaves an
orphaned blob, never a manifest entry pointing at nothing; a manifest entry
whose blob has gone missing reads as :class:`~apidocs.exceptions.CacheNotFoundError`.

Expiry is evaluated when an entry is read. Nothing sweeps expired entries;
they stay on disk until overwritten or cleared. There is no cross-process
locking: concurrent writers race and the last manifest write wins.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Optional

from apidocs.config import atomic_write
from apidocs.exceptions import CacheExpiredError, CacheIOError, CacheNotFoundError
from apidocs.models import SpecCacheEntry, SpecInfo, utcnow
from apidocs.output import debug

MANIFEST_NAME = "index.json"
MANIFEST_VERSION = 1
KEY_LENGTH = 16


def cache_key(source: str) -> str:
    """Derive the cache key for *source*.

    Args:
        source: Any string, typically a URL.

    Returns:
        16 lowercase hex characters; identical for inputs that differ only in
        surrounding whitespace or letter case.
    """
    normalized = source.strip().lower()
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:KEY_LENGTH]


def read_manifest(path: Path) -> dict[str, Any]:
    """Read a ``{"version": 1, "entries": {...}}`` manifest file.

    A missing file reads as an empty manifest.

    Raises:
        CacheIOError: If the file cannot be read or is not a manifest.
    """
    if not path.is_file():
        return {"version": MANIFEST_VERSION, "entries": {}}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise CacheIOError(f"Cannot read cache manifest {path}: {exc}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("entries"), dict):
        raise CacheIOError(f"Corrupt cache manifest {path}: missing 'entries' object")
    return data


def write_json(path: Path, data: Any) -> None:
    """Atomically write *data* as JSON, mapping failures to :class:`CacheIOError`."""
    try:
        atomic_write(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")
    except (OSError, TypeError, ValueError) as exc:
        raise CacheIOError(f"Cannot write cache file {path}: {exc}") from exc


class CacheStore:
    """Durable key/value store with per-entry TTL.

    Values are any JSON-serialisable object. The pipeline stores serialised
    :class:`~apidocs.models.ExtractionResult` dicts keyed by target URL.

    Args:
        directory: Directory holding the manifest and blobs. Created on
            first write.
        clock: Returns the current UTC time. Injected by tests to step
            past an entry's expiry.

    Example::

        store = CacheStore(get_cache_dir() / "specs")
        store.put("https://api.example.com/openapi.json", {"openapi": "3.0.0"}, ttl=3600)
        store.get("https://API.example.com/openapi.json ")  # same entry
    """

    def __init__(
        self,
        directory: str | Path,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._dir = Path(directory)
        self._clock = clock

    @property
    def directory(self) -> Path:
        """The cache directory."""
        return self._dir

    @property
    def manifest_path(self) -> Path:
        """Path to ``index.json``."""
        return self._dir / MANIFEST_NAME

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def put(
        self,
        source: str,
        value: Any,
        ttl: Optional[float] = None,
        *,
        spec_info: Optional[SpecInfo] = None,
        original_format: str = "json",
    ) -> SpecCacheEntry:
        """Store *value* under *source*, replacing any existing entry.

        Args:
            source: The source URL (normalized for the key, stored verbatim).
            value: JSON-serialisable payload.
            ttl: Lifetime in seconds. ``None`` means the entry never expires.
            spec_info: Title/version/type summary kept in the manifest.
            original_format: ``json`` or ``yaml``, recorded in blob metadata.

        Returns:
            The manifest entry that was written.

        Raises:
            CacheIOError: If the blob or manifest cannot be written.
        """
        key = cache_key(source)
        now = self._clock()
        expires_at = now + timedelta(seconds=ttl) if ttl is not None else None
        info = spec_info or SpecInfo()
        entry = SpecCacheEntry(
            key=key,
            source_url=source.strip(),
            blob_ref=f"{key}.json",
            cached_at=now,
            expires_at=expires_at,
            spec_info=info,
        )

        blob = {
            "metadata": {
                "source_url": entry.source_url,
                "cached_at": now.isoformat(),
                "expires_at": expires_at.isoformat() if expires_at else None,
                "original_format": original_format,
                "spec_type": info.type,
                "spec_version": info.version,
            },
            "value": value,
        }
        # Blob before manifest: a crash in between only orphans the blob.
        write_json(self._dir / entry.blob_ref, blob)

        manifest = read_manifest(self.manifest_path)
        manifest["version"] = MANIFEST_VERSION
        manifest["entries"][key] = entry.model_dump(mode="json")
        write_json(self.manifest_path, manifest)

        debug(f"Cached {entry.source_url} as {key} (ttl={ttl})")
        return entry

    def get(self, source: str, ignore_expired: bool = False) -> Any:
        """Return the value stored for *source*.

        Args:
            source: The source URL; whitespace and case are ignored.
            ignore_expired: Return the value even when the entry has expired.

        Raises:
            CacheNotFoundError: No entry exists, or its blob is missing.
            CacheExpiredError: The entry exists but is past ``expires_at``.
            CacheIOError: The manifest or blob is unreadable or corrupt.
        """
        entry = self._entry_for(source)
        if entry is None:
            raise CacheNotFoundError(source)

        if not ignore_expired and entry.expires_at is not None and entry.expired(self._clock()):
            raise CacheExpiredError(source, entry.expires_at.isoformat())

        blob_path = self._dir / entry.blob_ref
        if not blob_path.is_file():
            debug(f"Cache entry {entry.key} has no blob; treating as missing")
            raise CacheNotFoundError(source)

        try:
            blob = json.loads(blob_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise CacheIOError(f"Cannot read cache blob {blob_path}: {exc}") from exc
        if not isinstance(blob, dict) or "value" not in blob:
            raise CacheIOError(f"Corrupt cache blob {blob_path}")
        return blob["value"]

    def entry(self, source: str) -> Optional[SpecCacheEntry]:
        """Return the manifest entry for *source* with its expiry flag, or ``None``."""
        entry = self._entry_for(source)
        if entry is None:
            return None
        return entry.model_copy(update={"is_expired": entry.expired(self._clock())})

    def list(
        self,
        include_expired: bool = True,
        check_files: bool = False,
    ) -> list[SpecCacheEntry]:
        """List manifest entries, newest first.

        Args:
            include_expired: Keep entries whose TTL has passed (flagged via
                ``is_expired``).
            check_files: Drop entries whose blob file is missing.

        Returns:
            Entries with ``is_expired`` computed against the current time.
        """
        now = self._clock()
        entries: list[SpecCacheEntry] = []
        for raw in read_manifest(self.manifest_path)["entries"].values():
            entry = self._parse_entry(raw)
            entry = entry.model_copy(update={"is_expired": entry.expired(now)})
            if entry.is_expired and not include_expired:
                continue
            if check_files and not (self._dir / entry.blob_ref).is_file():
                continue
            entries.append(entry)
        entries.sort(key=lambda e: e.cached_at, reverse=True)
        return entries

    def delete(self, source: Optional[str] = None) -> int:
        """Remove one entry, or every entry when *source* is ``None``.

        Returns:
            The number of manifest entries removed.

        Raises:
            CacheNotFoundError: *source* was given but has no entry.
            CacheIOError: The manifest cannot be read or rewritten.
        """
        manifest = read_manifest(self.manifest_path)
        entries: dict[str, Any] = manifest["entries"]

        if source is not None:
            key = cache_key(source)
            raw = entries.pop(key, None)
            if raw is None:
                raise CacheNotFoundError(source)
            self._unlink_blob(self._parse_entry(raw).blob_ref)
            write_json(self.manifest_path, manifest)
            return 1

        count = len(entries)
        for raw in entries.values():
            blob_ref = raw.get("blob_ref") if isinstance(raw, dict) else None
            if blob_ref:
                self._unlink_blob(blob_ref)
        write_json(self.manifest_path, {"version": MANIFEST_VERSION, "entries": {}})
        return count

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _entry_for(self, source: str) -> Optional[SpecCacheEntry]:
        raw = read_manifest(self.manifest_path)["entries"].get(cache_key(source))
        if raw is None:
            return None
        return self._parse_entry(raw)

    def _parse_entry(self, raw: Any) -> SpecCacheEntry:
        try:
            return SpecCacheEntry.model_validate(raw)
        except ValueError as exc:
            raise CacheIOError(f"Corrupt entry in {self.manifest_path}: {exc}") from exc

    def _unlink_blob(self, blob_ref: str) -> None:
        path = self._dir / blob_ref
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            # Orphaned blobs are harmless; the manifest is authoritative.
            debug(f"Could not remove cache blob {path}: {exc}")
