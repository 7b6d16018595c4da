"""Canonical Pydantic models shared across all apidocs modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`CacheConfig`, :class:`HTTPConfig`, :class:`BrowserConfig`,
    :class:`DiscoveryConfig`, and :class:`GlobalConfig`.

**Cache models** -- persisted by :mod:`apidocs.cache`:
    :class:`SpecInfo`, :class:`SpecCacheEntry`, and
    :class:`DiscoveryCacheEntry`.

**Acquisition models** -- produced by the pipeline and its strategies:
    :class:`HTTPMethod`, :class:`NormalizedEndpoint`, :class:`SpecDocument`,
    :class:`APIInfo`, :class:`ExtractionResult`, and :class:`DiscoveryResult`.

All models use Pydantic v2. Timestamps are timezone-aware UTC datetimes and
serialise as ISO-8601 strings via ``model_dump(mode="json")``.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


# --- Configuration ---


class CacheConfig(BaseModel):
    """Spec and discovery cache settings stored in :class:`GlobalConfig`."""

    enabled: bool = Field(default=True, description="Read and write the spec cache")
    spec_ttl_seconds: Optional[int] = Field(
        default=86400,
        description="Lifetime of cached specs in seconds (null = never expires)",
    )
    discovery_ttl_seconds: int = Field(
        default=7 * 24 * 3600,
        description="Lifetime of cached provider -> docs URL resolutions",
    )
    directory: Optional[str] = Field(
        default=None, description="Override the cache root directory"
    )


class HTTPConfig(BaseModel):
    """Plain HTTP fetch settings stored in :class:`GlobalConfig`."""

    timeout: float = Field(default=15.0, description="Direct fetch timeout in seconds")
    probe_timeout: float = Field(
        default=10.0, description="Per-path timeout while probing conventional paths"
    )
    user_agent: Optional[str] = Field(
        default=None, description="User-Agent header (defaults to apidocs/<version>)"
    )
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class BrowserConfig(BaseModel):
    """Headless browser settings stored in :class:`GlobalConfig`."""

    headless: bool = True
    timeout_ms: int = Field(default=30000, description="Navigation timeout in milliseconds")
    settle_ms: int = Field(
        default=2000,
        description="Extra wait after load for client-side rendering to finish",
    )
    viewport_width: int = 1280
    viewport_height: int = 800
    args: list[str] = Field(
        default_factory=lambda: [
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-gpu",
        ],
        description="Extra Chromium command-line switches",
    )


class DiscoveryConfig(BaseModel):
    """Provider discovery settings stored in :class:`GlobalConfig`."""

    base_url: str = Field(
        default="https://apitracker.io",
        description="Search surface used to map provider names to docs pages",
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/apidocs/config.json``.

    Loaded by :func:`~apidocs.config.load_global_config`. Fields here have the
    lowest precedence and can be overridden by project config, environment
    variables, or CLI flags. See :func:`~apidocs.config.resolve_config`
    for the full precedence chain.
    """

    cache: CacheConfig = Field(default_factory=CacheConfig)
    http: HTTPConfig = Field(default_factory=HTTPConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)


# --- Cache ---


class SpecInfo(BaseModel):
    """Minimal spec summary kept in the cache manifest."""

    title: str = "Unknown API"
    version: str = "unknown"
    type: str = Field(default="openapi", description="openapi, swagger, or a framework id")


class SpecCacheEntry(BaseModel):
    """One manifest entry of the spec cache.

    ``is_expired`` is not persisted; :meth:`~apidocs.cache.CacheStore.list`
    computes it at read time.
    """

    key: str = Field(description="First 16 hex chars of SHA-256 of the normalized source")
    source_url: str
    blob_ref: str = Field(description="Blob file name inside the cache directory")
    cached_at: datetime
    expires_at: Optional[datetime] = None
    spec_info: SpecInfo = Field(default_factory=SpecInfo)
    is_expired: bool = Field(default=False, exclude=True)

    def expired(self, now: Optional[datetime] = None) -> bool:
        """Return True when the entry has an expiry time that has passed."""
        if self.expires_at is None:
            return False
        return (now or utcnow()) > self.expires_at


class DiscoveryCacheEntry(BaseModel):
    """A cached provider -> documentation URL resolution."""

    provider_key: str = Field(description="Normalized lowercase provider name")
    provider_id: str
    docs_url: str
    source_origin: str = Field(description="Provider page the docs link was taken from")
    search_url: Optional[str] = None
    cached_at: datetime
    expires_at: datetime
    is_expired: bool = Field(default=False, exclude=True)

    def expired(self, now: Optional[datetime] = None) -> bool:
        """Return True once the entry is past its expiry time."""
        return (now or utcnow()) > self.expires_at


# --- Acquisition ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods an endpoint may declare.

    Used as the ``method`` field on :class:`NormalizedEndpoint`.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"


class NormalizedEndpoint(BaseModel):
    """A single endpoint, independent of how it was acquired.

    Every strategy and extraction layer produces this shape so that
    consumers never need to know whether the endpoint came from a spec
    document, a live UI store, or a regex over page text.
    """

    method: HTTPMethod
    path: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    operation_id: Optional[str] = None

    @property
    def key(self) -> tuple[str, str]:
        """The ``(method, path)`` pair used for deduplication."""
        return (self.method.value, self.path)


class SpecDocument(BaseModel):
    """A parsed and structurally validated OpenAPI 3.x / Swagger 2.0 document."""

    raw: dict[str, Any]
    spec_type: str = Field(description="openapi or swagger")
    spec_version: str
    title: str = "Unknown API"
    api_version: str = "unknown"
    base_url: Optional[str] = None
    original_format: str = Field(default="json", description="json or yaml")


class APIInfo(BaseModel):
    """Human-facing API metadata attached to an :class:`ExtractionResult`."""

    title: str = "Unknown API"
    version: str = "unknown"
    description: str = ""


class ExtractionResult(BaseModel):
    """The outcome of a successful acquisition.

    ``framework`` is ``"openapi"`` when a machine-readable document was
    fetched directly or by probing; otherwise it names the documentation UI
    the endpoints were scraped from (``swagger-ui``, ``redoc``, ``scalar``,
    ``generic``).
    """

    framework: str
    api_info: APIInfo = Field(default_factory=APIInfo)
    endpoints: list[NormalizedEndpoint] = Field(default_factory=list)
    source_url: str
    extracted_at: datetime = Field(default_factory=utcnow)
    spec: Optional[SpecDocument] = None
    strategy: Optional[str] = Field(
        default=None, description="Name of the acquisition strategy that succeeded"
    )
    from_cache: bool = Field(default=False, exclude=True)


class DiscoveryResult(BaseModel):
    """Where a provider's documentation lives."""

    provider_id: str
    docs_url: str
    source_origin: str
    search_url: Optional[str] = None
    from_cache: bool = False
