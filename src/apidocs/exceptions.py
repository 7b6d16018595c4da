"""Exception hierarchy for apidocs.

All exceptions inherit from :class:`ApiDocsError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`apidocs.exit_codes`.
The top-level error handler in :func:`apidocs.app.main` catches
``ApiDocsError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Inside :class:`~apidocs.pipeline.SpecAcquisitionPipeline` most ``NotFound``,
``SchemaInvalid`` and network failures are absorbed and the next strategy
runs; :class:`AuthenticationRequiredError`, :class:`CacheIOError` and
:class:`BrowserError` always stop the pipeline.

Subclass hierarchy::

    ApiDocsError (exit 1)
    +-- InvalidUsageError           (exit 2)
    +-- AuthenticationRequiredError (exit 3)
    +-- NotFoundError               (exit 4)
    |   +-- CacheNotFoundError
    |   +-- ProviderNotFoundError
    |   +-- DocsUrlNotFoundError
    |   +-- FrameworkNotDetectedError
    |   +-- SpecNotFoundError
    +-- ExpiredError                (exit 5)
    |   +-- CacheExpiredError
    +-- FetchError                  (exit 6)
    |   +-- ExtractionTimeoutError
    |   +-- PageLoadError
    |   +-- SearchError
    +-- SchemaInvalidError          (exit 7)
    |   +-- SpecParseError
    +-- CacheIOError                (exit 8)
    +-- BrowserError                (exit 9)
    |   +-- BrowserNotInstalledError
    |   +-- BrowserLaunchError
    +-- ConfigError                 (exit 1)
"""

from __future__ import annotations

from typing import Optional, Sequence

from apidocs.exit_codes import (
    EXIT_AUTH_REQUIRED,
    EXIT_BROWSER_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_EXPIRED,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_IO_ERROR,
    EXIT_NOT_FOUND,
    EXIT_SPEC_INVALID,
)


class ApiDocsError(Exception):
    """Base exception for all apidocs errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`apidocs.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ApiDocsError):
    """Raised for invalid CLI arguments or unusable targets."""

    exit_code = EXIT_INVALID_USAGE


class AuthenticationRequiredError(ApiDocsError):
    """Raised when a documentation page sits behind a login wall.

    Args:
        url: The page that showed authentication-wall signals.
    """

    exit_code = EXIT_AUTH_REQUIRED

    def __init__(self, url: str):
        super().__init__(
            f"Documentation at {url} requires authentication. "
            "Try a public docs URL or a direct spec URL instead."
        )
        self.url = url


# --- NotFound ---


class NotFoundError(ApiDocsError):
    """Base class for every "nothing matched" outcome."""

    exit_code = EXIT_NOT_FOUND


class CacheNotFoundError(NotFoundError):
    """Raised when no cache entry (or no blob behind an entry) exists for a source."""

    def __init__(self, source: str):
        super().__init__(f"No cached entry for {source}")
        self.source = source


class ProviderNotFoundError(NotFoundError):
    """Raised when discovery finds no provider page for a query."""

    def __init__(self, query: str):
        super().__init__(f"No provider found for '{query}'")
        self.query = query


class DocsUrlNotFoundError(NotFoundError):
    """Raised when a provider page exists but carries no usable documentation link."""

    def __init__(self, provider: str, page_url: Optional[str] = None):
        where = f" on {page_url}" if page_url else ""
        super().__init__(f"No documentation link found for '{provider}'{where}")
        self.provider = provider
        self.page_url = page_url


class FrameworkNotDetectedError(NotFoundError):
    """Raised when a rendered page matches no known documentation framework."""

    def __init__(self, url: str):
        super().__init__(f"Could not detect an API documentation framework at {url}")
        self.url = url


class SpecNotFoundError(NotFoundError):
    """Raised when every acquisition strategy came up empty.

    Args:
        target: The URL the pipeline was acquiring.
        attempts: ``(strategy_name, reason)`` pairs in the order they ran.
    """

    def __init__(self, target: str, attempts: Sequence[tuple[str, str]] = ()):
        self.target = target
        self.attempts = list(attempts)
        lines = [f"No API endpoints found for {target}"]
        if self.attempts:
            lines.append("Strategies attempted:")
            for name, reason in self.attempts:
                lines.append(f"  - {name}: {reason}")
        super().__init__("\n".join(lines))


# --- Expired ---


class ExpiredError(ApiDocsError):
    """Base class for entries that exist but are past their expiry time."""

    exit_code = EXIT_EXPIRED


class CacheExpiredError(ExpiredError):
    """Raised by :meth:`~apidocs.cache.CacheStore.get` for an expired entry."""

    def __init__(self, source: str, expired_at: str):
        super().__init__(f"Cached entry for {source} expired at {expired_at}")
        self.source = source
        self.expired_at = expired_at


# --- Network ---


class FetchError(ApiDocsError):
    """Raised on network-level failures or non-2xx HTTP responses.

    Args:
        message: Human-readable description.
        url: The URL being fetched.
        status_code: HTTP status when the server answered, else ``None``.
    """

    exit_code = EXIT_CONNECTION_ERROR

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ExtractionTimeoutError(FetchError):
    """Raised when an HTTP request or page render exceeds its timeout."""


class PageLoadError(FetchError):
    """Raised when the headless browser cannot navigate to a page."""


class SearchError(FetchError):
    """Raised when the discovery search surface is unreachable or erroring."""


# --- Spec validity ---


class SchemaInvalidError(ApiDocsError):
    """Raised when a parsed document is not a structurally valid OpenAPI/Swagger spec."""

    exit_code = EXIT_SPEC_INVALID


class SpecParseError(SchemaInvalidError):
    """Raised when content cannot be parsed as JSON or YAML at all."""


# --- Local environment ---


class CacheIOError(ApiDocsError):
    """Raised when the cache manifest or a blob cannot be read or written."""

    exit_code = EXIT_IO_ERROR


class BrowserError(ApiDocsError):
    """Base class for headless-browser environment failures."""

    exit_code = EXIT_BROWSER_ERROR


class BrowserNotInstalledError(BrowserError):
    """Raised when Playwright's Chromium build is not installed."""

    def __init__(self, detail: str = ""):
        message = (
            "Headless Chromium is not installed. "
            "Run 'playwright install chromium' and try again."
        )
        if detail:
            message += f"\n  {detail}"
        super().__init__(message)


class BrowserLaunchError(BrowserError):
    """Raised when the headless browser is installed but fails to start."""


class ConfigError(ApiDocsError):
    """Raised for configuration problems (invalid JSON, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE
