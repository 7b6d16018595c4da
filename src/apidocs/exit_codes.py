"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~apidocs.exceptions.ApiDocsError` subclass.
External tooling (CI scripts, shell wrappers) can inspect the exit code to
determine the failure class without parsing stderr.

Example::

    $ api-docs endpoints internal-portal
    $ echo $?
    3   # EXIT_AUTH_REQUIRED -- the docs page sits behind a login wall
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_REQUIRED = 3
"""The documentation page requires authentication."""

EXIT_NOT_FOUND = 4
"""No provider, docs page, cache entry, or spec could be found."""

EXIT_EXPIRED = 5
"""A cache entry exists but is past its expiry time."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, HTTP failure)."""

EXIT_SPEC_INVALID = 7
"""An API description document could not be parsed or failed structural validation."""

EXIT_IO_ERROR = 8
"""The local cache could not be read or written."""

EXIT_BROWSER_ERROR = 9
"""The headless browser is missing or failed to launch."""
