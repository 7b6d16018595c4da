"""Built-in CLI sub-commands for api-docs.

This package groups the Typer sub-command modules that form the CLI's
top-level command tree:

* :mod:`~apidocs.commands.endpoints` -- acquire and list an API's endpoints.
* :mod:`~apidocs.commands.lookup` -- resolve a provider name to its docs URL.
* :mod:`~apidocs.commands.cache` -- list and clear cached specs.
* :mod:`~apidocs.commands.discovery` -- list and clear cached provider lookups.

Single commands export a plain callback registered on the root app;
multi-command groups export a :class:`typer.Typer` sub-application.
"""

from __future__ import annotations

import typer

from apidocs.exceptions import (
    ApiDocsError,
    AuthenticationRequiredError,
    BrowserNotInstalledError,
    ProviderNotFoundError,
    SpecNotFoundError,
)
from apidocs.output import error, suggest


def fail(exc: ApiDocsError) -> typer.Exit:
    """Report *exc* on stderr and return the :class:`typer.Exit` to raise."""
    error(str(exc))
    if isinstance(exc, ProviderNotFoundError):
        suggest("Try a URL if you have a direct link to the API docs.")
    elif isinstance(exc, SpecNotFoundError):
        suggest("Pass the URL of the spec document itself if you know it.")
    elif isinstance(exc, AuthenticationRequiredError):
        suggest("Log in with a browser, save the spec, and pass its URL instead.")
    elif isinstance(exc, BrowserNotInstalledError):
        suggest("Run: playwright install chromium")
    return typer.Exit(code=exc.exit_code)
