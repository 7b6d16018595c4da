"""Lookup command -- resolve a provider name to its documentation URL."""

from __future__ import annotations

import typer

from apidocs.commands import fail
from apidocs.exceptions import ApiDocsError
from apidocs.output import OutputFormat, get_output, info, print_data, success


def lookup_command(
    ctx: typer.Context,
    name: str = typer.Argument(help="Provider name, e.g. 'stripe'."),
    force: bool = typer.Option(False, "--force", "-f", help="Bypass the discovery cache."),
) -> None:
    """Find where a provider's API documentation lives.

    Example::

        api-docs lookup n8n
    """
    from apidocs.runtime import open_runtime

    try:
        with open_runtime(ctx.obj) as runtime:
            result = runtime.resolver().resolve(name, force_refresh=force)
    except ApiDocsError as exc:
        raise fail(exc) from None

    if get_output().format == OutputFormat.JSON:
        get_output().print_document(result.model_dump(mode="json"))
        return

    success(f"Found: {result.provider_id}" + (" (from cache)" if result.from_cache else ""))
    info(f"Provider page: {result.source_origin}")
    print_data(result.docs_url)
