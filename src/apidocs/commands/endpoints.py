"""Endpoints command -- acquire an API spec and list its endpoints.

``api-docs endpoints <query>`` accepts a provider name (resolved through
discovery) or a URL (a spec document or a documentation page) and runs the
:class:`~apidocs.pipeline.SpecAcquisitionPipeline`.
"""

from __future__ import annotations

import typer

from apidocs.commands import fail
from apidocs.exceptions import ApiDocsError
from apidocs.models import ExtractionResult
from apidocs.output import OutputFormat, get_output, info, status, success


def _print_result(result: ExtractionResult) -> None:
    output = get_output()
    if output.format == OutputFormat.JSON:
        output.print_document(result.model_dump(mode="json", exclude={"spec"}))
        return

    api = result.api_info
    success(f"Found: {api.title} ({api.version})")
    origin = f"{result.framework} via {result.strategy}" if result.strategy else result.framework
    info(f"Source: {result.source_url} [{origin}]" + (" (from cache)" if result.from_cache else ""))

    headers = ["Method", "Path", "Description", "Tags"]
    rows = [
        [ep.method.value, ep.path, ep.description or "-", ", ".join(ep.tags)]
        for ep in result.endpoints
    ]
    output.print_table(headers, rows, title=f"{api.title} -- Endpoints ({len(rows)})")


def endpoints_command(
    ctx: typer.Context,
    query: str = typer.Argument(help="Provider name (e.g. 'stripe') or URL."),
    force: bool = typer.Option(
        False, "--force", "-f", help="Ignore cached discovery and spec entries."
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Neither read nor write the spec cache."
    ),
) -> None:
    """List the endpoints of an API.

    Tries, in order: fetching the URL as a spec document, probing common
    spec paths on its origin, scraping the rendered page for ``METHOD
    /path`` patterns, and framework-specific extraction from Swagger UI,
    Redoc or Scalar pages.

    Example::

        api-docs endpoints https://petstore3.swagger.io/api/v3/openapi.json
        api-docs endpoints stripe --json
    """
    from apidocs.runtime import open_runtime

    try:
        with open_runtime(ctx.obj) as runtime:
            with status(f"Looking for the API spec of {query}..."):
                result = runtime.pipeline().acquire(
                    query, force_refresh=force, use_cache=not no_cache
                )
    except ApiDocsError as exc:
        raise fail(exc) from None

    _print_result(result)
