"""Cache commands -- inspect and clear the spec cache.

Provides the ``api-docs cache`` sub-command group. Entries are listed from
the manifest, so listing never reads blob files unless ``--check`` asks
for it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import typer

from apidocs.commands import fail
from apidocs.exceptions import ApiDocsError
from apidocs.output import get_output, info, success


cache_app = typer.Typer(no_args_is_help=True)


def _when(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "never"


@cache_app.command("list")
def cache_list(
    ctx: typer.Context,
    check: bool = typer.Option(
        False, "--check", help="Drop entries whose blob file is missing."
    ),
) -> None:
    """List cached specs, newest first.

    Example::

        api-docs cache list
        api-docs cache list --json
    """
    from apidocs.runtime import open_runtime

    try:
        with open_runtime(ctx.obj) as runtime:
            entries = runtime.spec_cache.list(check_files=check)
    except ApiDocsError as exc:
        raise fail(exc) from None

    if not entries:
        info("The spec cache is empty.")
        return

    headers = ["Key", "Source", "Title", "Type", "Cached", "Expires", "Status"]
    rows = [
        [
            e.key,
            e.source_url,
            e.spec_info.title,
            f"{e.spec_info.type} {e.spec_info.version}",
            _when(e.cached_at),
            _when(e.expires_at),
            "expired" if e.is_expired else "valid",
        ]
        for e in entries
    ]
    get_output().print_table(headers, rows, title=f"Cached specs ({len(rows)})")


@cache_app.command("clear")
def cache_clear(
    ctx: typer.Context,
    url: Optional[str] = typer.Argument(None, help="Source URL to remove (default: everything)."),
) -> None:
    """Remove one cached spec, or all of them.

    Example::

        api-docs cache clear
        api-docs cache clear https://petstore.swagger.io
    """
    from apidocs.parser.loader import normalize_url
    from apidocs.runtime import open_runtime

    try:
        with open_runtime(ctx.obj) as runtime:
            removed = runtime.spec_cache.delete(normalize_url(url) if url else None)
    except ApiDocsError as exc:
        raise fail(exc) from None

    noun = "entry" if removed == 1 else "entries"
    success(f"Removed {removed} cache {noun}.")
