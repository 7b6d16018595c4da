"""Discovery commands -- inspect and clear cached provider lookups."""

from __future__ import annotations

from typing import Optional

import typer

from apidocs.commands import fail
from apidocs.exceptions import ApiDocsError
from apidocs.output import get_output, info, success


discovery_app = typer.Typer(no_args_is_help=True)


@discovery_app.command("list")
def discovery_list(ctx: typer.Context) -> None:
    """List cached provider -> documentation URL resolutions."""
    from apidocs.runtime import open_runtime

    try:
        with open_runtime(ctx.obj) as runtime:
            entries = runtime.discovery_cache.list()
    except ApiDocsError as exc:
        raise fail(exc) from None

    if not entries:
        info("No providers have been looked up yet.")
        return

    headers = ["Provider", "Docs URL", "Cached", "Status"]
    rows = [
        [
            e.provider_key,
            e.docs_url,
            e.cached_at.strftime("%Y-%m-%d %H:%M"),
            "expired" if e.is_expired else "valid",
        ]
        for e in entries
    ]
    get_output().print_table(headers, rows, title=f"Discovered providers ({len(rows)})")


@discovery_app.command("clear")
def discovery_clear(
    ctx: typer.Context,
    provider: Optional[str] = typer.Argument(None, help="Provider to forget (default: all)."),
) -> None:
    """Forget one provider's cached docs URL, or all of them."""
    from apidocs.runtime import open_runtime

    try:
        with open_runtime(ctx.obj) as runtime:
            removed = runtime.discovery_cache.clear(provider)
    except ApiDocsError as exc:
        raise fail(exc) from None

    if provider and not removed:
        info(f"'{provider}' was not cached.")
        return
    noun = "entry" if removed == 1 else "entries"
    success(f"Removed {removed} discovery {noun}.")
