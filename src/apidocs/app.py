"""Typer application and CLI entry point for api-docs.

This module wires together the top-level Typer application and registers the
built-in sub-commands (``endpoints``, ``lookup``, ``cache``, ``discovery``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler, invokes the Typer app, maps
:class:`~apidocs.exceptions.ApiDocsError` to its exit code, writes a crash log
for anything unexpected, and always shuts down the headless browser.

See Also:
    :mod:`apidocs.config`: Configuration resolution used by every command.
    :mod:`apidocs.output`: Output formatting initialised in :func:`main_callback`.
    :mod:`apidocs.runtime`: Per-run collaborators and their shutdown.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from apidocs import __version__
from apidocs.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="api-docs",
    help="Find any API's spec and list its endpoints.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"api-docs {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    discovery_url: Optional[str] = typer.Option(
        None, "--discovery-url", help="Provider directory to search."
    ),
    cache_dir: Optional[str] = typer.Option(
        None, "--cache-dir", help="Cache directory override."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~apidocs.output.OutputManager` from
    CLI flags, and stores config overrides in the Typer context so that
    sub-commands can pass them to :func:`~apidocs.runtime.open_runtime`
    via ``ctx.obj``.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output.
        discovery_url: Override ``discovery.base_url``.
        cache_dir: Override the cache root.
    """
    from apidocs.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["discovery_url"] = discovery_url
    ctx.obj["cache_dir"] = cache_dir
    ctx.obj["verbose"] = verbose


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

from apidocs.commands.cache import cache_app  # noqa: E402
from apidocs.commands.discovery import discovery_app  # noqa: E402
from apidocs.commands.endpoints import endpoints_command  # noqa: E402
from apidocs.commands.lookup import lookup_command  # noqa: E402

app.command("endpoints")(endpoints_command)
app.command("lookup")(lookup_command)
app.add_typer(cache_app, name="cache", help="Spec cache management.")
app.add_typer(discovery_app, name="discovery", help="Discovery cache management.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    Args:
        exc: The unhandled exception to log.

    Returns:
        Absolute path to the written crash log file.
    """
    from apidocs.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``api-docs`` console script.

    Unhandled :class:`~apidocs.exceptions.ApiDocsError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit. The headless browser is shut
    down on every path out, Ctrl-C included.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    from apidocs.runtime import shutdown

    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from apidocs.exceptions import ApiDocsError
        from apidocs.output import error

        if isinstance(exc, ApiDocsError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
    finally:
        shutdown()
