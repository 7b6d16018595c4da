"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet mode suppression rules
- Verbose mode debug output
- print_document and print_table in every mode
- The status spinner fallback
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from apidocs import output as output_module
from apidocs.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("apidocs.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("apidocs.output._is_tty", lambda: True)


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    """AUTO resolves from the environment; explicit formats are kept."""

    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.RICH

    def test_no_color_flag_forces_plain(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO, no_color=True).format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb_disables_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout vs stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    """Data goes to stdout and diagnostics go to stderr."""

    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_data("https://stripe.com/docs/api")
        captured = capfd.readouterr()
        assert captured.out == "https://stripe.com/docs/api\n"
        assert captured.err == ""

    @pytest.mark.parametrize(
        "method, message, expected",
        [
            ("info", "Source: https://petstore.example.com", "Source: https://petstore.example.com"),
            ("success", "Found: Petstore (1.0.0)", "Found: Petstore (1.0.0)"),
            ("warning", "cache entry expired", "Warning: cache entry expired"),
            ("error", "No provider found for 'x'", "Error: No provider found for 'x'"),
            ("suggest", "Try a URL", "→ Try a URL"),
        ],
    )
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method, message, expected):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        getattr(mgr, method)(message)
        captured = capfd.readouterr()
        assert captured.out == ""
        assert captured.err == expected + "\n"


# ------------------------------------------------------------------ #
# Quiet and verbose modes
# ------------------------------------------------------------------ #


class TestQuietMode:
    """--quiet suppresses info/success/suggest/progress but not warning/error."""

    def test_quiet_suppresses_non_essential(self, capfd, tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("info")
        mgr.success("success")
        mgr.suggest("suggest")
        mgr.progress("progress")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_errors_and_data(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.warning("important warning")
        mgr.error("critical error")
        mgr.print_data("GET\t/pets")
        captured = capfd.readouterr()
        assert "important warning" in captured.err
        assert "critical error" in captured.err
        assert captured.out == "GET\t/pets\n"


class TestVerboseMode:
    def test_debug_hidden_by_default(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).debug("probe /openapi.json")
        assert capfd.readouterr().err == ""

    def test_debug_shown_with_verbose(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True).debug("probe /openapi.json")
        assert capfd.readouterr().err == "[debug] probe /openapi.json\n"

    def test_debug_markup_is_escaped(self, capfd, non_tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        OutputManager(format=OutputFormat.PLAIN, verbose=True).debug("state [bold]literal[/bold]")
        assert "[bold]literal[/bold]" in capfd.readouterr().err


class TestProgress:
    def test_progress_shown_in_tty(self, capfd, tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).progress("Trying probe on https://x.io")
        assert "Trying probe on https://x.io" in capfd.readouterr().err

    def test_progress_hidden_when_not_tty(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).progress("Trying probe")
        assert capfd.readouterr().err == ""


class TestStatus:
    def test_falls_back_to_progress(self, capfd, tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        with mgr.status("Looking for the API spec of stripe..."):
            mgr.print_data("inside")
        captured = capfd.readouterr()
        assert "Looking for the API spec of stripe..." in captured.err
        assert captured.out == "inside\n"

    def test_quiet_status_is_silent(self, capfd, tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        with mgr.status("Looking..."):
            pass
        assert capfd.readouterr().err == ""


# ------------------------------------------------------------------ #
# Documents and tables
# ------------------------------------------------------------------ #


class TestPrintDocument:
    def test_json_mode(self, capfd, non_tty):
        data = {"framework": "openapi", "endpoints": [{"method": "GET", "path": "/pets"}]}
        OutputManager(format=OutputFormat.JSON).print_document(data)
        assert json.loads(capfd.readouterr().out) == data

    def test_plain_mode_is_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).print_document({"title": "Petstore"}, syntax="yaml")
        assert json.loads(capfd.readouterr().out) == {"title": "Petstore"}

    def test_rich_mode(self, capfd, non_tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        OutputManager(format=OutputFormat.RICH).print_document({"title": "Petstore"}, syntax="yaml")
        assert "Petstore" in capfd.readouterr().out


class TestPrintTable:
    HEADERS = ["Method", "Path", "Description"]
    ROWS = [["GET", "/pets", "List all pets"], ["POST", "/pets", "-"]]

    def test_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_table(self.HEADERS, self.ROWS)
        assert json.loads(capfd.readouterr().out) == [
            {"Method": "GET", "Path": "/pets", "Description": "List all pets"},
            {"Method": "POST", "Path": "/pets", "Description": "-"},
        ]

    def test_plain(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).print_table(self.HEADERS, self.ROWS)
        assert capfd.readouterr().out.splitlines() == [
            "Method\tPath\tDescription",
            "GET\t/pets\tList all pets",
            "POST\t/pets\t-",
        ]

    def test_rich(self, capfd, non_tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        OutputManager(format=OutputFormat.RICH).print_table(self.HEADERS, self.ROWS, title="Petstore")
        out = capfd.readouterr().out
        assert "Petstore" in out
        assert "List all pets" in out


# ------------------------------------------------------------------ #
# Global instance management
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_output_creates_default(self, non_tty):
        reset_output()
        mgr = get_output()
        assert isinstance(mgr, OutputManager)
        assert get_output() is mgr

    def test_set_output(self):
        mgr = OutputManager(format=OutputFormat.JSON)
        set_output(mgr)
        assert get_output() is mgr

    def test_convenience_functions_use_global(self, capfd, non_tty):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True))
        output_module.print_data("data line")
        output_module.info("info line")
        output_module.debug("debug line")
        captured = capfd.readouterr()
        assert captured.out == "data line\n"
        assert "info line" in captured.err
        assert "[debug] debug line" in captured.err
