"""Shared test fixtures for apidocs.

Provides reusable fixtures for loading spec fixtures, creating isolated
config environments, managing output state, building static documentation
pages, and running CLI commands. These fixtures are automatically
discovered by pytest and available to all test modules without explicit
imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

import pytest

from apidocs.browser.page import CapturedResponse, DocumentPage
from apidocs.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Spec fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_openapi3_raw() -> dict[str, Any]:
    """Raw OpenAPI 3.0 petstore dict (5 operations)."""
    with open(FIXTURES_DIR / "petstore_openapi3.json") as f:
        return json.load(f)


@pytest.fixture
def petstore_openapi3_text() -> str:
    return (FIXTURES_DIR / "petstore_openapi3.json").read_text()


@pytest.fixture
def petstore_swagger2_raw() -> dict[str, Any]:
    """Raw Swagger 2.0 petstore dict (4 operations)."""
    with open(FIXTURES_DIR / "petstore_swagger2.json") as f:
        return json.load(f)


@pytest.fixture
def inventory_yaml_text() -> str:
    """OpenAPI 3.1 document in YAML (3 operations)."""
    return (FIXTURES_DIR / "inventory_openapi.yaml").read_text()


# ---------------------------------------------------------------------------
# Static documentation pages
# ---------------------------------------------------------------------------


class StaticPage(DocumentPage):
    """A :class:`DocumentPage` built from fixed HTML.

    Args:
        html: The page markup.
        url: The page URL.
        window_globals: Names reported as defined on ``window``.
        evaluations: Maps a substring of a JavaScript expression to the value
            :meth:`evaluate` returns for it. Unmatched expressions return
            ``None``, like a throwing expression on a live page.
        responses: Responses reported as captured during load.
    """

    def __init__(
        self,
        html: str,
        url: str = "https://docs.example.com/api",
        window_globals: Sequence[str] = (),
        evaluations: Optional[dict[str, Any]] = None,
        responses: Optional[list[CapturedResponse]] = None,
    ) -> None:
        self._html = html
        self._url = url
        self._globals = set(window_globals)
        self._evaluations = evaluations or {}
        self._responses = responses or []
        self.evaluated: list[str] = []

    @property
    def url(self) -> str:
        return self._url

    def content(self) -> str:
        return self._html

    def evaluate(self, expression: str, arg: Any = None) -> Any:
        self.evaluated.append(expression)
        for marker, value in self._evaluations.items():
            if marker in expression:
                return value
        return None

    def defined_globals(self, names: Sequence[str]) -> set[str]:
        return {name for name in names if name in self._globals}

    def captured_responses(self) -> list[CapturedResponse]:
        return list(self._responses)


@pytest.fixture
def make_page() -> Callable[..., StaticPage]:
    """Factory for :class:`StaticPage` instances."""
    return StaticPage


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config or caches. Clears all APIDOCS_* environment variables and
    changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("apidocs.config._is_xdg_platform", lambda: True)

    for var in [
        "APIDOCS_CACHE_DIR",
        "APIDOCS_NO_CACHE",
        "APIDOCS_DISCOVERY_URL",
        "APIDOCS_HTTP_TIMEOUT",
        "APIDOCS_BROWSER_TIMEOUT_MS",
        "NO_COLOR",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
