"""End-to-end tests for the api-docs command tree (Typer CliRunner)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from apidocs import __version__
from apidocs.app import app, main
from apidocs.cache import CacheStore, DiscoveryCache
from apidocs.exceptions import (
    ApiDocsError,
    AuthenticationRequiredError,
    BrowserNotInstalledError,
    FetchError,
    InvalidUsageError,
    ProviderNotFoundError,
    SchemaInvalidError,
    SpecNotFoundError,
)
from apidocs.models import (
    APIInfo,
    DiscoveryResult,
    ExtractionResult,
    HTTPMethod,
    NormalizedEndpoint,
    SpecInfo,
)

PETSTORE_URL = "https://petstore.example.com/openapi.json"


def _result() -> ExtractionResult:
    return ExtractionResult(
        framework="openapi",
        api_info=APIInfo(title="Swagger Petstore", version="1.0.0"),
        endpoints=[
            NormalizedEndpoint(method=HTTPMethod.GET, path="/pets", description="List all pets", tags=["pets"]),
            NormalizedEndpoint(method=HTTPMethod.DELETE, path="/pets/{petId}"),
        ],
        source_url=PETSTORE_URL,
        strategy="direct",
    )


@pytest.fixture()
def acquire_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    """Replace the pipeline with one that records its arguments and returns the petstore."""
    calls: list[dict[str, Any]] = []

    def fake_acquire(self, target: str, force_refresh: bool = False, use_cache: bool = True) -> ExtractionResult:
        calls.append({"target": target, "force_refresh": force_refresh, "use_cache": use_cache})
        return _result()

    monkeypatch.setattr("apidocs.pipeline.SpecAcquisitionPipeline.acquire", fake_acquire)
    return calls


def _acquire_raises(monkeypatch: pytest.MonkeyPatch, exc: Exception) -> None:
    def fake_acquire(self, target: str, force_refresh: bool = False, use_cache: bool = True) -> ExtractionResult:
        raise exc

    monkeypatch.setattr("apidocs.pipeline.SpecAcquisitionPipeline.acquire", fake_acquire)


# ------------------------------------------------------------------ #
# Root
# ------------------------------------------------------------------ #


class TestRoot:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.strip() == f"api-docs {__version__}"

    def test_help_lists_commands(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("endpoints", "lookup", "cache", "discovery"):
            assert command in result.output


# ------------------------------------------------------------------ #
# endpoints
# ------------------------------------------------------------------ #


class TestEndpoints:
    def test_plain_table(self, cli_runner, isolated_config: Path, acquire_calls) -> None:
        result = cli_runner.invoke(app, ["--plain", "--no-color", "endpoints", PETSTORE_URL])
        assert result.exit_code == 0, result.output
        assert "Method\tPath\tDescription\tTags" in result.output
        assert "GET\t/pets\tList all pets\tpets" in result.output
        assert "DELETE\t/pets/{petId}\t-\t" in result.output
        assert "Found: Swagger Petstore (1.0.0)" in result.output
        assert acquire_calls == [{"target": PETSTORE_URL, "force_refresh": False, "use_cache": True}]

    def test_json(self, cli_runner, isolated_config: Path, acquire_calls) -> None:
        result = cli_runner.invoke(app, ["--json", "endpoints", PETSTORE_URL])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["framework"] == "openapi"
        assert data["strategy"] == "direct"
        assert [e["path"] for e in data["endpoints"]] == ["/pets", "/pets/{petId}"]
        assert "spec" not in data

    def test_flags(self, cli_runner, isolated_config: Path, acquire_calls) -> None:
        result = cli_runner.invoke(app, ["--json", "endpoints", "stripe", "--force", "--no-cache"])
        assert result.exit_code == 0, result.output
        assert acquire_calls == [{"target": "stripe", "force_refresh": True, "use_cache": False}]

    @pytest.mark.parametrize(
        "exc, code, suggestion",
        [
            (InvalidUsageError("A provider name or URL is required"), 2, None),
            (AuthenticationRequiredError("https://portal.example.com"), 3, "Log in with a browser"),
            (ProviderNotFoundError("doesnotexistco"), 4, "Try a URL"),
            (SpecNotFoundError("https://x.example.com", [("probe", "nothing")]), 4, "Pass the URL"),
            (FetchError("HTTP 500 fetching https://x.example.com", status_code=500), 6, None),
            (SchemaInvalidError("Not an OpenAPI 3.x or Swagger 2.0 document"), 7, None),
            (BrowserNotInstalledError("missing chromium"), 9, "playwright install chromium"),
        ],
    )
    def test_errors(
        self,
        cli_runner,
        isolated_config: Path,
        monkeypatch: pytest.MonkeyPatch,
        exc: ApiDocsError,
        code: int,
        suggestion: str,
    ) -> None:
        _acquire_raises(monkeypatch, exc)
        result = cli_runner.invoke(app, ["--no-color", "endpoints", "https://x.example.com"])
        assert result.exit_code == code
        assert f"Error: {str(exc).splitlines()[0]}" in result.output
        if suggestion:
            assert suggestion in result.output

    def test_spec_not_found_lists_attempts(
        self, cli_runner, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _acquire_raises(
            monkeypatch,
            SpecNotFoundError("https://x.example.com", [("direct", "HTML page"), ("probe", "no spec")]),
        )
        result = cli_runner.invoke(app, ["--no-color", "endpoints", "https://x.example.com"])
        assert result.exit_code == 4
        assert "  - direct: HTML page" in result.output
        assert "  - probe: no spec" in result.output


# ------------------------------------------------------------------ #
# lookup
# ------------------------------------------------------------------ #


class TestLookup:
    @pytest.fixture()
    def resolved(self, monkeypatch: pytest.MonkeyPatch) -> list[tuple[str, bool]]:
        calls: list[tuple[str, bool]] = []

        def fake_resolve(self, query: str, force_refresh: bool = False) -> DiscoveryResult:
            calls.append((query, force_refresh))
            return DiscoveryResult(
                provider_id="n8n",
                docs_url="https://docs.n8n.io/api/",
                source_origin="https://apitracker.io/a/n8n",
            )

        monkeypatch.setattr("apidocs.discovery.resolver.DiscoveryResolver.resolve", fake_resolve)
        return calls

    def test_plain(self, cli_runner, isolated_config: Path, resolved) -> None:
        result = cli_runner.invoke(app, ["--no-color", "lookup", "n8n"])
        assert result.exit_code == 0, result.output
        assert "https://docs.n8n.io/api/" in result.stdout
        assert "Found: n8n" in result.output
        assert resolved == [("n8n", False)]

    def test_json(self, cli_runner, isolated_config: Path, resolved) -> None:
        result = cli_runner.invoke(app, ["--json", "lookup", "n8n", "--force"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["docs_url"] == "https://docs.n8n.io/api/"
        assert resolved == [("n8n", True)]

    def test_not_found(self, cli_runner, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_resolve(self, query: str, force_refresh: bool = False) -> DiscoveryResult:
            raise ProviderNotFoundError(query)

        monkeypatch.setattr("apidocs.discovery.resolver.DiscoveryResolver.resolve", fake_resolve)
        result = cli_runner.invoke(app, ["--no-color", "lookup", "doesnotexistco"])
        assert result.exit_code == 4
        assert "No provider found for 'doesnotexistco'" in result.output


# ------------------------------------------------------------------ #
# cache / discovery
# ------------------------------------------------------------------ #


class TestCacheCommands:
    def _store(self, root: Path) -> CacheStore:
        store = CacheStore(root / "specs")
        store.put(
            PETSTORE_URL,
            _result().model_dump(mode="json"),
            ttl=3600,
            spec_info=SpecInfo(title="Swagger Petstore", version="3.0.3", type="openapi"),
        )
        return store

    def test_list_empty(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "cache", "list"])
        assert result.exit_code == 0
        assert "The spec cache is empty." in result.output

    def test_list(self, cli_runner, isolated_config: Path) -> None:
        root = isolated_config / "c"
        self._store(root)
        result = cli_runner.invoke(app, ["--plain", "--cache-dir", str(root), "cache", "list"])
        assert result.exit_code == 0, result.output
        lines = result.stdout.splitlines()
        assert lines[0] == "Key\tSource\tTitle\tType\tCached\tExpires\tStatus"
        assert PETSTORE_URL in lines[1]
        assert "Swagger Petstore\topenapi 3.0.3" in lines[1]
        assert lines[1].endswith("\tvalid")

    def test_clear_one(self, cli_runner, isolated_config: Path) -> None:
        root = isolated_config / "c"
        store = self._store(root)
        result = cli_runner.invoke(app, ["--no-color", "--cache-dir", str(root), "cache", "clear", PETSTORE_URL])
        assert result.exit_code == 0, result.output
        assert "Removed 1 cache entry." in result.output
        assert store.list() == []

    def test_clear_missing(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "cache", "clear", "https://nothing.example.com"])
        assert result.exit_code == 4

    def test_clear_all(self, cli_runner, isolated_config: Path) -> None:
        root = isolated_config / "c"
        store = self._store(root)
        store.put("https://other.example.com", {"x": 1})
        result = cli_runner.invoke(app, ["--no-color", "--cache-dir", str(root), "cache", "clear"])
        assert result.exit_code == 0, result.output
        assert "Removed 2 cache entries." in result.output


class TestDiscoveryCommands:
    def _cache(self, root: Path) -> DiscoveryCache:
        cache = DiscoveryCache(root / "discovery.json")
        cache.put(
            "stripe",
            DiscoveryResult(
                provider_id="stripe",
                docs_url="https://stripe.com/docs/api",
                source_origin="https://apitracker.io/a/stripe",
            ),
        )
        return cache

    def test_list_empty(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "discovery", "list"])
        assert result.exit_code == 0
        assert "No providers have been looked up yet." in result.output

    def test_list(self, cli_runner, isolated_config: Path) -> None:
        root = isolated_config / "c"
        self._cache(root)
        result = cli_runner.invoke(app, ["--plain", "--cache-dir", str(root), "discovery", "list"])
        assert result.exit_code == 0, result.output
        assert "stripe\thttps://stripe.com/docs/api\t" in result.stdout

    def test_clear_provider(self, cli_runner, isolated_config: Path) -> None:
        root = isolated_config / "c"
        cache = self._cache(root)
        result = cli_runner.invoke(app, ["--no-color", "--cache-dir", str(root), "discovery", "clear", "Stripe"])
        assert result.exit_code == 0, result.output
        assert "Removed 1 discovery entry." in result.output
        assert cache.get("stripe") is None

    def test_clear_unknown_provider(self, cli_runner, isolated_config: Path) -> None:
        result = cli_runner.invoke(app, ["--no-color", "discovery", "clear", "nobody"])
        assert result.exit_code == 0
        assert "'nobody' was not cached." in result.output


# ------------------------------------------------------------------ #
# main()
# ------------------------------------------------------------------ #


class TestMain:
    @pytest.fixture(autouse=True)
    def _no_signal_handlers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apidocs.app._setup_signal_handlers", lambda: None)

    def test_maps_error_to_exit_code(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
        def boom() -> None:
            raise ProviderNotFoundError("acme")

        monkeypatch.setattr("apidocs.app.app", boom)
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 4
        assert "No provider found for 'acme'" in capsys.readouterr().err

    def test_unexpected_error_writes_crash_log(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch, capsys
    ) -> None:
        def boom() -> None:
            raise RuntimeError("kaboom")

        monkeypatch.setattr("apidocs.app.app", boom)
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1
        logs = list((isolated_config / "data" / "apidocs" / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "kaboom" in logs[0].read_text()
        assert "Debug log:" in capsys.readouterr().err

    def test_shuts_down_runtime(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[str] = []
        monkeypatch.setattr("apidocs.app.app", lambda: None)
        monkeypatch.setattr("apidocs.runtime.shutdown", lambda: calls.append("shutdown"))
        main()
        assert calls == ["shutdown"]
