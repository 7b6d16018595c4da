"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for apidocs:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.apidocs/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Global config** -- A single :class:`~apidocs.models.GlobalConfig`
  JSON file storing cache, HTTP, browser and discovery settings.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  final effective configuration.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`), which the spec cache reuses for its manifest and
blob files.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from apidocs.exceptions import ConfigError
from apidocs.models import GlobalConfig

_APP_NAME = "apidocs"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "apidocs.json"

ENV_CACHE_DIR = "APIDOCS_CACHE_DIR"
ENV_NO_CACHE = "APIDOCS_NO_CACHE"
ENV_DISCOVERY_URL = "APIDOCS_DISCOVERY_URL"
ENV_HTTP_TIMEOUT = "APIDOCS_HTTP_TIMEOUT"
ENV_BROWSER_TIMEOUT_MS = "APIDOCS_BROWSER_TIMEOUT_MS"

_TRUTHY = {"1", "true", "yes", "on"}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/apidocs/`` (default ``~/.config/apidocs/``).
    On macOS/Windows: ``~/.apidocs/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_CONFIG_HOME", (".config",))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the spec cache (``specs/``) and the discovery cache
    (``discovery.json``). Cached data can be safely deleted at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/apidocs/`` (default ``~/.cache/apidocs/``).
    On macOS/Windows: ``~/.apidocs/cache/``.

    Returns:
        Absolute path to the cache directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_CACHE_HOME", (".cache",))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/apidocs/`` (default ``~/.local/share/apidocs/``).
    On macOS/Windows: ``~/.apidocs/logs/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_DATA_HOME", (".local", "share"))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def resolve_cache_root(config: GlobalConfig) -> Path:
    """Return the effective cache root for *config*.

    ``cache.directory`` (set from the config file or ``APIDOCS_CACHE_DIR``)
    wins over the XDG cache directory.
    """
    if config.cache.directory:
        path = Path(config.cache.directory).expanduser()
        path.mkdir(parents=True, exist_ok=True)
        return path
    return get_cache_dir()


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    On success the temp file is renamed over *path*; on any failure the temp
    file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close in finally
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~apidocs.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./apidocs.json``.

    The file uses the same shape as the global config; any section it
    declares is merged over the global values key by key.

    Returns:
        The parsed JSON as a dict, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *override* into a copy of *base*."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _env_float(name: str) -> Optional[float]:
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got '{raw}'") from exc


# --- Precedence resolution ---


def resolve_config(
    cli_no_cache: Optional[bool] = None,
    cli_discovery_url: Optional[str] = None,
    cli_cache_dir: Optional[str] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_no_cache``, ``cli_discovery_url``, ``cli_cache_dir``)
        2. Environment variables (``APIDOCS_CACHE_DIR``, ``APIDOCS_NO_CACHE``,
           ``APIDOCS_DISCOVERY_URL``, ``APIDOCS_HTTP_TIMEOUT``,
           ``APIDOCS_BROWSER_TIMEOUT_MS``)
        3. Project config (``./apidocs.json``)
        4. User config (``~/.config/apidocs/config.json``)
        5. Defaults

    Returns:
        The effective :class:`~apidocs.models.GlobalConfig`.

    Raises:
        ConfigError: If any layer holds an invalid value.
    """
    # 5 + 4. Global config (fills in defaults automatically)
    global_cfg = load_global_config()

    # 3. Project-local overrides
    project = load_project_config()
    if project is not None:
        try:
            global_cfg = GlobalConfig.model_validate(
                _merge(global_cfg.model_dump(mode="json"), project)
            )
        except ValueError as exc:
            raise ConfigError(f"Invalid project config: {exc}") from exc

    # 2. Environment variables
    env_cache_dir = os.environ.get(ENV_CACHE_DIR)
    if env_cache_dir:
        global_cfg.cache.directory = env_cache_dir
    env_no_cache = os.environ.get(ENV_NO_CACHE)
    if env_no_cache and env_no_cache.strip().lower() in _TRUTHY:
        global_cfg.cache.enabled = False
    env_discovery = os.environ.get(ENV_DISCOVERY_URL)
    if env_discovery:
        global_cfg.discovery.base_url = env_discovery
    env_timeout = _env_float(ENV_HTTP_TIMEOUT)
    if env_timeout is not None:
        global_cfg.http.timeout = env_timeout
    env_browser_timeout = _env_float(ENV_BROWSER_TIMEOUT_MS)
    if env_browser_timeout is not None:
        global_cfg.browser.timeout_ms = int(env_browser_timeout)

    # 1. CLI flags
    if cli_no_cache:
        global_cfg.cache.enabled = False
    if cli_discovery_url is not None:
        global_cfg.discovery.base_url = cli_discovery_url
    if cli_cache_dir is not None:
        global_cfg.cache.directory = cli_cache_dir

    return global_cfg
