"""Parse fetched spec content and classify target URLs.

This module holds the parsing policy shared by the direct-fetch and
path-probe strategies, by network-captured responses and by script-declared
spec URLs:

* :func:`parse_spec_content` -- JSON first when the URL or the body looks
  like JSON, YAML otherwise; only mappings are accepted.
* :func:`looks_like_spec_url` -- the heuristic that decides whether a
  target is a direct spec reference.
* :func:`normalize_url` / :func:`origin_of` / :func:`is_url` -- URL helpers
  used throughout the pipeline.

After parsing, the dict is handed to
:func:`~apidocs.parser.validator.validate_spec`.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import urlsplit

import yaml

from apidocs.exceptions import SpecParseError

_SPEC_SUFFIXES = (".json", ".yaml", ".yml")
_SPEC_PATH_MARKERS = ("/api-docs", "/openapi", "/swagger")


def is_url(value: str) -> bool:
    """Return True if *value* should be treated as a URL rather than a provider name.

    Anything with a scheme, or a dotted host-like first segment
    (``api.example.com/docs``), counts as a URL.
    """
    text = value.strip()
    if text.startswith(("http://", "https://")):
        return True
    if " " in text:
        return False
    host = text.split("/", 1)[0]
    return "." in host and not host.startswith(".") and not host.endswith(".")


def normalize_url(url: str) -> str:
    """Add an ``https://`` scheme when missing and strip trailing slashes."""
    text = url.strip()
    if not text.startswith(("http://", "https://")):
        text = f"https://{text}"
    return text.rstrip("/")


def origin_of(url: str) -> str:
    """Return ``scheme://host[:port]`` for *url*."""
    parts = urlsplit(normalize_url(url))
    return f"{parts.scheme}://{parts.netloc}"


def _path_of(url: str) -> str:
    return urlsplit(url.strip()).path.lower()


def looks_like_spec_url(url: str) -> bool:
    """Return True if *url* looks like a direct reference to a spec document.

    A ``.json``/``.yaml``/``.yml`` suffix, or ``/api-docs``, ``/openapi`` or
    ``/swagger`` anywhere in the path, qualifies.
    """
    path = _path_of(url)
    if path.endswith(_SPEC_SUFFIXES):
        return True
    return any(marker in path for marker in _SPEC_PATH_MARKERS)


def is_json_url(url: str) -> bool:
    """Return True if the URL path ends in ``.json``."""
    return _path_of(url).endswith(".json")


def parse_spec_content(content: str, url: str = "") -> tuple[dict[str, Any], str]:
    """Parse *content* as JSON or YAML.

    JSON is tried first when *url* ends in ``.json`` or the body starts with
    ``{``. A ``.json`` URL makes JSON mandatory: a JSON syntax error is
    raised rather than retried as YAML. Otherwise the content is parsed as
    YAML (which also accepts any JSON the first attempt rejected).

    Args:
        content: The raw response body.
        url: The URL the content came from, used only as a format hint.

    Returns:
        A ``(document, format)`` tuple where *format* is ``"json"`` or
        ``"yaml"``.

    Raises:
        SpecParseError: If the content is empty, cannot be parsed, or is not
            a mapping.
    """
    if not content or not content.strip():
        raise SpecParseError(f"Empty document{_from(url)}")

    json_required = is_json_url(url)
    json_error: Exception | None = None

    if json_required or content.lstrip().startswith("{"):
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            if json_required:
                raise SpecParseError(f"Invalid JSON{_from(url)}: {exc}") from exc
            json_error = exc
        else:
            return _require_mapping(result, url), "json"

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        msg = f"Failed to parse spec as JSON or YAML{_from(url)}"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise SpecParseError(msg) from exc

    return _require_mapping(result, url), "yaml"


def _require_mapping(result: Any, url: str) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise SpecParseError(f"Spec must be a JSON/YAML object (got {kind}){_from(url)}")
    return result


def _from(url: str) -> str:
    return f" from {url}" if url else ""
