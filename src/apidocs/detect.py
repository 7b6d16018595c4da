"""Classify a rendered page by the documentation UI that produced it.

Frameworks are probed in a fixed priority order; the first with a matching
DOM marker or ``window`` global wins:

1. **swagger-ui** -- ``.swagger-ui`` / ``#swagger-ui``, ``window.ui``,
   ``window.SwaggerUIBundle``
2. **redoc** -- ``.redoc-wrap``, ``<redoc>``, ``[data-role="redoc"]``,
   ``window.__redoc_state``, ``window.__REDOC_STORE__``
3. **scalar** -- ``.scalar-app``, ``[data-scalar]``, ``.scalar-api-reference``,
   ``#scalar``, ``window.ScalarApiReference``

A page matching none of these is **generic** when its markup contains both
an HTTP-method token and a path-like token, and **undetected** otherwise.
"""

from __future__ import annotations

import enum
import re
from typing import NamedTuple

from apidocs.browser.page import DocumentPage
from apidocs.output import get_output


class Framework(str, enum.Enum):
    """Documentation UI variants the extractors know how to read."""

    SWAGGER_UI = "swagger-ui"
    REDOC = "redoc"
    SCALAR = "scalar"
    GENERIC = "generic"
    UNDETECTED = "undetected"


class _Markers(NamedTuple):
    selectors: tuple[str, ...]
    globals: tuple[str, ...]


FRAMEWORK_MARKERS: dict[Framework, _Markers] = {
    Framework.SWAGGER_UI: _Markers(
        selectors=(".swagger-ui", "#swagger-ui"),
        globals=("ui", "SwaggerUIBundle"),
    ),
    Framework.REDOC: _Markers(
        selectors=(".redoc-wrap", "redoc", '[data-role="redoc"]'),
        globals=("__redoc_state", "__REDOC_STORE__"),
    ),
    Framework.SCALAR: _Markers(
        selectors=(".scalar-app", "[data-scalar]", ".scalar-api-reference", "#scalar"),
        globals=("ScalarApiReference",),
    ),
}

_METHOD_TOKEN_RE = re.compile(r"\b(GET|POST|PUT|DELETE|PATCH)\b", re.IGNORECASE)
_PATH_TOKEN_RES = (
    re.compile(r"/[a-z]+/\{[^}]+\}", re.IGNORECASE),
    re.compile(r"/api/[a-z]+", re.IGNORECASE),
)


def looks_like_api_docs(markup: str) -> bool:
    """True when *markup* has both an HTTP-method token and a path-like token."""
    if not _METHOD_TOKEN_RE.search(markup):
        return False
    return any(pattern.search(markup) for pattern in _PATH_TOKEN_RES)


def detect_framework(page: DocumentPage) -> Framework:
    """Return the :class:`Framework` that rendered *page*.

    All ``window`` globals of interest are checked in a single in-page
    evaluation; DOM markers are matched against the page snapshot.
    """
    soup = page.soup()
    all_globals = [name for markers in FRAMEWORK_MARKERS.values() for name in markers.globals]
    present = page.defined_globals(all_globals)

    for framework, markers in FRAMEWORK_MARKERS.items():
        if any(soup.select_one(selector) is not None for selector in markers.selectors):
            get_output().debug(f"Detected {framework.value} by DOM marker on {page.url}")
            return framework
        if present.intersection(markers.globals):
            get_output().debug(f"Detected {framework.value} by window global on {page.url}")
            return framework

    if looks_like_api_docs(page.content()):
        return Framework.GENERIC
    return Framework.UNDETECTED
