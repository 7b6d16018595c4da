"""Redoc adapter.

Redoc exposes its store as ``window.__redoc_state`` (server-rendered
bundles) or ``window.__REDOC_STORE__``; the spec sits at ``spec.data`` in
current releases and at ``spec`` or ``definition.spec`` in older ones.
"""

from __future__ import annotations

import re

from apidocs.extractors.base import FrameworkExtractor
from apidocs.extractors.dom import DomLayer, OperationSelectors
from apidocs.extractors.layers import LiveStateLayer, NetworkCaptureLayer, ScriptLayer

STATE_SCRIPT = """
() => {
  const store = window.__redoc_state || window.__REDOC_STORE__;
  if (!store) return null;
  const candidates = [
    store.spec && store.spec.data,
    store.spec,
    store.definition && store.definition.spec,
    store,
  ];
  for (const c of candidates) {
    if (c && typeof c === 'object' && (c.openapi || c.swagger)) {
      try { return JSON.parse(JSON.stringify(c)); } catch (e) { return null; }
    }
  }
  return null;
}
"""

CAPTURE_PATTERN = re.compile(
    r"openapi\.json|openapi\.ya?ml|swagger\.json|swagger\.ya?ml|api-docs|/v2/api-docs|/v3/api-docs"
    r"|\.yaml$|\.yml$|\.json$",
    re.IGNORECASE,
)

LITERAL_PATTERNS = (re.compile(r"Redoc\.init\(\s*(?=\{)"),)

URL_PATTERNS = (
    re.compile(r"specUrl\s*:\s*['\"]([^'\"]+)['\"]"),
    re.compile(r"Redoc\.init\(\s*['\"]([^'\"]+)['\"]"),
)

URL_ATTRIBUTES = (("redoc[spec-url]", "spec-url"),)

OPERATIONS = OperationSelectors(
    block='[data-section-id*="operation"], .operation',
    method='.http-verb, [class*="http-verb"], [class*="method"]',
    path='.operation-path, [class*="path"], code',
    description='.operation-summary, [class*="summary"], p',
)

NAV_SELECTOR = '[class*="menu-content"] a, .api-content a'
NAV_PATTERN = re.compile(r"^(GET|POST|PUT|DELETE|PATCH|OPTIONS|HEAD)\s+(.+)", re.IGNORECASE)


def build_extractor() -> FrameworkExtractor:
    """Layers: Redoc store, captured downloads, ``spec-url`` declarations, operation DOM."""
    return FrameworkExtractor(
        "redoc",
        [
            LiveStateLayer(STATE_SCRIPT),
            NetworkCaptureLayer(CAPTURE_PATTERN),
            ScriptLayer(
                literal_patterns=LITERAL_PATTERNS,
                url_patterns=URL_PATTERNS,
                url_attributes=URL_ATTRIBUTES,
            ),
            DomLayer(OPERATIONS, nav_selector=NAV_SELECTOR, nav_pattern=NAV_PATTERN),
        ],
        capture_pattern=CAPTURE_PATTERN,
    )
