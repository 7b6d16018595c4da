"""Swagger UI adapter.

Swagger UI keeps the loaded document in its Redux store, reachable through
the ``window.ui`` handle that ``SwaggerUIBundle`` returns, so the live-state
layer almost always succeeds on a healthy page.
"""

from __future__ import annotations

import re

from apidocs.extractors.base import FrameworkExtractor
from apidocs.extractors.dom import DomLayer, OperationSelectors
from apidocs.extractors.layers import LiveStateLayer, NetworkCaptureLayer, ScriptLayer

STATE_SCRIPT = """
() => {
  const ui = window.ui;
  if (!ui) return null;
  const plain = v => (v && typeof v.toJS === 'function') ? v.toJS() : v;
  try {
    if (ui.specSelectors && typeof ui.specSelectors.specJson === 'function') {
      const spec = plain(ui.specSelectors.specJson());
      if (spec && spec.paths) return spec;
    }
  } catch (e) {}
  try {
    const configs = typeof ui.getConfigs === 'function' ? ui.getConfigs() : null;
    if (configs && configs.spec && configs.spec.paths) return configs.spec;
  } catch (e) {}
  try {
    const state = typeof ui.getState === 'function' ? plain(ui.getState()) : null;
    const json = state && state.spec ? plain(state.spec.json) : null;
    if (json && json.paths) return json;
  } catch (e) {}
  return null;
}
"""

CAPTURE_PATTERN = re.compile(
    r"openapi\.json|openapi\.yaml|swagger\.json|swagger\.yaml|api-docs|/v2/api-docs|/v3/api-docs",
    re.IGNORECASE,
)

LITERAL_PATTERNS = (
    re.compile(r"\bspec\s*:\s*(?=\{)"),
    re.compile(r"window\.spec\s*=\s*(?=\{)"),
)

URL_PATTERNS = (re.compile(r"SwaggerUIBundle\(\s*\{[^}]*?\burl\s*:\s*['\"]([^'\"]+)['\"]"),)

OPERATIONS = OperationSelectors(
    block=".opblock",
    method=".opblock-summary-method",
    path=".opblock-summary-path, .opblock-summary-path__deprecated",
    description=".opblock-summary-description",
    tag_section=".opblock-tag-section",
    tag=".opblock-tag",
)


def build_extractor() -> FrameworkExtractor:
    """Layers: ``window.ui`` state, captured spec downloads, inline scripts, ``.opblock`` DOM."""
    return FrameworkExtractor(
        "swagger-ui",
        [
            LiveStateLayer(STATE_SCRIPT),
            NetworkCaptureLayer(CAPTURE_PATTERN),
            ScriptLayer(literal_patterns=LITERAL_PATTERNS, url_patterns=URL_PATTERNS),
            DomLayer(OPERATIONS),
        ],
        capture_pattern=CAPTURE_PATTERN,
    )
