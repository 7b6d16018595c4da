"""Scalar API Reference adapter.

Scalar is configured through attributes on its mount element: either
``data-url``/``data-spec-url`` pointing at a document, or a
``data-configuration`` JSON blob whose ``spec`` holds a ``url`` or the
document ``content`` itself. :class:`ScalarScriptLayer` reads all of them.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterator

from apidocs.browser.page import DocumentPage
from apidocs.extractors.base import ExtractionContext, FrameworkExtractor, LayerOutput
from apidocs.extractors.dom import DomLayer, OperationSelectors
from apidocs.extractors.layers import LiveStateLayer, NetworkCaptureLayer, ScriptLayer, spec_output

STATE_SCRIPT = """
() => {
  const el = document.querySelector('#api-reference[data-configuration]')
    || document.querySelector('.scalar-api-reference[data-configuration], [data-scalar][data-configuration], [data-configuration]');
  if (!el) return null;
  try {
    const config = JSON.parse(el.getAttribute('data-configuration'));
    const content = config && config.spec && config.spec.content;
    if (!content) return null;
    return typeof content === 'string' ? content : JSON.parse(JSON.stringify(content));
  } catch (e) {
    return null;
  }
}
"""

CAPTURE_PATTERN = re.compile(
    r"openapi\.json|openapi\.ya?ml|swagger\.json|swagger\.ya?ml|api-docs|\.yaml$|\.yml$|\.json$",
    re.IGNORECASE,
)

_MOUNT = "[data-spec-url], [data-configuration], .scalar-api-reference, #api-reference"

URL_ATTRIBUTES = (
    ("[data-spec-url]", "data-spec-url"),
    (_MOUNT, "data-url"),
)

OPERATIONS = OperationSelectors(
    block='.scalar-card, [class*="operation"], [class*="endpoint"], .request-block, [class*="HttpOperation"]',
    method='[class*="method"], [class*="http-method"], .badge, [class*="request-method"], [class*="HttpMethod"]',
    path='[class*="path"], [class*="url"], code, [class*="endpoint-path"], [class*="OperationPath"]',
    description='[class*="description"], [class*="summary"], [class*="Description"], p:not([class*="path"])',
)

NAV_SELECTOR = '.sidebar a, nav a, [class*="sidebar"] a, [class*="navigation"] a'
NAV_PATTERN = re.compile(r"^(GET|POST|PUT|DELETE|PATCH)\s+(/.+)", re.IGNORECASE)
TEXT_PATTERN = re.compile(r"(GET|POST|PUT|DELETE|PATCH)\s+(/[^\s]+)")


def _configurations(page: DocumentPage) -> Iterator[dict[str, Any]]:
    for element in page.soup().select("[data-configuration]"):
        try:
            config = json.loads(str(element.get("data-configuration") or ""))
        except json.JSONDecodeError:
            continue
        if isinstance(config, dict) and isinstance(config.get("spec"), dict):
            yield config["spec"]


class ScalarScriptLayer(ScriptLayer):
    """:class:`ScriptLayer` that also reads Scalar's mount-element attributes."""

    def __init__(self) -> None:
        super().__init__(url_attributes=URL_ATTRIBUTES, inline_json=True)

    def extract(self, page: DocumentPage, ctx: ExtractionContext) -> LayerOutput:
        for value in self._attribute_specs(page):
            found = spec_output(value, f"{page.url} (mount attributes)")
            if found.endpoints:
                return found
        return super().extract(page, ctx)

    @staticmethod
    def _attribute_specs(page: DocumentPage) -> Iterator[Any]:
        for spec in _configurations(page):
            if spec.get("content"):
                yield spec["content"]
        for element in page.soup().select("script[data-spec]"):
            value = element.get("data-spec")
            if isinstance(value, str) and value.strip():
                yield value

    def _declared_urls(self, page: DocumentPage, scripts: list[str]) -> list[str]:
        urls = super()._declared_urls(page, scripts)
        for spec in _configurations(page):
            url = spec.get("url")
            if isinstance(url, str) and url.strip():
                absolute = self._absolute(page, url.strip())
                if absolute and absolute not in urls:
                    urls.append(absolute)
        return urls


def build_extractor() -> FrameworkExtractor:
    """Layers: configuration content, captured downloads, mount attributes and inline JSON, DOM."""
    return FrameworkExtractor(
        "scalar",
        [
            LiveStateLayer(STATE_SCRIPT),
            NetworkCaptureLayer(CAPTURE_PATTERN),
            ScalarScriptLayer(),
            DomLayer(
                OPERATIONS,
                nav_selector=NAV_SELECTOR,
                nav_pattern=NAV_PATTERN,
                text_pattern=TEXT_PATTERN,
            ),
        ],
        capture_pattern=CAPTURE_PATTERN,
    )
