"""Spec-recovering extraction layers: live state, network capture, scripts.

These three layers all try to recover a full spec document from the page
rather than scrape its markup, so their endpoints carry tags and operation
ids. Each is configured per framework by the adapter modules.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional, Sequence
from urllib.parse import urljoin

from apidocs.browser.page import DocumentPage
from apidocs.exceptions import FetchError, SchemaInvalidError
from apidocs.extractors.base import ExtractionContext, ExtractionLayer, LayerOutput
from apidocs.output import get_output
from apidocs.parser.extractor import extract_endpoints
from apidocs.parser.literal import extract_balanced, find_literals, parse_object_literal
from apidocs.parser.loader import parse_spec_content
from apidocs.parser.validator import validate_spec

_SPEC_MARKERS = ('"openapi"', '"swagger"')


def spec_output(value: Any, source: str, lenient: bool = False) -> LayerOutput:
    """Turn a candidate spec value into a :class:`LayerOutput`.

    Args:
        value: A dict, or JSON/YAML text.
        source: Where the value came from (diagnostics only).
        lenient: Accept a mapping with a ``paths`` object even when it
            fails validation (UI stores sometimes drop ``info``).
    """
    output = get_output()
    try:
        if isinstance(value, str):
            value, fmt = parse_spec_content(value, source)
        else:
            fmt = "json"
        return LayerOutput.from_spec(validate_spec(value, source, fmt))
    except SchemaInvalidError as exc:
        if lenient and isinstance(value, dict) and isinstance(value.get("paths"), dict):
            output.debug(f"Using unvalidated paths from {source}: {exc}")
            return LayerOutput(extract_endpoints(value))
        output.debug(f"Discarded spec candidate from {source}: {exc}")
        return LayerOutput.empty()


class LiveStateLayer(ExtractionLayer):
    """Layer (a): read the spec the UI framework already holds in memory.

    Args:
        script: A JavaScript function expression returning the spec object
            (or a JSON/YAML string of it), or ``null``.
    """

    def __init__(self, script: str) -> None:
        self._script = script

    @property
    def name(self) -> str:
        return "state"

    def extract(self, page: DocumentPage, ctx: ExtractionContext) -> LayerOutput:
        value = page.evaluate(self._script)
        if not value:
            return LayerOutput.empty()
        return spec_output(value, page.url, lenient=True)


class NetworkCaptureLayer(ExtractionLayer):
    """Layer (b): parse spec documents the page downloaded while loading.

    Args:
        pattern: Only responses whose URL matches are considered. The page
            may have recorded more, since recording starts before the
            framework is known.
    """

    def __init__(self, pattern: Optional[re.Pattern[str]] = None) -> None:
        self._pattern = pattern

    @property
    def name(self) -> str:
        return "network"

    def extract(self, page: DocumentPage, ctx: ExtractionContext) -> LayerOutput:
        for response in page.captured_responses():
            if self._pattern is not None and not self._pattern.search(response.url):
                continue
            if response.status >= 400:
                continue
            if "text/html" in response.content_type or response.text.lstrip().startswith("<"):
                continue
            found = spec_output(response.text, response.url)
            if found.endpoints:
                return found
        return LayerOutput.empty()


class ScriptLayer(ExtractionLayer):
    """Layer (c): inline spec literals and spec-URL declarations in the page.

    Args:
        literal_patterns: Regexes matching up to the ``{`` of an inline spec
            literal (``spec: {``, ``window.spec = {``).
        url_patterns: Regexes whose first group is a spec URL declared in a
            script (``specUrl: '...'``).
        url_attributes: ``(css selector, attribute)`` pairs naming elements
            whose attribute holds a spec URL.
        inline_json: Also look for raw JSON specs inside script tags.
    """

    def __init__(
        self,
        literal_patterns: Sequence[re.Pattern[str]] = (),
        url_patterns: Sequence[re.Pattern[str]] = (),
        url_attributes: Sequence[tuple[str, str]] = (),
        inline_json: bool = False,
    ) -> None:
        self._literal_patterns = list(literal_patterns)
        self._url_patterns = list(url_patterns)
        self._url_attributes = list(url_attributes)
        self._inline_json = inline_json

    @property
    def name(self) -> str:
        return "scripts"

    def extract(self, page: DocumentPage, ctx: ExtractionContext) -> LayerOutput:
        scripts = self._inline_scripts(page)

        for script in scripts:
            for pattern in self._literal_patterns:
                for value in find_literals(script, pattern):
                    found = spec_output(value, f"{page.url} (inline script)")
                    if found.endpoints:
                        return found

        if self._inline_json:
            for script in scripts:
                found = self._inline_json_spec(script, page.url)
                if found.endpoints:
                    return found

        for url in self._declared_urls(page, scripts):
            found = self._fetch_spec(url, ctx)
            if found.endpoints:
                return found

        return LayerOutput.empty()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _inline_scripts(page: DocumentPage) -> list[str]:
        texts = []
        for tag in page.soup().find_all("script"):
            if tag.get("src"):
                continue
            text = tag.string if tag.string is not None else tag.get_text()
            if text and text.strip():
                texts.append(text)
        return texts

    @staticmethod
    def _inline_json_spec(script: str, page_url: str) -> LayerOutput:
        if not any(marker in script for marker in _SPEC_MARKERS) or '"paths"' not in script:
            return LayerOutput.empty()
        source = f"{page_url} (inline JSON)"
        try:
            found = spec_output(json.loads(script), source)
        except json.JSONDecodeError:
            pass
        else:
            if found.endpoints:
                return found

        i = script.find("{")
        while i != -1:
            try:
                block = extract_balanced(script, i)
            except SchemaInvalidError:
                break
            if any(marker in block for marker in _SPEC_MARKERS) and '"paths"' in block:
                try:
                    found = spec_output(parse_object_literal(block), source)
                except SchemaInvalidError:
                    found = LayerOutput.empty()
                if found.endpoints:
                    return found
                # The spec may be nested inside this object.
                i = script.find("{", i + 1)
            else:
                i = script.find("{", i + len(block))
        return LayerOutput.empty()

    def _declared_urls(self, page: DocumentPage, scripts: list[str]) -> list[str]:
        urls: list[str] = []
        soup = page.soup()
        for selector, attribute in self._url_attributes:
            for element in soup.select(selector):
                value = element.get(attribute)
                if isinstance(value, str) and value.strip():
                    urls.append(value.strip())
        for script in scripts:
            for pattern in self._url_patterns:
                urls.extend(m.group(1).strip() for m in pattern.finditer(script))

        resolved: list[str] = []
        for url in urls:
            absolute = self._absolute(page, url)
            if absolute and absolute not in resolved:
                resolved.append(absolute)
        return resolved

    @staticmethod
    def _absolute(page: DocumentPage, url: str) -> Optional[str]:
        """*url* resolved against the page; ``None`` unless it is http(s)."""
        absolute = urljoin(page.url, url)
        return absolute if absolute.startswith(("http://", "https://")) else None

    @staticmethod
    def _fetch_spec(url: str, ctx: ExtractionContext) -> LayerOutput:
        if ctx.fetcher is None:
            return LayerOutput.empty()
        try:
            doc = ctx.fetcher.get(url)
        except FetchError as exc:
            get_output().debug(f"Declared spec URL failed: {exc}")
            return LayerOutput.empty()
        return spec_output(doc.text, doc.url)

