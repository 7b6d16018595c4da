"""Layer (d): read endpoints straight off the rendered markup.

This is the lowest-fidelity layer: it only ever recovers method, path, a
one-line description and (for Swagger UI) the tag. It runs when a page
exposes no spec document at all.
"""

from __future__ import annotations

import re
from typing import Iterable, NamedTuple, Optional

from bs4 import Tag

from apidocs.browser.page import DocumentPage
from apidocs.extractors.base import ExtractionContext, ExtractionLayer, LayerOutput
from apidocs.models import HTTPMethod, NormalizedEndpoint

_METHODS = frozenset(m.value for m in HTTPMethod)
_TRAILING_PUNCT = ".,;:)"


class OperationSelectors(NamedTuple):
    """CSS selectors locating one rendered operation and its parts.

    ``tag_section``/``tag`` are optional: when set, every block inside a
    ``tag_section`` element is tagged with the text of its ``tag`` element.
    """

    block: str
    method: str
    path: str
    description: str
    tag_section: Optional[str] = None
    tag: Optional[str] = None


def _text(element: Optional[Tag]) -> str:
    if element is None:
        return ""
    return element.get_text(" ", strip=True).replace("\u200b", "").strip()


def _method(text: str) -> Optional[HTTPMethod]:
    token = text.strip().upper()
    return HTTPMethod(token) if token in _METHODS else None


def _clean_path(text: str) -> str:
    return text.replace("\u200b", "").strip().rstrip(_TRAILING_PUNCT)


def _endpoint(
    method: str,
    path: str,
    description: str = "",
    tags: Iterable[str] = (),
) -> Optional[NormalizedEndpoint]:
    verb = _method(method)
    path = _clean_path(path)
    if verb is None or not path.startswith("/"):
        return None
    return NormalizedEndpoint(method=verb, path=path, description=description, tags=list(tags))


def endpoints_from_text(text: str, pattern: re.Pattern[str]) -> list[NormalizedEndpoint]:
    """Endpoints for every ``(method, path)`` match of *pattern* in *text*."""
    found = []
    for match in pattern.finditer(text):
        endpoint = _endpoint(match.group(1), match.group(2))
        if endpoint is not None:
            found.append(endpoint)
    return found


class DomLayer(ExtractionLayer):
    """Framework-specific DOM scraping with navigation and body-text fallbacks.

    The three sources are tried in order and the first to yield anything
    wins: rendered operation blocks, navigation links whose text reads
    ``METHOD /path``, then ``METHOD /path`` occurrences in the body text.

    Args:
        operations: Selectors for rendered operation blocks.
        nav_selector: CSS selector for navigation links.
        nav_pattern: Regex (method, path groups) applied to link text.
        text_pattern: Regex (method, path groups) applied to the body text.
    """

    def __init__(
        self,
        operations: OperationSelectors,
        nav_selector: Optional[str] = None,
        nav_pattern: Optional[re.Pattern[str]] = None,
        text_pattern: Optional[re.Pattern[str]] = None,
    ) -> None:
        self._ops = operations
        self._nav_selector = nav_selector
        self._nav_pattern = nav_pattern
        self._text_pattern = text_pattern

    @property
    def name(self) -> str:
        return "dom"

    def extract(self, page: DocumentPage, ctx: ExtractionContext) -> LayerOutput:
        endpoints = self._from_blocks(page)
        if not endpoints and self._nav_selector and self._nav_pattern:
            endpoints = self._from_nav(page, self._nav_selector, self._nav_pattern)
        if not endpoints and self._text_pattern:
            endpoints = endpoints_from_text(page.inner_text(), self._text_pattern)
        return LayerOutput(endpoints)

    def _from_blocks(self, page: DocumentPage) -> list[NormalizedEndpoint]:
        ops = self._ops
        soup = page.soup()

        tag_of: dict[int, str] = {}
        if ops.tag_section and ops.tag:
            for section in soup.select(ops.tag_section):
                tag_el = section.select_one(ops.tag)
                if tag_el is None:
                    continue
                name = tag_el.get("data-tag") or _text(tag_el.find(["a", "span"]) or tag_el)
                for block in section.select(ops.block):
                    tag_of[id(block)] = str(name)

        endpoints: list[NormalizedEndpoint] = []
        for block in soup.select(ops.block):
            method = _text(block.select_one(ops.method))
            path = next(
                (_text(el) for el in block.select(ops.path) if _text(el).startswith("/")),
                "",
            )
            tag = tag_of.get(id(block))
            endpoint = _endpoint(
                method,
                path,
                _text(block.select_one(ops.description)),
                [tag] if tag else [],
            )
            if endpoint is not None:
                endpoints.append(endpoint)
        return endpoints

    def _from_nav(
        self, page: DocumentPage, selector: str, pattern: re.Pattern[str]
    ) -> list[NormalizedEndpoint]:
        endpoints = []
        for link in page.soup().select(selector):
            match = pattern.match(_text(link))
            if match:
                endpoint = _endpoint(match.group(1), match.group(2))
                if endpoint is not None:
                    endpoints.append(endpoint)
        return endpoints


# ------------------------------------------------------------------ #
# Generic pages
# ------------------------------------------------------------------ #

_CODE_BLOCK_RE = re.compile(r"(GET|POST|PUT|DELETE|PATCH|OPTIONS|HEAD)\s+(/[^\s'\"]+)")
_BODY_TEXT_RE = re.compile(r"(GET|POST|PUT|DELETE|PATCH)\s+(/[a-zA-Z0-9_\-/{}\[\]]+)")


class GenericDomLayer(ExtractionLayer):
    """Heuristics for hand-written documentation pages.

    Code blocks and tables are both scanned; the body text is only read
    when neither produced anything.
    """

    @property
    def name(self) -> str:
        return "dom"

    def extract(self, page: DocumentPage, ctx: ExtractionContext) -> LayerOutput:
        soup = page.soup()
        endpoints: list[NormalizedEndpoint] = []

        for block in soup.select("pre, code, .highlight"):
            endpoints.extend(endpoints_from_text(block.get_text(" "), _CODE_BLOCK_RE))

        for row in soup.select("tr"):
            endpoint = self._from_row(row)
            if endpoint is not None:
                endpoints.append(endpoint)

        if not endpoints:
            endpoints = endpoints_from_text(page.inner_text(), _BODY_TEXT_RE)
        return LayerOutput(endpoints)

    @staticmethod
    def _from_row(row: Tag) -> Optional[NormalizedEndpoint]:
        """A table row with a method cell among its first three cells and a
        path in a later cell; the cell after the path is the description."""
        cells = [_text(cell) for cell in row.find_all(["td", "th"])]
        for i, cell in enumerate(cells[:3]):
            if _method(cell) is None:
                continue
            for j in range(i + 1, len(cells)):
                if cells[j].startswith("/"):
                    description = cells[j + 1] if j + 1 < len(cells) else ""
                    return _endpoint(cell, cells[j], description)
            return None
        return None
