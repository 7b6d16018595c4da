"""Tests for DOM-heuristic extraction."""

from __future__ import annotations

import re

import pytest

from apidocs.extractors import ExtractionContext
from apidocs.extractors.dom import DomLayer, GenericDomLayer, OperationSelectors, endpoints_from_text


@pytest.fixture(autouse=True)
def _quiet(quiet_output) -> None:
    """Silence diagnostics for every test in this module."""


OPS = OperationSelectors(
    block=".op",
    method=".verb",
    path=".path",
    description=".summary",
    tag_section=".group",
    tag=".group-name",
)


def _pairs(output) -> list[tuple[str, str]]:
    return [(e.method.value, e.path) for e in output.endpoints]


class TestEndpointsFromText:
    def test_matches(self) -> None:
        pattern = re.compile(r"(GET|POST)\s+(/\S+)")
        found = endpoints_from_text("Call GET /users, then POST /users/{id}.", pattern)
        assert [(e.method.value, e.path) for e in found] == [("GET", "/users"), ("POST", "/users/{id}")]


class TestDomLayer:
    def test_blocks_with_tags(self, make_page) -> None:
        html = """
        <div class="group"><h3 class="group-name" data-tag="pets"><a>Pets</a></h3>
          <div class="op"><span class="verb">get</span><span class="path">/pets</span>
            <div class="summary">List pets</div></div>
          <div class="op"><span class="verb">DELETE</span><span class="path">/pets/{id}</span></div>
        </div>
        <div class="group"><h3 class="group-name"><span>Store</span></h3>
          <div class="op"><span class="verb">GET</span><span class="path">/store/inventory</span></div>
        </div>
        <div class="op"><span class="verb">POST</span><span class="path">/untagged</span></div>
        """
        found = DomLayer(OPS).extract(make_page(html), ExtractionContext())
        assert [(e.method.value, e.path, e.tags) for e in found.endpoints] == [
            ("GET", "/pets", ["pets"]),
            ("DELETE", "/pets/{id}", ["pets"]),
            ("GET", "/store/inventory", ["Store"]),
            ("POST", "/untagged", []),
        ]
        assert found.endpoints[0].description == "List pets"

    def test_zero_width_spaces_removed(self, make_page) -> None:
        html = '<div class="op"><span class="verb">GET</span><span class="path">/pets/\u200b{petId}</span></div>'
        assert _pairs(DomLayer(OPS).extract(make_page(html), ExtractionContext())) == [("GET", "/pets/{petId}")]

    def test_first_path_like_element(self, make_page) -> None:
        ops = OperationSelectors(block=".op", method=".verb", path="code", description="p")
        html = '<div class="op"><span class="verb">PUT</span><code>curl</code><code>/items/1</code></div>'
        assert _pairs(DomLayer(ops).extract(make_page(html), ExtractionContext())) == [("PUT", "/items/1")]

    def test_invalid_blocks_skipped(self, make_page) -> None:
        html = (
            '<div class="op"><span class="verb">FETCH</span><span class="path">/a</span></div>'
            '<div class="op"><span class="verb">GET</span><span class="path">users</span></div>'
        )
        assert DomLayer(OPS).extract(make_page(html), ExtractionContext()).endpoints == []

    def test_nav_fallback(self, make_page) -> None:
        html = '<nav class="menu-content"><a>get /pets</a><a>Introduction</a><a>POST /pets</a><a>GET pets</a></nav>'
        layer = DomLayer(
            OPS,
            nav_selector='[class*="menu-content"] a',
            nav_pattern=re.compile(r"^(GET|POST)\s+(.+)", re.IGNORECASE),
        )
        assert _pairs(layer.extract(make_page(html), ExtractionContext())) == [("GET", "/pets"), ("POST", "/pets")]

    def test_blocks_preferred_over_nav(self, make_page) -> None:
        html = (
            '<nav class="menu-content"><a>POST /from-nav</a></nav>'
            '<div class="op"><span class="verb">GET</span><span class="path">/from-block</span></div>'
        )
        layer = DomLayer(OPS, nav_selector="nav a", nav_pattern=re.compile(r"^(GET|POST)\s+(.+)"))
        assert _pairs(layer.extract(make_page(html), ExtractionContext())) == [("GET", "/from-block")]

    def test_text_fallback(self, make_page) -> None:
        html = "<body><p>Use GET /v1/charges to list charges.</p></body>"
        layer = DomLayer(OPS, text_pattern=re.compile(r"(GET|POST)\s+(/[^\s]+)"))
        assert _pairs(layer.extract(make_page(html), ExtractionContext())) == [("GET", "/v1/charges")]

    def test_nothing(self, make_page) -> None:
        assert DomLayer(OPS).extract(make_page("<p>Hello</p>"), ExtractionContext()).endpoints == []


class TestGenericDomLayer:
    def test_code_blocks(self, make_page) -> None:
        html = "<pre>GET /v1/customers\nPOST /v1/customers\n</pre><div class='highlight'>DELETE /v1/customers/{id}</div>"
        found = GenericDomLayer().extract(make_page(html), ExtractionContext())
        assert _pairs(found) == [("GET", "/v1/customers"), ("POST", "/v1/customers"), ("DELETE", "/v1/customers/{id}")]

    def test_code_block_quotes_end_path(self, make_page) -> None:
        html = "<code>fetch('GET /api/users')</code>"
        assert _pairs(GenericDomLayer().extract(make_page(html), ExtractionContext())) == [("GET", "/api/users")]

    def test_table_rows(self, make_page) -> None:
        html = """<table>
          <tr><th>Method</th><th>Endpoint</th><th>Description</th></tr>
          <tr><td>GET</td><td>/orders</td><td>List orders</td></tr>
          <tr><td>1</td><td>post</td><td>/orders</td><td>Create an order</td></tr>
          <tr><td>PATCH</td><td>no path here</td></tr>
        </table>"""
        found = GenericDomLayer().extract(make_page(html), ExtractionContext())
        assert [(e.method.value, e.path, e.description) for e in found.endpoints] == [
            ("GET", "/orders", "List orders"),
            ("POST", "/orders", "Create an order"),
        ]

    def test_body_text_only_when_nothing_else(self, make_page) -> None:
        html = "<body><p>Send PATCH /accounts/{id} with the new fields. Use GET to read.</p></body>"
        assert _pairs(GenericDomLayer().extract(make_page(html), ExtractionContext())) == [("PATCH", "/accounts/{id}")]

    def test_body_text_skipped_when_code_found(self, make_page) -> None:
        html = "<body><p>PUT /from-text</p><pre>GET /from-code</pre></body>"
        assert _pairs(GenericDomLayer().extract(make_page(html), ExtractionContext())) == [("GET", "/from-code")]

    def test_trailing_punctuation(self, make_page) -> None:
        html = "<body><p>Call DELETE /sessions/current.</p></body>"
        assert _pairs(GenericDomLayer().extract(make_page(html), ExtractionContext())) == [("DELETE", "/sessions/current")]
