"""Spec parsing -- decode, validate, and normalize API specifications.

This sub-package turns raw text (a fetched response body, a captured
network payload, or an inline script literal) into validated
:class:`~apidocs.models.SpecDocument` objects and normalized endpoints.

Typical usage::

    from apidocs.parser import parse_spec_content, validate_spec, extract_endpoints

    raw, fmt = parse_spec_content(body, url)
    spec = validate_spec(raw, url, fmt)
    endpoints = extract_endpoints(spec.raw)

Sub-modules:

* :mod:`~apidocs.parser.loader` -- JSON/YAML parsing policy and URL helpers.
* :mod:`~apidocs.parser.validator` -- OpenAPI 3.x / Swagger 2.0 shape check.
* :mod:`~apidocs.parser.extractor` -- ``paths`` walk into
  :class:`~apidocs.models.NormalizedEndpoint` objects.
* :mod:`~apidocs.parser.literal` -- safe parser for JavaScript object
  literals found in page scripts.
"""

from apidocs.parser.extractor import (
    extract_api_info,
    extract_base_url,
    extract_endpoints,
    result_from_spec,
)
from apidocs.parser.literal import extract_balanced, find_literals, parse_object_literal
from apidocs.parser.loader import (
    is_url,
    looks_like_spec_url,
    normalize_url,
    origin_of,
    parse_spec_content,
)
from apidocs.parser.validator import is_valid_spec, validate_spec

__all__ = [
    "extract_api_info",
    "extract_balanced",
    "extract_base_url",
    "extract_endpoints",
    "find_literals",
    "is_url",
    "is_valid_spec",
    "looks_like_spec_url",
    "normalize_url",
    "origin_of",
    "parse_object_literal",
    "parse_spec_content",
    "result_from_spec",
    "validate_spec",
]
