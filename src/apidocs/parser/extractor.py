"""Turn a validated OpenAPI/Swagger document into normalized endpoints.

This module walks the ``paths`` object of a spec dictionary and emits one
:class:`~apidocs.models.NormalizedEndpoint` per path + HTTP method pair.
The same walk serves OpenAPI 3.x and Swagger 2.0 since both share the
path-item layout.

Public helpers:

* :func:`extract_endpoints` -- the ``paths`` walk.
* :func:`extract_api_info` -- title, version and description from ``info``.
* :func:`extract_base_url` -- ``servers[0].url`` for OpenAPI, or
  ``scheme://host + basePath`` for Swagger.
* :func:`result_from_spec` -- build an :class:`~apidocs.models.ExtractionResult`
  from a :class:`~apidocs.models.SpecDocument`.

``$ref`` pointers are not resolved; only the operation object's own
``summary``, ``description``, ``tags`` and ``operationId`` are read.
"""

from __future__ import annotations

from typing import Any, Optional

from apidocs.models import (
    APIInfo,
    ExtractionResult,
    HTTPMethod,
    NormalizedEndpoint,
    SpecDocument,
)

# Path-item keys that hold operations, in output order.
_HTTP_METHODS = tuple(m.value.lower() for m in HTTPMethod)


def extract_endpoints(spec: dict[str, Any]) -> list[NormalizedEndpoint]:
    """Extract every operation in ``spec["paths"]``.

    Args:
        spec: A validated spec dictionary.

    Returns:
        Endpoints in document order (paths), then method order
        (GET, POST, PUT, PATCH, DELETE, HEAD, OPTIONS, TRACE).

    Example::

        for ep in extract_endpoints(raw):
            print(ep.method.value, ep.path, ep.description)
    """
    paths = spec.get("paths")
    if not isinstance(paths, dict):
        return []

    endpoints: list[NormalizedEndpoint] = []
    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        for method in _HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue
            endpoints.append(_endpoint_from_operation(str(path), method, operation))
    return endpoints


def _endpoint_from_operation(
    path: str, method: str, operation: dict[str, Any]
) -> NormalizedEndpoint:
    """Build one endpoint; the summary is preferred over the longer description."""
    description = operation.get("summary") or operation.get("description") or ""
    tags = operation.get("tags") or []
    operation_id = operation.get("operationId")
    return NormalizedEndpoint(
        method=HTTPMethod(method.upper()),
        path=path,
        description=str(description).strip(),
        tags=[str(t) for t in tags] if isinstance(tags, list) else [],
        operation_id=str(operation_id) if operation_id else None,
    )


def extract_api_info(spec: dict[str, Any]) -> APIInfo:
    """Extract title, version and description from the spec's ``info`` object."""
    info = spec.get("info")
    if not isinstance(info, dict):
        return APIInfo()
    return APIInfo(
        title=str(info.get("title") or "Unknown API"),
        version=str(info.get("version") or "unknown"),
        description=str(info.get("description") or ""),
    )


def extract_base_url(spec: dict[str, Any]) -> Optional[str]:
    """Return the API's base URL, or ``None`` if the spec declares none.

    OpenAPI 3.x: the first entry of ``servers``.
    Swagger 2.0: ``schemes[0]`` (default ``https``) + ``host`` + ``basePath``.
    """
    servers = spec.get("servers")
    if isinstance(servers, list) and servers:
        first = servers[0]
        if isinstance(first, dict) and first.get("url"):
            return str(first["url"])

    host = spec.get("host")
    if host:
        schemes = spec.get("schemes")
        scheme = schemes[0] if isinstance(schemes, list) and schemes else "https"
        return f"{scheme}://{host}{spec.get('basePath') or ''}"
    return None


def result_from_spec(
    spec: SpecDocument,
    source_url: str,
    strategy: Optional[str] = None,
) -> ExtractionResult:
    """Wrap a validated spec document as an :class:`ExtractionResult`.

    Args:
        spec: The validated document.
        source_url: Where the document was found.
        strategy: Name of the strategy that found it.
    """
    return ExtractionResult(
        framework="openapi",
        api_info=extract_api_info(spec.raw),
        endpoints=extract_endpoints(spec.raw),
        source_url=source_url,
        spec=spec,
        strategy=strategy,
    )
