"""Minimal structural validation of OpenAPI 3.x and Swagger 2.0 documents.

A parsed mapping qualifies as a spec when it is either:

* **OpenAPI 3.x** -- an ``openapi`` version starting with ``3.``, an
  ``info`` object, and at least one of ``paths``, ``webhooks`` or
  ``components``; or
* **Swagger 2.0** -- ``swagger: "2.0"`` with ``info`` and ``paths``.

Nothing else about the document is checked: schemas, ``$ref`` targets and
operation shapes are taken as-is.
"""

from __future__ import annotations

from typing import Any

from apidocs.exceptions import SchemaInvalidError
from apidocs.models import SpecDocument
from apidocs.parser.extractor import extract_base_url

_OPENAPI_BODY_KEYS = ("paths", "webhooks", "components")


def _version_string(value: Any) -> str | None:
    # YAML reads ``swagger: 2.0`` as a float.
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def validate_spec(
    document: Any,
    source: str = "",
    original_format: str = "json",
) -> SpecDocument:
    """Validate *document* and wrap it as a :class:`~apidocs.models.SpecDocument`.

    Args:
        document: A parsed JSON/YAML value.
        source: Where the document came from (for error messages).
        original_format: ``json`` or ``yaml``.

    Returns:
        The validated document with type, version, title and base URL
        filled in.

    Raises:
        SchemaInvalidError: If the document matches neither the OpenAPI 3.x
            nor the Swagger 2.0 shape.
    """
    where = f" at {source}" if source else ""
    if not isinstance(document, dict):
        raise SchemaInvalidError(f"Spec{where} is not an object")

    openapi = _version_string(document.get("openapi"))
    swagger = _version_string(document.get("swagger"))

    if openapi is not None and openapi.startswith("3."):
        if not isinstance(document.get("info"), dict):
            raise SchemaInvalidError(f"OpenAPI document{where} is missing 'info'")
        if all(document.get(key) is None for key in _OPENAPI_BODY_KEYS):
            raise SchemaInvalidError(
                f"OpenAPI document{where} has none of 'paths', 'webhooks', 'components'"
            )
        spec_type, spec_version = "openapi", openapi

    elif swagger == "2.0":
        if not isinstance(document.get("info"), dict):
            raise SchemaInvalidError(f"Swagger document{where} is missing 'info'")
        if document.get("paths") is None:
            raise SchemaInvalidError(f"Swagger document{where} is missing 'paths'")
        spec_type, spec_version = "swagger", swagger

    else:
        declared = openapi or swagger
        detail = f" (declares version {declared})" if declared else ""
        raise SchemaInvalidError(
            f"Not an OpenAPI 3.x or Swagger 2.0 document{where}{detail}"
        )

    info = document["info"]
    return SpecDocument(
        raw=document,
        spec_type=spec_type,
        spec_version=spec_version,
        title=str(info.get("title") or "Unknown API"),
        api_version=str(info.get("version") or "unknown"),
        base_url=extract_base_url(document),
        original_format=original_format,
    )


def is_valid_spec(document: Any) -> bool:
    """Return True if :func:`validate_spec` would accept *document*."""
    try:
        validate_spec(document)
    except SchemaInvalidError:
        return False
    return True
