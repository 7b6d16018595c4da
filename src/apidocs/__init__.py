"""apidocs -- Turn a provider name or docs URL into a normalized endpoint list.

This package resolves a human-supplied identifier (``stripe``, or
``https://petstore.swagger.io``) into the HTTP endpoints the API exposes,
whether the source publishes a machine-readable OpenAPI/Swagger document or
only a rendered documentation page.

Typical workflow::

    api-docs endpoints stripe          # discover, acquire, print
    api-docs endpoints https://api.example.com/openapi.json
    api-docs cache list

Modules:
    app: Typer application and CLI entry point.
    pipeline: Multi-strategy spec acquisition.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.3.0"
