"""HTTP client module for apidocs.

Provides :class:`HttpFetcher`, a blocking wrapper around :mod:`httpx` with
per-request timeouts and error mapping onto the apidocs exception
hierarchy. Rendered pages go through :mod:`apidocs.browser` instead.

Example::

    from apidocs.client import HttpFetcher

    with HttpFetcher() as fetcher:
        doc = fetcher.get("https://api.example.com/openapi.json")
"""

from apidocs.client.fetcher import FetchedDocument, HttpFetcher

__all__ = ["FetchedDocument", "HttpFetcher"]
