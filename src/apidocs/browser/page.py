"""Read-only view of a rendered documentation page.

Detection and extraction code never talks to the browser driver directly;
it receives a :class:`DocumentPage`. :class:`~apidocs.browser.session.RenderedPage`
implements it on top of a live Playwright page, and tests implement it from
static HTML.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from bs4 import BeautifulSoup


class CapturedResponse:
    """A network response recorded while a page loaded.

    Attributes:
        url: The response URL.
        status: HTTP status code.
        content_type: Lower-cased ``Content-Type`` header.
        text: Decoded body.
    """

    __slots__ = ("url", "status", "content_type", "text")

    def __init__(self, url: str, status: int, content_type: str, text: str) -> None:
        self.url = url
        self.status = status
        self.content_type = content_type
        self.text = text

    def __repr__(self) -> str:
        return f"CapturedResponse({self.url!r}, {self.status}, {self.content_type!r})"


class DocumentPage(ABC):
    """A documentation page after client-side rendering has settled."""

    _soup: Optional[BeautifulSoup] = None

    @property
    @abstractmethod
    def url(self) -> str:
        """The page URL after redirects."""

    @abstractmethod
    def content(self) -> str:
        """Serialized DOM (``document.documentElement.outerHTML``)."""

    @abstractmethod
    def evaluate(self, expression: str, arg: Any = None) -> Any:
        """Run a JavaScript function expression in the page and return its result.

        Implementations return ``None`` when the expression throws.
        """

    @abstractmethod
    def defined_globals(self, names: Sequence[str]) -> set[str]:
        """Return the subset of *names* defined on ``window``."""

    @abstractmethod
    def captured_responses(self) -> list[CapturedResponse]:
        """Responses recorded during load whose URL matched the capture patterns."""

    def title(self) -> str:
        """The document title."""
        tag = self.soup().title
        return tag.get_text(strip=True) if tag else ""

    def inner_text(self) -> str:
        """Visible text of ``<body>``."""
        body = self.soup().body or self.soup()
        return body.get_text("\n")

    def soup(self) -> BeautifulSoup:
        """Parsed DOM snapshot, built once per page."""
        if self._soup is None:
            self._soup = BeautifulSoup(self.content(), "html.parser")
        return self._soup
