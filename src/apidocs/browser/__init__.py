"""Headless browser rendering for JavaScript-driven documentation pages.

* :class:`BrowserSession` -- lazily started, explicitly stopped owner of the
  Playwright driver and Chromium process.
* :class:`DocumentPage` -- the read-only page interface detection and
  extraction code works against.
* :class:`RenderedPage` -- :class:`DocumentPage` over a live Playwright page.
"""

from apidocs.browser.page import CapturedResponse, DocumentPage
from apidocs.browser.session import BrowserSession, RenderedPage

__all__ = ["BrowserSession", "CapturedResponse", "DocumentPage", "RenderedPage"]
