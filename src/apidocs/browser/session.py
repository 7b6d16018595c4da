"""Lifecycle-managed headless browser for rendering documentation pages.

:class:`BrowserSession` owns one Playwright driver and one headless Chromium
process per run:

- **Lazy start** -- nothing is launched until the first :meth:`~BrowserSession.open_page`.
- **Reuse** -- every rendering strategy in the run shares the same browser.
- **Page registry** -- each open page is tracked until it is closed, so
  :meth:`~BrowserSession.stop` can close anything still open.
- **Explicit shutdown** -- the hosting application calls
  :meth:`~BrowserSession.stop` (or uses the session as a context manager)
  when the run ends. No signal handlers are installed here.

Each :meth:`~BrowserSession.open_page` call runs in its own browser context
and is closed when the ``with`` block exits, whether extraction succeeded,
failed, or was interrupted.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Sequence

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, Response
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from apidocs import __version__
from apidocs.browser.page import CapturedResponse, DocumentPage
from apidocs.exceptions import (
    BrowserLaunchError,
    BrowserNotInstalledError,
    ExtractionTimeoutError,
    PageLoadError,
)
from apidocs.models import BrowserConfig
from apidocs.output import get_output

_NOT_INSTALLED_MARKERS = ("Executable doesn't exist", "playwright install")

_DEFINED_GLOBALS_JS = "names => names.filter(n => typeof window[n] !== 'undefined')"


class RenderedPage(DocumentPage):
    """A :class:`DocumentPage` backed by a live Playwright page."""

    def __init__(self, page: Page, pending: list[Response]) -> None:
        self._page = page
        self._pending = pending
        self._captured: Optional[list[CapturedResponse]] = None
        self._html: Optional[str] = None

    @property
    def url(self) -> str:
        return self._page.url

    def content(self) -> str:
        if self._html is None:
            self._html = self._page.content()
        return self._html

    def title(self) -> str:
        try:
            return self._page.title()
        except PlaywrightError:
            return super().title()

    def inner_text(self) -> str:
        try:
            return self._page.inner_text("body")
        except PlaywrightError:
            return super().inner_text()

    def evaluate(self, expression: str, arg: Any = None) -> Any:
        try:
            return self._page.evaluate(expression, arg)
        except PlaywrightError as exc:
            get_output().debug(f"In-page evaluation failed on {self.url}: {exc}")
            return None

    def defined_globals(self, names: Sequence[str]) -> set[str]:
        found = self.evaluate(_DEFINED_GLOBALS_JS, list(names))
        return set(found or [])

    def captured_responses(self) -> list[CapturedResponse]:
        if self._captured is None:
            self._captured = []
            for response in self._pending:
                try:
                    text = response.text()
                except PlaywrightError as exc:
                    # Redirects and evicted bodies have nothing to read.
                    get_output().debug(f"No body for captured {response.url}: {exc}")
                    continue
                self._captured.append(
                    CapturedResponse(
                        url=response.url,
                        status=response.status,
                        content_type=(response.headers.get("content-type") or "").lower(),
                        text=text,
                    )
                )
        return self._captured


class BrowserSession:
    """Owns the Playwright driver, the Chromium process, and every open page.

    Args:
        config: Headless mode, timeouts, viewport and launch switches.

    Example::

        session = BrowserSession(BrowserConfig())
        try:
            with session.open_page("https://petstore.swagger.io") as page:
                print(page.title())
        finally:
            session.stop()
    """

    def __init__(self, config: Optional[BrowserConfig] = None) -> None:
        self._config = config or BrowserConfig()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._contexts: set[BrowserContext] = set()

    @property
    def is_running(self) -> bool:
        """Whether the browser process has been launched and not stopped."""
        return self._browser is not None

    @property
    def open_page_count(self) -> int:
        """Number of pages currently tracked in the registry."""
        return len(self._contexts)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def __enter__(self) -> BrowserSession:
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()

    def start(self) -> Browser:
        """Launch the browser if it is not already running.

        Raises:
            BrowserNotInstalledError: Chromium has not been downloaded.
            BrowserLaunchError: The driver or browser failed to start.
        """
        if self._browser is not None:
            return self._browser

        output = get_output()
        output.debug("Launching headless Chromium")
        try:
            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(
                headless=self._config.headless,
                args=list(self._config.args),
            )
        except PlaywrightError as exc:
            self._stop_driver()
            message = str(exc)
            if any(marker in message for marker in _NOT_INSTALLED_MARKERS):
                raise BrowserNotInstalledError(message.splitlines()[0]) from exc
            raise BrowserLaunchError(f"Failed to launch headless browser: {message}") from exc
        return self._browser

    def stop(self) -> None:
        """Close every tracked page, then the browser, then the driver.

        Safe to call more than once and when the browser never started.
        """
        output = get_output()
        for context in list(self._contexts):
            self._close_context(context)
        if self._browser is not None:
            try:
                self._browser.close()
            except PlaywrightError as exc:
                output.debug(f"Error closing browser: {exc}")
            self._browser = None
            output.debug("Headless browser closed")
        self._stop_driver()

    def _stop_driver(self) -> None:
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except PlaywrightError as exc:
                get_output().debug(f"Error stopping Playwright: {exc}")
            self._playwright = None

    def _close_context(self, context: BrowserContext) -> None:
        self._contexts.discard(context)
        try:
            context.close()
        except PlaywrightError as exc:
            get_output().debug(f"Error closing page: {exc}")

    # ------------------------------------------------------------------ #
    # Pages
    # ------------------------------------------------------------------ #

    @contextmanager
    def open_page(
        self,
        url: str,
        capture: Optional[re.Pattern[str]] = None,
    ) -> Iterator[RenderedPage]:
        """Render *url* and yield it as a :class:`RenderedPage`.

        Args:
            url: Page to load.
            capture: Record responses whose URL matches this pattern; their
                bodies are available from
                :meth:`RenderedPage.captured_responses`.

        Raises:
            ExtractionTimeoutError: Navigation exceeded the configured timeout.
            PageLoadError: Navigation failed (DNS, TLS, HTTP error page).
            BrowserError: The browser could not be started.
        """
        browser = self.start()
        cfg = self._config
        context = browser.new_context(
            viewport={"width": cfg.viewport_width, "height": cfg.viewport_height},
            user_agent=f"Mozilla/5.0 (compatible; apidocs/{__version__})",
        )
        self._contexts.add(context)
        try:
            page = context.new_page()
            page.set_default_timeout(cfg.timeout_ms)

            pending: list[Response] = []
            if capture is not None:

                def _on_response(response: Response) -> None:
                    if capture.search(response.url):
                        pending.append(response)

                page.on("response", _on_response)

            self._navigate(page, url)
            yield RenderedPage(page, pending)
        finally:
            self._close_context(context)

    def _navigate(self, page: Page, url: str) -> None:
        cfg = self._config
        output = get_output()
        output.debug(f"Rendering {url}")
        try:
            response = page.goto(url, wait_until="domcontentloaded", timeout=cfg.timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise ExtractionTimeoutError(
                f"Timed out after {cfg.timeout_ms}ms loading {url}", url=url
            ) from exc
        except PlaywrightError as exc:
            raise PageLoadError(f"Failed to load {url}: {exc}", url=url) from exc

        if response is not None and response.status >= 400:
            raise PageLoadError(
                f"HTTP {response.status} loading {url}", url=url, status_code=response.status
            )

        try:
            page.wait_for_load_state("networkidle", timeout=cfg.timeout_ms)
        except PlaywrightTimeoutError:
            # Long-polling pages never go idle; work with what has rendered.
            output.debug(f"{url} did not reach network idle; continuing")
        if cfg.settle_ms > 0:
            page.wait_for_timeout(cfg.settle_ms)
