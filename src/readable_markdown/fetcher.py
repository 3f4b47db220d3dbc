"""
fetcher.py: Turn a URL into a rendered HTML snapshot.

Two fetchers share one interface:
- BrowserPageFetcher renders the page in headless Chromium (Playwright) and
  waits for dynamic content before taking the snapshot.
- HttpPageFetcher does a single plain HTTP GET with requests, for static pages.

Both are context managers; leaving the block releases the browser or session
whether or not the conversion succeeded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import requests
from playwright.sync_api import Browser, Playwright, sync_playwright
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from readable_markdown.config import DEFAULT_TIMEOUT_MS, BrowserConfig, ReadinessConfig
from readable_markdown.errors import NavigationError
from readable_markdown.readiness import wait_for_content


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class RenderedDocument:
    """The final HTML of a page and the URL it ended up at after redirects."""

    html: str
    final_url: str


class PageFetcher(Protocol):
    def fetch_rendered_html(
        self, url: str, timeout_ms: int = DEFAULT_TIMEOUT_MS, disable_scripts: bool = False
    ) -> RenderedDocument: ...

    def close(self) -> None: ...

    def __enter__(self) -> "PageFetcher": ...

    def __exit__(self, *exc_info: Any) -> None: ...


class BrowserPageFetcher:
    """
    Owns one Chromium instance for the lifetime of the fetcher.

    The browser is launched on the first fetch and shut down by close().
    """

    def __init__(
        self,
        config: Optional[BrowserConfig] = None,
        readiness: Optional[ReadinessConfig] = None,
    ) -> None:
        self.config = config or BrowserConfig()
        self.readiness = readiness or ReadinessConfig()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    def __enter__(self) -> "BrowserPageFetcher":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _ensure_browser(self) -> Browser:
        if self._browser is None:
            self._playwright = sync_playwright().start()
            try:
                self._browser = self._playwright.chromium.launch(
                    headless=self.config.headless,
                    args=self.config.launch_args,
                )
            except PlaywrightError as e:
                self.close()
                raise NavigationError(f"Could not launch browser: {e}") from e
        return self._browser

    def fetch_rendered_html(
        self, url: str, timeout_ms: int = DEFAULT_TIMEOUT_MS, disable_scripts: bool = False
    ) -> RenderedDocument:
        """
        Navigate to url and return the HTML once the page looks settled.

        Args:
            url: Page to load.
            timeout_ms: Upper bound for navigation.
            disable_scripts: Load the page with JavaScript off and skip the
                dynamic-content wait.

        Raises:
            NavigationError: On navigation timeout or network failure.
        """
        browser = self._ensure_browser()
        try:
            context = browser.new_context(
                viewport={"width": self.config.viewport_width, "height": self.config.viewport_height},
                user_agent=self.config.user_agent,
                java_script_enabled=not disable_scripts,
            )
        except PlaywrightError as e:
            raise NavigationError(f"Could not open a browser context: {e}", {"url": url}) from e
        try:
            try:
                page = context.new_page()
            except PlaywrightError as e:
                raise NavigationError(f"Could not open a page for {url}: {e}", {"url": url}) from e
            if disable_scripts:
                logger.info("JavaScript execution disabled for static content")

            logger.info("Loading: %s", url)
            try:
                page.goto(url, wait_until=self.config.wait_until, timeout=timeout_ms)
            except PlaywrightTimeoutError as e:
                raise NavigationError(
                    f"Timed out after {timeout_ms} ms loading {url}",
                    {"url": url, "timeout_ms": timeout_ms},
                ) from e
            except PlaywrightError as e:
                raise NavigationError(f"Could not load {url}: {e}", {"url": url}) from e

            if not disable_scripts:
                logger.info("Waiting for dynamic content...")
                wait_for_content(page, self.readiness)

            try:
                return RenderedDocument(html=page.content(), final_url=page.url)
            except PlaywrightError as e:
                raise NavigationError(f"Could not read page content from {url}: {e}", {"url": url}) from e
        finally:
            context.close()

    def close(self) -> None:
        """Close the browser and stop Playwright. Safe to call more than once."""
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None
        try:
            if browser is not None:
                browser.close()
        finally:
            if playwright is not None:
                playwright.stop()


class HttpPageFetcher:
    """
    Fetch the server-rendered HTML without a browser. Scripts never run.
    """

    def __init__(self, config: Optional[BrowserConfig] = None) -> None:
        self.config = config or BrowserConfig()
        self._session: Optional[requests.Session] = None

    def __enter__(self) -> "HttpPageFetcher":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _ensure_session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update({"User-Agent": self.config.user_agent})
        return self._session

    def fetch_rendered_html(
        self, url: str, timeout_ms: int = DEFAULT_TIMEOUT_MS, disable_scripts: bool = True
    ) -> RenderedDocument:
        session = self._ensure_session()
        logger.info("Loading: %s", url)
        try:
            response = session.get(url, timeout=timeout_ms / 1000)
            # Raise an exception for bad status codes (4xx or 5xx)
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise NavigationError(
                f"Timed out after {timeout_ms} ms loading {url}",
                {"url": url, "timeout_ms": timeout_ms},
            ) from e
        except requests.exceptions.RequestException as e:
            raise NavigationError(f"Could not fetch {url}: {e}", {"url": url}) from e
        return RenderedDocument(html=response.text, final_url=response.url or url)

    def close(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            session.close()
