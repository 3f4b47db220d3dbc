"""Tests for the page fetchers.

Mocking strategy:
- ``sync_playwright`` is replaced with a MagicMock chain so no Chromium is
  launched; the readiness wait is patched out and asserted on.
- ``requests.Session`` is replaced with a MagicMock so no network calls are made.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import requests
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from readable_markdown.config import USER_AGENT, BrowserConfig
from readable_markdown.errors import NavigationError
from readable_markdown.fetcher import BrowserPageFetcher, HttpPageFetcher, RenderedDocument


_HTML = "<html><body><article><h1>Hi</h1></article></body></html>"


@pytest.fixture
def pw(monkeypatch: pytest.MonkeyPatch) -> SimpleNamespace:
    playwright = MagicMock()
    starter = MagicMock()
    starter.start.return_value = playwright
    monkeypatch.setattr("readable_markdown.fetcher.sync_playwright", lambda: starter)

    wait = MagicMock(return_value="article")
    monkeypatch.setattr("readable_markdown.fetcher.wait_for_content", wait)

    browser = playwright.chromium.launch.return_value
    context = browser.new_context.return_value
    page = context.new_page.return_value
    page.content.return_value = _HTML
    page.url = "https://example.com/final"
    return SimpleNamespace(
        playwright=playwright, browser=browser, context=context, page=page, wait=wait
    )


class TestBrowserPageFetcher:
    def test_fetch_returns_rendered_document(self, pw: SimpleNamespace) -> None:
        with BrowserPageFetcher() as fetcher:
            doc = fetcher.fetch_rendered_html("https://example.com/start")

        assert doc == RenderedDocument(html=_HTML, final_url="https://example.com/final")
        pw.playwright.chromium.launch.assert_called_once()
        assert pw.playwright.chromium.launch.call_args.kwargs["headless"] is True
        assert "--no-sandbox" in pw.playwright.chromium.launch.call_args.kwargs["args"]
        pw.browser.new_context.assert_called_once_with(
            viewport={"width": 1280, "height": 800},
            user_agent=USER_AGENT,
            java_script_enabled=True,
        )
        pw.page.goto.assert_called_once_with(
            "https://example.com/start", wait_until="domcontentloaded", timeout=30000
        )
        pw.wait.assert_called_once()
        pw.context.close.assert_called_once()

    def test_custom_config(self, pw: SimpleNamespace) -> None:
        config = BrowserConfig(viewport_width=1920, viewport_height=1080, user_agent="UA/1.0")
        with BrowserPageFetcher(config) as fetcher:
            fetcher.fetch_rendered_html("https://example.com/", timeout_ms=5000)

        kwargs = pw.browser.new_context.call_args.kwargs
        assert kwargs["viewport"] == {"width": 1920, "height": 1080}
        assert kwargs["user_agent"] == "UA/1.0"
        assert pw.page.goto.call_args.kwargs["timeout"] == 5000

    def test_disable_scripts_skips_readiness(self, pw: SimpleNamespace) -> None:
        with BrowserPageFetcher() as fetcher:
            fetcher.fetch_rendered_html("https://example.com/", disable_scripts=True)

        assert pw.browser.new_context.call_args.kwargs["java_script_enabled"] is False
        pw.wait.assert_not_called()

    def test_navigation_timeout(self, pw: SimpleNamespace) -> None:
        pw.page.goto.side_effect = PlaywrightTimeoutError("Timeout 10ms exceeded.")

        with BrowserPageFetcher() as fetcher:
            with pytest.raises(NavigationError, match="Timed out"):
                fetcher.fetch_rendered_html("https://slow.example.com/", timeout_ms=10)

        pw.context.close.assert_called_once()
        pw.browser.close.assert_called_once()
        pw.playwright.stop.assert_called_once()

    def test_network_failure(self, pw: SimpleNamespace) -> None:
        pw.page.goto.side_effect = PlaywrightError("net::ERR_NAME_NOT_RESOLVED")

        with BrowserPageFetcher() as fetcher:
            with pytest.raises(NavigationError, match="ERR_NAME_NOT_RESOLVED"):
                fetcher.fetch_rendered_html("https://nope.invalid/")

    def test_launch_failure_stops_playwright(self, pw: SimpleNamespace) -> None:
        pw.playwright.chromium.launch.side_effect = PlaywrightError("Executable doesn't exist")

        fetcher = BrowserPageFetcher()
        with pytest.raises(NavigationError, match="launch"):
            fetcher.fetch_rendered_html("https://example.com/")
        pw.playwright.stop.assert_called_once()

    def test_close_is_idempotent(self, pw: SimpleNamespace) -> None:
        fetcher = BrowserPageFetcher()
        fetcher.fetch_rendered_html("https://example.com/")
        fetcher.close()
        fetcher.close()

        pw.browser.close.assert_called_once()
        pw.playwright.stop.assert_called_once()

    def test_close_without_fetch_does_nothing(self, pw: SimpleNamespace) -> None:
        with BrowserPageFetcher():
            pass
        pw.playwright.chromium.launch.assert_not_called()


@pytest.fixture
def session(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    session = MagicMock()
    session.headers = {}
    response = session.get.return_value
    response.text = _HTML
    response.url = "https://example.com/final"
    response.raise_for_status.return_value = None
    monkeypatch.setattr("readable_markdown.fetcher.requests.Session", lambda: session)
    return session


class TestHttpPageFetcher:
    def test_successful_fetch(self, session: MagicMock) -> None:
        with HttpPageFetcher() as fetcher:
            doc = fetcher.fetch_rendered_html("https://example.com/", timeout_ms=15000)

        assert doc.html == _HTML
        assert doc.final_url == "https://example.com/final"
        assert session.headers["User-Agent"] == USER_AGENT
        session.get.assert_called_once_with("https://example.com/", timeout=15.0)
        session.close.assert_called_once()

    def test_http_error_raises(self, session: MagicMock) -> None:
        session.get.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError(
            "404 Client Error: Not Found"
        )
        with HttpPageFetcher() as fetcher:
            with pytest.raises(NavigationError, match="404"):
                fetcher.fetch_rendered_html("https://example.com/missing")

    def test_timeout_raises(self, session: MagicMock) -> None:
        session.get.side_effect = requests.exceptions.ReadTimeout("read timed out")
        with HttpPageFetcher() as fetcher:
            with pytest.raises(NavigationError, match="Timed out"):
                fetcher.fetch_rendered_html("https://example.com/slow", timeout_ms=100)


class TestBrowserSetupFailures:
    def test_new_context_failure(self, pw: SimpleNamespace) -> None:
        pw.browser.new_context.side_effect = PlaywrightError("Target page, context or browser has been closed")

        with BrowserPageFetcher() as fetcher:
            with pytest.raises(NavigationError, match="browser context"):
                fetcher.fetch_rendered_html("https://example.com/")

    def test_new_page_failure_closes_context(self, pw: SimpleNamespace) -> None:
        pw.context.new_page.side_effect = PlaywrightError("Target page, context or browser has been closed")

        with BrowserPageFetcher() as fetcher:
            with pytest.raises(NavigationError, match="Could not open a page"):
                fetcher.fetch_rendered_html("https://example.com/")

        pw.context.close.assert_called_once()
