"""
config.py: Explicit configuration for the fetcher, readiness detector and serializer.

Every knob has a documented default, so callers only pass what they change:

    fetcher = BrowserPageFetcher(BrowserConfig(viewport_width=1920))

Environment variables (applied by BrowserConfig.from_env()):
- READABLE_MARKDOWN_USER_AGENT
- READABLE_MARKDOWN_HEADLESS ("0", "false" or "no" to show the browser window)
"""

from __future__ import annotations

import os
from typing import List

from pydantic import BaseModel, Field


DEFAULT_TIMEOUT_MS = 30000

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]


class BrowserConfig(BaseModel):
    headless: bool = Field(default=True, description="Run Chromium without a window.")
    launch_args: List[str] = Field(
        default_factory=lambda: list(CHROMIUM_ARGS),
        description="Command-line flags passed to Chromium at launch.",
    )
    viewport_width: int = Field(default=1280, description="Viewport width in pixels.")
    viewport_height: int = Field(default=800, description="Viewport height in pixels.")
    user_agent: str = Field(default=USER_AGENT, description="User-Agent header sent with every request.")
    wait_until: str = Field(
        default="domcontentloaded",
        description="Playwright load state that ends navigation.",
    )

    @classmethod
    def from_env(cls) -> "BrowserConfig":
        """
        Build a config from defaults, overridden by READABLE_MARKDOWN_* variables.
        """
        overrides = {}
        user_agent = os.getenv("READABLE_MARKDOWN_USER_AGENT")
        if user_agent:
            overrides["user_agent"] = user_agent
        headless = os.getenv("READABLE_MARKDOWN_HEADLESS")
        if headless:
            overrides["headless"] = headless.strip().lower() not in ("0", "false", "no")
        return cls(**overrides)


class ReadinessConfig(BaseModel):
    selectors: List[str] = Field(
        default_factory=lambda: [".doc-content", "article", "main", ".content", "h1"],
        description="Selectors polled in order; the first one to appear ends the wait.",
    )
    selector_timeout_ms: int = Field(default=5000, description="Wait per selector attempt.")
    min_text_length: int = Field(
        default=500,
        description="Body text length that counts as rendered when no selector matched.",
    )
    text_timeout_ms: int = Field(default=10000, description="Wait for the text-length check.")
    scroll_distance_px: int = Field(default=200, description="Pixels scrolled per step.")
    scroll_interval_ms: int = Field(default=100, description="Delay between scroll steps.")
    max_scroll_steps: int = Field(
        default=200, description="Upper bound on scroll steps, for pages that keep growing."
    )
    settle_delay_ms: int = Field(default=1000, description="Fixed pause after scrolling finishes.")


class SerializerOptions(BaseModel):
    # Content arrives as authored HTML; escaping it again leaves stray backslashes.
    escape_markdown: bool = Field(
        default=False,
        description="Escape Markdown metacharacters found in text nodes.",
    )
    heading_style: str = Field(default="atx", description="markdownify heading style.")
    bullet: str = Field(default="-", description="Bullet marker for unordered lists.")
    strong_em_symbol: str = Field(default="*", description="Delimiter for emphasis and strong text.")
