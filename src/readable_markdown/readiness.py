"""
readiness.py: Decide when a rendered page has settled enough to read.

Every step here is best effort. Misses are logged and the caller carries on
with whatever the page has produced so far.
"""

from __future__ import annotations

import logging
from typing import Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from readable_markdown.config import ReadinessConfig


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


_TEXT_LENGTH_CHECK = "(minLength) => (document.body?.textContent?.length ?? 0) > minLength"

# Scrolls until the distance travelled covers the page, or maxSteps runs out on
# pages that keep appending content.
_AUTO_SCROLL = """
async ({ distance, interval, maxSteps }) => {
  await new Promise((resolve) => {
    let totalHeight = 0;
    let steps = 0;
    const timer = setInterval(() => {
      const scrollHeight = document.body.scrollHeight;
      window.scrollBy(0, distance);
      totalHeight += distance;
      steps += 1;
      if (totalHeight >= scrollHeight - window.innerHeight || steps >= maxSteps) {
        clearInterval(timer);
        resolve();
      }
    }, interval);
  });
}
"""


def wait_for_selectors(page: Page, config: ReadinessConfig) -> Optional[str]:
    """
    Poll each configured selector in turn and return the first one found.

    Attempts run one after another, so a page matching none of them costs the
    sum of every per-selector timeout.
    """
    for selector in config.selectors:
        try:
            page.wait_for_selector(selector, timeout=config.selector_timeout_ms)
        except PlaywrightTimeoutError:
            logger.info(
                "Selector %s not found within %d ms", selector, config.selector_timeout_ms
            )
            continue
        except PlaywrightError as e:
            logger.info("Selector %s check failed: %s", selector, e)
            continue
        logger.info("Found content using selector: %s", selector)
        return selector
    return None


def wait_for_text(page: Page, config: ReadinessConfig) -> bool:
    """
    Wait until the body holds more than min_text_length characters of text.
    """
    try:
        page.wait_for_function(
            _TEXT_LENGTH_CHECK,
            arg=config.min_text_length,
            timeout=config.text_timeout_ms,
        )
    except PlaywrightError as e:
        logger.info("Text content detection failed, continuing anyway: %s", e)
        return False
    logger.info("Detected sufficient text content")
    return True


def auto_scroll(page: Page, config: ReadinessConfig) -> bool:
    """
    Scroll to the bottom of the page in fixed steps to trigger lazy loading.
    """
    try:
        page.evaluate(
            _AUTO_SCROLL,
            {
                "distance": config.scroll_distance_px,
                "interval": config.scroll_interval_ms,
                "maxSteps": config.max_scroll_steps,
            },
        )
    except PlaywrightError as e:
        logger.warning("Auto-scroll failed, continuing without it: %s", e)
        return False
    return True


def wait_for_content(page: Page, config: Optional[ReadinessConfig] = None) -> Optional[str]:
    """
    Run the full readiness sequence on a loaded page.

    Args:
        page: A Playwright page that has finished navigation.
        config: Readiness tuning; defaults to ReadinessConfig().

    Returns:
        The selector that matched, or None if the page was judged ready some
        other way (or not at all).
    """
    config = config or ReadinessConfig()

    found = wait_for_selectors(page, config)
    if found is None:
        logger.info("No selector found, trying text-based detection")
        wait_for_text(page, config)

    auto_scroll(page, config)
    page.wait_for_timeout(config.settle_delay_ms)
    return found
