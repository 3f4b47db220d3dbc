"""
extractor.py: Locate the primary content of a page and strip boilerplate from it.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Optional

from bs4 import BeautifulSoup, Tag

from readable_markdown.errors import ExtractionError


logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


# Tried in order; the first selector with any match wins, regardless of size.
CONTENT_SELECTORS = (
    ".doc-content",
    "article",
    "main",
    ".content",
)

BOILERPLATE_SELECTORS = (
    ".header-anchor",
    ".sidebar",
    ".toc",
    ".footer",
    ".edit-link",
    "nav",
    "script",
    "style",
    "iframe",
    ".page-meta",
    ".ads-container",
    ".comment-section",
)

DEFAULT_TITLE = "Untitled"


@dataclass(frozen=True)
class ExtractedArticle:
    title: str
    content_html: str
    base_url: str = ""


def _collapse_ws(s: str) -> str:
    return " ".join(s.split())


def resolve_title(soup: BeautifulSoup) -> str:
    """
    Pick the article title: og:title metadata, then the first <h1>, then "Untitled".
    """
    meta = soup.select_one('meta[property="og:title"]')
    if meta is not None:
        content = _collapse_ws(meta.get("content") or "")
        if content:
            return content

    h1 = soup.find("h1")
    if h1 is not None:
        text = _collapse_ws(h1.get_text())
        if text:
            return text

    return DEFAULT_TITLE


def find_content_region(soup: BeautifulSoup) -> Optional[Tag]:
    """
    Return the main content container, falling back to <body>.

    Returns None only when the document has neither.
    """
    for selector in CONTENT_SELECTORS:
        region = soup.select_one(selector)
        if region is not None:
            logger.debug("Content region matched selector %s", selector)
            return region

    body = soup.find("body")
    if body is not None:
        logger.warning("Main content area not found, using entire body")
    return body


def strip_boilerplate(region: Tag) -> Tag:
    """Remove every element matching BOILERPLATE_SELECTORS from region, in place."""
    for selector in BOILERPLATE_SELECTORS:
        for el in region.select(selector):
            # An earlier match in this pass may have been an ancestor.
            if not el.decomposed:
                el.decompose()
    return region


def extract(html: str, base_url: str = "") -> ExtractedArticle:
    """
    Extract the title and cleaned content HTML from a rendered page.

    Args:
        html: The full page HTML.
        base_url: URL the page was loaded from. Carried on the result so
            later stages know where relative references point.

    Returns:
        An ExtractedArticle whose content_html is never blank.

    Raises:
        ExtractionError: If the page has no content region and no body, or
            nothing is left once boilerplate is removed.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    title = resolve_title(soup)

    region = find_content_region(soup)
    if region is None:
        raise ExtractionError(
            "Failed to extract article content: no content region or body found",
            {"url": base_url},
        )

    # Work on a copy so the parsed document itself is left untouched.
    clone = strip_boilerplate(copy.copy(region))
    content_html = clone.decode_contents()
    if not content_html.strip():
        raise ExtractionError(
            "Failed to extract article content: content region is empty",
            {"url": base_url},
        )

    return ExtractedArticle(title=title, content_html=content_html, base_url=base_url)
