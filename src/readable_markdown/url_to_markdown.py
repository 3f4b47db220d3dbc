"""
url_to_markdown.py: Convert the main content of a web page into a Markdown file.

Pipeline: fetch rendered HTML -> extract content region -> serialize to
Markdown -> normalize -> prepend "# <title>" -> write file.
"""

from __future__ import annotations

import argparse
import logging
import re
import sys
from pathlib import Path
from typing import Any, Callable, List, Optional, Union

from readable_markdown.config import DEFAULT_TIMEOUT_MS, BrowserConfig, SerializerOptions
from readable_markdown.errors import (
    ConversionError,
    FileWriteError,
    ReadableMarkdownError,
)
from readable_markdown.extractor import ExtractedArticle, extract
from readable_markdown.fetcher import BrowserPageFetcher, HttpPageFetcher, PageFetcher
from readable_markdown.normalizer import normalize
from readable_markdown.serializer import serialize


__version__ = "0.1.0"

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def _run_stage(stage: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    try:
        return fn(*args, **kwargs)
    except ConversionError:
        raise
    except ReadableMarkdownError as e:
        raise ConversionError(e.message, stage=stage, details=e.details) from e
    except Exception as e:
        raise ConversionError(f"{type(e).__name__}: {e}", stage=stage) from e


_HEADING_LINE_RE = re.compile(r"^\s{0,3}#\s+(.*?)\s*$")


def _normalize_heading_text(s: str) -> str:
    return re.sub(r"\s+", " ", s.strip().lower())


def _strip_title_heading(body: str, title: str) -> str:
    """
    Drop the body's leading H1 when it repeats the document title.

    The title usually comes from the content's own <h1>, which would
    otherwise appear twice.
    """
    lines = body.lstrip("\n").split("\n", 1)
    m = _HEADING_LINE_RE.match(lines[0])
    if m is None or _normalize_heading_text(m.group(1)) != _normalize_heading_text(title):
        return body
    return lines[1].lstrip("\n") if len(lines) > 1 else ""


def render_markdown(article: ExtractedArticle, options: Optional[SerializerOptions] = None) -> str:
    """
    Build the final document: a level-one title heading, a blank line, then the body.
    """
    body = normalize(serialize(article.content_html, options))
    body = _strip_title_heading(body, article.title)
    return f"# {article.title}\n\n{body}"


def convert_to_markdown(
    url: str,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    disable_scripts: bool = False,
    fetcher: Optional[PageFetcher] = None,
    options: Optional[SerializerOptions] = None,
) -> str:
    """
    Fetch a URL, extract the main article, and convert it to Markdown.

    Args:
        url: The URL of the webpage to process.
        timeout_ms: Maximum time to wait for page loading.
        disable_scripts: Load the page with JavaScript disabled.
        fetcher: Page fetcher to use; a BrowserPageFetcher is created when
            omitted. The fetcher is closed before this returns, on success
            and on failure alike.
        options: Serializer options.

    Returns:
        The full Markdown document, title heading included.

    Raises:
        ConversionError: If any stage fails. The stage error is chained as __cause__.
    """
    if fetcher is None:
        fetcher = BrowserPageFetcher(BrowserConfig.from_env())

    with fetcher:
        document = _run_stage(
            "fetch",
            fetcher.fetch_rendered_html,
            url,
            timeout_ms=timeout_ms,
            disable_scripts=disable_scripts,
        )

        logger.info("Extracting article content...")
        article = _run_stage("extract", extract, document.html, document.final_url)

        logger.info("Converting to Markdown...")
        return _run_stage("serialize", render_markdown, article, options)


def _write_markdown(path: Path, markdown: str) -> None:
    try:
        path.write_text(markdown, encoding="utf-8")
    except OSError as e:
        raise FileWriteError(f"Could not write {path}: {e}", {"path": str(path)}) from e


def convert(
    url: str,
    output_path: Union[str, Path],
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    disable_scripts: bool = False,
    fetcher: Optional[PageFetcher] = None,
    options: Optional[SerializerOptions] = None,
) -> Path:
    """
    Convert url to Markdown and save it to output_path.

    The file is written only after the whole document has been produced, so
    a failed conversion never leaves a partial file behind.
    """
    markdown = convert_to_markdown(
        url,
        timeout_ms=timeout_ms,
        disable_scripts=disable_scripts,
        fetcher=fetcher,
        options=options,
    )
    path = Path(output_path)
    _run_stage("write", _write_markdown, path, markdown)
    logger.info("Markdown saved to %s", path)
    return path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="readable-markdown",
        description="Fetch a URL and convert its main content to Markdown.",
    )
    parser.add_argument(
        "url", type=str, help="The full URL of the page you want to convert."
    )
    parser.add_argument(
        "-o", "--output", required=True, help="Output Markdown file path."
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=int,
        default=DEFAULT_TIMEOUT_MS,
        help="Maximum time to wait for page loading, in milliseconds (default: %(default)s)",
    )
    parser.add_argument(
        "--no-js",
        dest="disable_scripts",
        action="store_true",
        help="Disable JavaScript execution for static content only",
    )
    parser.add_argument(
        "--static",
        action="store_true",
        help="Fetch with a plain HTTP request instead of a headless browser",
    )
    parser.add_argument("--verbose", action="store_true", help="Log debug details")
    parser.add_argument(
        "-v", "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function to handle command-line arguments and execute the conversion.
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    fetcher: PageFetcher
    if args.static:
        fetcher = HttpPageFetcher(BrowserConfig.from_env())
    else:
        fetcher = BrowserPageFetcher(BrowserConfig.from_env())

    try:
        convert(
            args.url,
            Path(args.output).resolve(),
            timeout_ms=args.timeout,
            disable_scripts=args.disable_scripts,
            fetcher=fetcher,
        )
    except ReadableMarkdownError as e:
        print(f"Conversion failed: {e.message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
