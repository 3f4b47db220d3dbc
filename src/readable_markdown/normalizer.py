"""
normalizer.py: Tidy serialized Markdown.
"""

from __future__ import annotations

import re
from typing import List, Tuple


# Order matters: later passes assume runs of blank lines are already collapsed.
_PASSES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\n{3,}"), "\n\n"),
    # fence padding
    (re.compile(r"\n{2,}(```)"), r"\n\1"),
    (re.compile(r"(```)\n{2,}"), r"\1\n"),
    # list padding
    (re.compile(r"\n{2,}([-*] )"), r"\n\1"),
    (re.compile(r"^([ \t]*[-*] .*)\n{2,}", re.MULTILINE), "\\1\n"),
    # escapes left behind upstream
    (re.compile(r"\\`"), "`"),
    (re.compile(r"\\#"), "#"),
    (re.compile(r"\\-"), "-"),
]


def _apply_passes(markdown: str) -> str:
    for pattern, replacement in _PASSES:
        markdown = pattern.sub(replacement, markdown)
    return markdown


def normalize(markdown: str) -> str:
    """
    Collapse redundant blank lines and undo over-escaped punctuation.

    The passes run in order and repeat until the text stops changing.
    Un-escaping can uncover a list marker or fence the earlier passes have
    already gone past, and a single round would then leave padding behind.
    Every pass only removes characters, so the loop terminates and the result
    is stable under a second call.
    """
    while True:
        result = _apply_passes(markdown)
        if result == markdown:
            return result
        markdown = result
