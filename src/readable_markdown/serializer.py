"""
serializer.py: HTML to Markdown conversion with custom rules on top of markdownify.

markdownify handles the ordinary elements (headings, paragraphs, emphasis,
lists, links, blockquotes). A small, closed set of element kinds gets its own
rendering instead:

    PRE_BLOCK    <pre>                      fenced block tagged with its language
    INLINE_CODE  <code> outside <pre>       `raw text`
    IMAGE        <img>                      ![alt](src)
    TABLE        <table>                    pipe-joined rows, separator after row one
    ADMONITION   <div class="warning|tip|note">   labelled blockquote

Each rule is a pure function of (element, converted inner text, convert),
where convert is the serializer itself, used when a rule needs to serialize a
fragment on its own (table cells).
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Callable, Dict, Optional

from bs4 import Tag
from markdownify import MarkdownConverter

from readable_markdown.config import SerializerOptions
from readable_markdown.errors import SerializationError


Convert = Callable[[str], str]

_LANGUAGE_RE = re.compile(r"language-(\w+)")

# Checked in order; the first class fragment present decides the label.
ADMONITION_LABELS = (
    ("warning", "⚠️ WARNING"),
    ("tip", "💡 TIP"),
    ("note", "ℹ️ NOTE"),
)


class ElementKind(Enum):
    PRE_BLOCK = "pre_block"
    INLINE_CODE = "inline_code"
    IMAGE = "image"
    TABLE = "table"
    ADMONITION = "admonition"
    DEFAULT = "default"


def _class_string(el: Tag) -> str:
    classes = el.get("class") or []
    if isinstance(classes, str):
        return classes
    return " ".join(classes)


def admonition_label(el: Tag) -> Optional[str]:
    """
    Return the callout label for a div, or None if it is not an admonition.

    Matching is by substring on the class attribute, so "custom-block tip"
    and "admonition-note" both qualify.
    """
    classes = _class_string(el)
    for fragment, label in ADMONITION_LABELS:
        if fragment in classes:
            return label
    return None


def classify(el: Tag, parent_tags: Optional[set] = None) -> ElementKind:
    name = (el.name or "").lower()
    if name == "pre":
        return ElementKind.PRE_BLOCK
    if name == "code":
        inside_pre = "pre" in (parent_tags or ()) or el.find_parent("pre") is not None
        return ElementKind.DEFAULT if inside_pre else ElementKind.INLINE_CODE
    if name == "img":
        return ElementKind.IMAGE
    if name == "table":
        return ElementKind.TABLE
    if name == "div" and admonition_label(el) is not None:
        return ElementKind.ADMONITION
    return ElementKind.DEFAULT


def code_language(pre: Tag) -> str:
    code = pre.find("code")
    if code is None:
        return ""
    m = _LANGUAGE_RE.search(_class_string(code))
    return m.group(1) if m else ""


def render_pre_block(el: Tag, text: str, convert: Convert) -> str:
    return "\n```%s\n%s\n```\n" % (code_language(el), text.strip("\n"))


def render_inline_code(el: Tag, text: str, convert: Convert) -> str:
    # Raw text on purpose: nested markup inside <code> is not converted.
    return "`%s`" % el.get_text()


def render_image(el: Tag, text: str, convert: Convert) -> str:
    return "![%s](%s)" % (el.get("alt") or "", el.get("src") or "")


def _render_cell(cell: Tag, convert: Convert) -> str:
    text = convert(cell.decode_contents()).replace("\n", " ")
    if cell.name == "th":
        return "**%s**" % text
    return text


def render_table(el: Tag, text: str, convert: Convert) -> str:
    """
    Render each row as cells joined by " | ".

    The first row is always treated as the header and followed by a
    separator, whether or not it holds <th> cells.
    """
    rows = el.find_all("tr")
    lines = [
        " | ".join(_render_cell(cell, convert) for cell in row.find_all(["td", "th"]))
        for row in rows
    ]
    if rows:
        width = len(rows[0].find_all(["td", "th"]))
        lines.insert(1, ("---|" * width)[:-1])
    return "\n%s\n\n" % "\n".join(lines)


def render_admonition(el: Tag, text: str, convert: Convert) -> str:
    body = text.strip().replace("\n", "\n> ")
    return "\n> **%s**\n> %s\n\n" % (admonition_label(el), body)


RULES: Dict[ElementKind, Callable[[Tag, str, Convert], str]] = {
    ElementKind.PRE_BLOCK: render_pre_block,
    ElementKind.INLINE_CODE: render_inline_code,
    ElementKind.IMAGE: render_image,
    ElementKind.TABLE: render_table,
    ElementKind.ADMONITION: render_admonition,
}


class MarkdownSerializer(MarkdownConverter):
    """
    markdownify converter configured from SerializerOptions, routing the
    special element kinds through RULES.
    """

    def __init__(self, options: Optional[SerializerOptions] = None, **kwargs):
        self.serializer_options = options or SerializerOptions()
        escape = self.serializer_options.escape_markdown
        kwargs.setdefault("heading_style", self.serializer_options.heading_style)
        kwargs.setdefault("bullets", self.serializer_options.bullet)
        kwargs.setdefault("strong_em_symbol", self.serializer_options.strong_em_symbol)
        kwargs.setdefault("escape_asterisks", escape)
        kwargs.setdefault("escape_underscores", escape)
        kwargs.setdefault("escape_misc", escape)
        super().__init__(**kwargs)

    def serialize(self, html: str) -> str:
        """
        Convert an HTML fragment to Markdown.

        Raises:
            SerializationError: If a rule trips over an unexpected DOM shape.
        """
        try:
            return self.convert(html)
        except (AttributeError, TypeError, ValueError, RecursionError) as e:
            raise SerializationError(f"Failed to convert HTML to Markdown: {e}") from e

    def escape(self, text, parent_tags):
        if not self.serializer_options.escape_markdown:
            return text
        return super().escape(text, parent_tags)

    def _dispatch(self, el, text, parent_tags, fallback):
        kind = classify(el, parent_tags)
        if kind is ElementKind.DEFAULT:
            return fallback(el, text, parent_tags)
        return RULES[kind](el, text, self.serialize)

    def convert_pre(self, el, text, parent_tags):
        return self._dispatch(el, text, parent_tags, super().convert_pre)

    def convert_code(self, el, text, parent_tags):
        return self._dispatch(el, text, parent_tags, super().convert_code)

    def convert_img(self, el, text, parent_tags):
        return self._dispatch(el, text, parent_tags, super().convert_img)

    def convert_table(self, el, text, parent_tags):
        return self._dispatch(el, text, parent_tags, super().convert_table)

    def convert_div(self, el, text, parent_tags):
        return self._dispatch(el, text, parent_tags, super().convert_div)


def serialize(content_html: str, options: Optional[SerializerOptions] = None) -> str:
    """Convert extracted content HTML to Markdown."""
    return MarkdownSerializer(options).serialize(content_html)
