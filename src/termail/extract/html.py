"""Reduce untrusted HTML to plain text.

The document is parsed with BeautifulSoup's ``html.parser`` backend.
Everything that is not visible text is dropped: scripts, styles, embedded and
interactive elements, comments, declarations and every attribute (and with
them all event handlers). Block structure survives as line breaks.
"""

from __future__ import annotations

import html
import re

import structlog
from bs4 import BeautifulSoup, NavigableString
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction, Tag

from termail.utils import collapse_blank_lines, normalize_newlines, strip_control_chars

logger = structlog.get_logger()

DROPPED_TAGS = (
    "script",
    "style",
    "head",
    "title",
    "meta",
    "link",
    "noscript",
    "template",
    "iframe",
    "frame",
    "frameset",
    "object",
    "embed",
    "applet",
    "svg",
    "math",
    "canvas",
    "audio",
    "video",
    "button",
    "input",
    "select",
    "textarea",
)

BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "blockquote", "body", "dd", "details",
        "div", "dl", "dt", "fieldset", "figcaption", "figure", "footer", "form",
        "h1", "h2", "h3", "h4", "h5", "h6", "header", "hr", "html", "li", "main",
        "nav", "ol", "p", "pre", "section", "summary", "table", "tr", "ul",
    }
)

_CELL_TAGS = frozenset({"td", "th"})
_NON_TEXT = (Comment, Declaration, Doctype, ProcessingInstruction)
_SPACE = re.compile(r"[ \t\n\r\f\v]+")
_TAG_SHAPED = re.compile(r"</?[A-Za-z!?/][^<>]*>")


class _Break(NavigableString):
    """Structural text inserted for block boundaries; never collapsed."""


def _prepare(soup: BeautifulSoup) -> None:
    for tag in soup.find_all(DROPPED_TAGS):
        tag.decompose()
    for node in soup.find_all(string=lambda s: isinstance(s, _NON_TEXT)):
        node.extract()

    for tag in soup.find_all(True):
        if tag.name == "br":
            tag.replace_with(_Break("\n"))
            continue
        if tag.name in BLOCK_TAGS:
            tag.insert_before(_Break("\n"))
            tag.insert_after(_Break("\n"))
        elif tag.name in _CELL_TAGS:
            tag.insert_after(_Break(" "))
        if tag.name == "li":
            tag.insert(0, _Break("* "))


def _in_pre(node: NavigableString) -> bool:
    return node.find_parent("pre") is not None


def _flatten(soup: BeautifulSoup) -> str:
    pieces: list[str] = []
    at_line_start = True
    for node in soup.descendants:
        if isinstance(node, (Tag, *_NON_TEXT)):
            continue
        if isinstance(node, _Break):
            text = str(node)
        elif _in_pre(node):
            text = str(node)
        else:
            text = _SPACE.sub(" ", str(node))
            if at_line_start:
                text = text.lstrip(" ")
        if not text:
            continue
        pieces.append(text)
        at_line_start = text.endswith("\n") or (isinstance(node, _Break) and text.endswith(" "))
    return "".join(pieces)


def _finish(text: str) -> str:
    text = html.unescape(text)
    text = _TAG_SHAPED.sub("", text)
    text = strip_control_chars(normalize_newlines(text))
    text = "\n".join(line.rstrip() for line in text.split("\n"))
    return collapse_blank_lines(text).strip("\n")


def html_to_text(document: str) -> str:
    """Reduce an HTML document to plain, markup-free text.

    Args:
        document: HTML source as decoded text.

    Returns:
        str: Visible text with line breaks for block structure, or ``""``
            if the document is empty or cannot be reduced.
    """

    if not document or not document.strip():
        return ""
    try:
        soup = BeautifulSoup(document, "html.parser")
        _prepare(soup)
        return _finish(_flatten(soup))
    except Exception as e:
        logger.warning("html_reduction_failed", error=str(e), size=len(document))
        return ""
