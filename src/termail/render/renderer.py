"""Lay out message text for a fixed-width terminal."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from termail.config import Settings, get_settings
from termail.models import (
    AttachmentDescriptor,
    DisplayCell,
    DisplayLine,
    RenderedDocument,
    WrapPolicy,
)
from termail.render.width import cells, char_width
from termail.utils import normalize_newlines, strip_control_chars

logger = structlog.get_logger()

TAB_STOP = 8
RULE_CHAR = "-"
REPLACEMENT_CELL = DisplayCell(text="\ufffd", width=1)

_SIZE_UNITS = ("KiB", "MiB", "GiB", "TiB")


def human_size(size: int) -> str:
    """Format a byte count for people: ``512 B``, ``1.5 KiB``, ``3.0 MiB``."""
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for unit in _SIZE_UNITS:
        value /= 1024
        if value < 1024:
            break
    return f"{value:.1f} {unit}"


def expand_tabs(line: str, tab_stop: int = TAB_STOP) -> str:
    """Replace tabs with spaces up to the next stop, counting display columns."""
    if "\t" not in line:
        return line
    out: list[str] = []
    column = 0
    for ch in line:
        if ch == "\t":
            pad = tab_stop - column % tab_stop
            out.append(" " * pad)
            column += pad
        else:
            out.append(ch)
            column += char_width(ch)
    return "".join(out)


def _is_space(cell: DisplayCell) -> bool:
    return cell.text[:1] == " "


def _tokens(line: list[DisplayCell]) -> list[list[DisplayCell]]:
    """Group cells into alternating runs of spaces and non-spaces."""
    tokens: list[list[DisplayCell]] = []
    for cell in line:
        if tokens and _is_space(tokens[-1][0]) == _is_space(cell):
            tokens[-1].append(cell)
        else:
            tokens.append([cell])
    return tokens


class _LineBuilder:
    def __init__(self, width: int) -> None:
        self.width = width
        self.lines: list[DisplayLine] = []
        self.current: list[DisplayCell] = []
        self.used = 0

    def fits(self, width: int) -> bool:
        return self.used + width <= self.width

    def add(self, cell: DisplayCell) -> None:
        self.current.append(cell)
        self.used += cell.width

    def add_hard(self, cell: DisplayCell) -> None:
        # A glyph wider than the whole line is shown as one replacement cell.
        if cell.width > self.width:
            cell = REPLACEMENT_CELL
        # A glyph wider than the remaining room moves to the next line.
        if self.current and not self.fits(cell.width):
            self.flush()
        self.add(cell)

    def flush(self) -> None:
        while self.current and _is_space(self.current[-1]):
            self.current.pop()
        self.lines.append(DisplayLine(cells=tuple(self.current)))
        self.current = []
        self.used = 0

    def finish(self) -> list[DisplayLine]:
        if self.current or not self.lines:
            self.flush()
        return self.lines


def wrap_line(text: str, width: int, policy: WrapPolicy = WrapPolicy.WORD) -> list[DisplayLine]:
    """Wrap one logical line to ``width`` columns.

    Args:
        text: A single line without line breaks.
        width: Maximum display width of the produced lines.
            A glyph wider than ``width`` becomes a single U+FFFD cell.
        policy: Word wrapping, character wrapping, or none.

    Returns:
        list[DisplayLine]: At least one line, possibly empty.
    """

    line = cells(expand_tabs(text))
    if policy == WrapPolicy.NONE:
        return [DisplayLine(cells=tuple(line))]

    builder = _LineBuilder(width)
    if policy == WrapPolicy.CHAR:
        for cell in line:
            builder.add_hard(cell)
        return builder.finish()

    for token in _tokens(line):
        token_width = sum(cell.width for cell in token)
        if _is_space(token[0]):
            if builder.fits(token_width):
                for cell in token:
                    builder.add(cell)
            elif builder.current:
                builder.flush()
            continue

        if builder.fits(token_width):
            for cell in token:
                builder.add(cell)
            continue
        if builder.current:
            builder.flush()
        for cell in token:
            builder.add_hard(cell)
    return builder.finish()


def _wrap_text(text: str, width: int, policy: WrapPolicy) -> list[DisplayLine]:
    lines: list[DisplayLine] = []
    for raw in strip_control_chars(normalize_newlines(text)).split("\n"):
        lines.extend(wrap_line(raw, width, policy))
    return lines


def attachment_summary(attachments: Sequence[AttachmentDescriptor]) -> list[str]:
    return [
        f"[{number}] {attachment.filename} "
        f"({human_size(attachment.size_bytes)}, {attachment.content_type})"
        for number, attachment in enumerate(attachments, start=1)
    ]


def render_document(
    text: str,
    attachments: Sequence[AttachmentDescriptor] = (),
    width: int | None = None,
    wrap: WrapPolicy = WrapPolicy.WORD,
    headers: Sequence[tuple[str, str]] = (),
    settings: Settings | None = None,
) -> RenderedDocument:
    """Lay out extracted text, header lines and an attachment summary.

    Args:
        text: Display text, usually from :func:`termail.extract.extract`.
        attachments: Attachments listed after the body.
        width: Terminal width in columns. ``None`` or a non-positive value
            falls back to ``settings.display_width``.
        wrap: Wrapping policy for long lines.
        headers: ``(name, value)`` pairs shown above the body.
        settings: Supplies the fallback width. If None, uses default settings.

    Returns:
        RenderedDocument: The laid out lines and the attachment list.
    """

    if not width or width <= 0:
        width = (settings or get_settings()).display_width

    lines: list[DisplayLine] = []
    if headers:
        for name, value in headers:
            lines.extend(_wrap_text(f"{name}: {value}", width, wrap))
        lines.append(DisplayLine(cells=tuple(cells(RULE_CHAR * width))))

    lines.extend(_wrap_text(text, width, wrap))

    if attachments:
        lines.append(DisplayLine())
        for entry in attachment_summary(attachments):
            lines.extend(_wrap_text(entry, width, wrap))

    logger.debug(
        "document_rendered",
        width=width,
        lines=len(lines),
        attachments=len(attachments),
    )
    return RenderedDocument(lines=tuple(lines), attachments=tuple(attachments), width=width)
