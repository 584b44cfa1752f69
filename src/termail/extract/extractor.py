"""Select the displayable text of a message and list its attachments."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field

import structlog

from termail.codec.charset import bytes_to_text
from termail.config import Settings, get_settings
from termail.extract.html import html_to_text
from termail.mime.classifier import classify, is_text_displayable
from termail.models import (
    AttachmentDescriptor,
    Disposition,
    LeafPart,
    Message,
    MultipartPart,
    Part,
)
from termail.models.message import PartPath
from termail.utils import normalize_plain_text

logger = structlog.get_logger()

PLAIN = "text/plain"
HTML = "text/html"


@dataclass(frozen=True)
class ExtractedContent:
    """Display text of a message plus the attachments found beside it."""

    text: str
    attachments: tuple[AttachmentDescriptor, ...] = ()


@dataclass
class _Collector:
    preference: tuple[str, ...]
    charset_fallback: str
    texts: list[str] = field(default_factory=list)
    attachments: list[AttachmentDescriptor] = field(default_factory=list)


def _offers(part: Part, content_type: str) -> bool:
    """Whether ``part`` is, or contains, an inline ``content_type`` leaf."""
    if isinstance(part, LeafPart):
        return part.content_type == content_type and part.disposition != Disposition.ATTACHMENT
    return any(_offers(child, content_type) for child in part.children)


def choose_alternative(part: MultipartPart, preference: tuple[str, ...]) -> int | None:
    """Pick the index of the child to display from a multipart/alternative."""
    for content_type in preference:
        for index, child in enumerate(part.children):
            if _offers(child, content_type):
                return index
    return 0 if part.children else None


def _placeholder_name(content_type: str, number: int) -> str:
    extension = mimetypes.guess_extension(content_type, strict=False) or ".bin"
    return f"attachment-{number}{extension}"


def _leaf_text(part: LeafPart, confirmed: str, charset_fallback: str) -> str:
    text = part.text
    if text is None:
        text = bytes_to_text(part.decoded_body, part.charset, charset_fallback).value
    if HTML in (part.content_type, confirmed):
        return html_to_text(text)
    return normalize_plain_text(text)


def _visit_leaf(part: LeafPart, path: PartPath, out: _Collector) -> None:
    confirmed = classify(part)
    displayable = is_text_displayable(confirmed)

    if part.disposition == Disposition.ATTACHMENT or (
        part.disposition is None and not displayable
    ):
        out.attachments.append(
            AttachmentDescriptor(
                filename=part.filename or _placeholder_name(confirmed, len(out.attachments) + 1),
                content_type=confirmed,
                declared_type=part.content_type,
                size_bytes=len(part.decoded_body),
                part_path=path,
                disposition=part.disposition,
            )
        )
        return

    if displayable:
        text = _leaf_text(part, confirmed, out.charset_fallback)
        if text:
            out.texts.append(text)


def _visit(part: Part, path: PartPath, out: _Collector) -> None:
    if isinstance(part, LeafPart):
        _visit_leaf(part, path, out)
        return

    if part.subtype == "alternative":
        index = choose_alternative(part, out.preference)
        if index is not None:
            _visit(part.children[index], (*path, index), out)
        return

    # mixed, related and every unknown multipart subtype
    for index, child in enumerate(part.children):
        _visit(child, (*path, index), out)


def extract(message: Message, settings: Settings | None = None) -> ExtractedContent:
    """Reduce a message to display text and attachment descriptors.

    Args:
        message: Parsed message.
        settings: Supplies the preferred text format and charset fallback.
            If None, uses default settings.

    Returns:
        ExtractedContent: The text (possibly empty) and the attachments in
            document order. Never raises for malformed content.
    """

    settings = settings or get_settings()
    preference = (HTML, PLAIN) if settings.text_format == "html" else (PLAIN, HTML)
    out = _Collector(preference=preference, charset_fallback=settings.charset_fallback)
    _visit(message.root, (), out)

    content = ExtractedContent(
        text="\n\n".join(out.texts),
        attachments=tuple(out.attachments),
    )
    logger.debug(
        "message_extracted",
        text_parts=len(out.texts),
        attachments=len(content.attachments),
    )
    return content
