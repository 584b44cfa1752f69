"""Entry points used by the presentation layer.

``render`` takes raw bytes from a :class:`~termail.session.MailStore` to a
display document; ``compose`` takes a request to bytes for a
:class:`~termail.session.MailTransport`. Each message is processed start to
finish by one worker; the only thing workers share is the frozen settings.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import structlog

from termail.compose import compose as compose_message
from termail.config import Settings, get_settings
from termail.extract import extract
from termail.mime import parse
from termail.models import ComposeRequest, Message, RenderedDocument, WrapPolicy
from termail.render import render_document

logger = structlog.get_logger()


def header_lines(message: Message, names: Sequence[str]) -> list[tuple[str, str]]:
    """Decoded ``(name, value)`` pairs for the fields in ``names`` that are present."""
    lines: list[tuple[str, str]] = []
    for name in names:
        value = message.header(name)
        if value:
            lines.append((name, value))
    return lines


def render_message(
    message: Message,
    width: int | None = None,
    settings: Settings | None = None,
    wrap: WrapPolicy | None = None,
    show_headers: bool = True,
) -> RenderedDocument:
    """Extract and lay out an already parsed message."""
    settings = settings or get_settings()
    content = extract(message, settings)
    headers = header_lines(message, settings.show_headers) if show_headers else []
    return render_document(
        content.text,
        attachments=content.attachments,
        width=width,
        wrap=wrap or settings.wrap_policy,
        headers=headers,
        settings=settings,
    )


def render(
    raw: bytes,
    width: int | None = None,
    settings: Settings | None = None,
    wrap: WrapPolicy | None = None,
    show_headers: bool = True,
) -> RenderedDocument:
    """Turn raw message bytes into a display document.

    Args:
        raw: RFC 822 message bytes.
        width: Terminal width; ``None`` or non-positive uses ``display_width``.
        settings: Shared configuration. If None, uses default settings.
        wrap: Wrapping policy. If None, uses ``settings.wrap_policy``.
        show_headers: Whether to put the configured header lines on top.

    Returns:
        RenderedDocument: Always a document, however malformed ``raw`` is.
    """

    settings = settings or get_settings()
    message = parse(raw, settings)
    document = render_message(message, width, settings, wrap, show_headers)
    if message.diagnostics:
        logger.info(
            "message_rendered_with_diagnostics",
            diagnostics=sorted({d.value for d in message.diagnostics}),
        )
    return document


def compose(request: ComposeRequest, settings: Settings | None = None) -> bytes:
    """Build the bytes of an outgoing message, ready for ``submit_message``.

    Raises:
        AttachmentUnreadable: If an attachment file cannot be read.
    """

    return compose_message(request, settings)


async def render_many(
    messages: Sequence[bytes],
    width: int | None = None,
    settings: Settings | None = None,
) -> list[RenderedDocument]:
    """Render several raw messages concurrently, one worker thread each.

    Results come back in input order.
    """

    settings = settings or get_settings()
    documents = await asyncio.gather(
        *(asyncio.to_thread(render, raw, width, settings) for raw in messages)
    )
    logger.debug("batch_rendered", count=len(documents))
    return list(documents)
