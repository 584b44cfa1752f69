"""Raw message bytes to a typed MIME tree.

Parsing is total: malformed input degrades to a best-effort tree with
diagnostics on the affected parts and never raises to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from termail.codec.charset import bytes_to_text
from termail.codec.transfer import SEVEN_BIT, decode_body, normalize_transfer_encoding
from termail.config import MAX_NESTING_DEPTH, Settings, get_settings
from termail.exceptions import MissingBoundary, RecursionLimitExceeded, TruncatedMessage
from termail.mime.headers import (
    build_headers,
    parse_content_type,
    parse_disposition,
    part_filename,
    split_header_block,
)
from termail.models import Diagnostic, Headers, LeafPart, Message, MultipartPart, Part

logger = structlog.get_logger()


@dataclass(frozen=True)
class _Limits:
    max_depth: int
    max_header_bytes: int
    charset_fallback: str


def _skip_mbox_separator(data: bytes) -> bytes:
    if data.startswith(b"From "):
        newline = data.find(b"\n")
        return b"" if newline == -1 else data[newline + 1 :]
    return data


def split_multipart(body: bytes, boundary: str) -> list[bytes]:
    """Split a multipart body into the raw bytes of each child entity.

    The preamble before the first delimiter and the epilogue after the close
    delimiter are dropped. The line ending just before a delimiter belongs to
    the delimiter. Without a close delimiter the last child runs to the end.
    """

    delimiter = b"--" + boundary.encode("utf-8")
    close = delimiter + b"--"
    chunks: list[bytes] = []
    start: int | None = None
    position = 0
    while position < len(body):
        newline = body.find(b"\n", position)
        end = len(body) if newline == -1 else newline + 1
        if body.startswith(b"--", position):
            line = body[position:end].rstrip(b"\r\n").rstrip(b" \t")
            if line == delimiter or line == close:
                if start is not None:
                    chunk = body[start:position]
                    if chunk.endswith(b"\r\n"):
                        chunk = chunk[:-2]
                    elif chunk.endswith(b"\n"):
                        chunk = chunk[:-1]
                    chunks.append(chunk)
                if line == close:
                    return chunks
                start = end
        position = end

    if start is not None:
        chunks.append(body[start:])
    return chunks


def _boundary_of(params: dict[str, str]) -> str:
    boundary = params.get("boundary", "")
    if not boundary:
        raise MissingBoundary("multipart entity has no boundary parameter")
    return boundary


def _leaf(
    common: dict,
    body: bytes,
    diagnostics: list[Diagnostic],
    limits: _Limits,
) -> LeafPart:
    decoded = decode_body(body, common["transfer_encoding"])
    if decoded.diagnostic is not None:
        diagnostics.append(decoded.diagnostic)

    text: str | None = None
    if common["content_type"].startswith("text/"):
        result = bytes_to_text(
            decoded.value, common["params"].get("charset"), limits.charset_fallback
        )
        if result.diagnostic is not None:
            diagnostics.append(result.diagnostic)
        text = result.value

    return LeafPart(
        **common,
        decoded_body=decoded.value,
        text=text,
        diagnostics=tuple(diagnostics),
    )


def _parse_children(
    body: bytes,
    boundary: str,
    content_type: str,
    limits: _Limits,
    depth: int,
) -> list[Part]:
    if depth >= limits.max_depth:
        raise RecursionLimitExceeded(f"multipart nesting deeper than {limits.max_depth}")
    child_default = "message/rfc822" if content_type == "multipart/digest" else "text/plain"
    return [
        _parse_entity(chunk, limits, depth + 1, child_default)
        for chunk in split_multipart(body, boundary)
    ]


def _parse_entity(
    data: bytes,
    limits: _Limits,
    depth: int,
    default_type: str = "text/plain",
) -> Part:
    diagnostics: list[Diagnostic] = []
    try:
        fields, body = split_header_block(data, limits.max_header_bytes)
    except TruncatedMessage as exc:
        logger.info("mime_header_separator_missing", depth=depth, error=str(exc))
        fields, body = [], data
        diagnostics.append(exc.diagnostic)

    headers: Headers = build_headers(fields, limits.charset_fallback)
    raw_type = headers.get("Content-Type")
    if raw_type is None and default_type != "text/plain":
        content_type, params = default_type, {}
    else:
        content_type, params = parse_content_type(raw_type)
    disposition, disposition_params = parse_disposition(headers.get("Content-Disposition"))
    common = {
        "headers": headers,
        "content_type": content_type,
        "params": params,
        "disposition": disposition,
        "filename": part_filename(params, disposition_params),
        "transfer_encoding": normalize_transfer_encoding(
            headers.get("Content-Transfer-Encoding")
        )
        or SEVEN_BIT,
        "raw_body": body,
    }

    if not content_type.startswith("multipart/"):
        return _leaf(common, body, diagnostics, limits)

    try:
        boundary = _boundary_of(params)
    except MissingBoundary as exc:
        logger.warning("mime_boundary_missing", content_type=content_type, depth=depth)
        diagnostics.append(exc.diagnostic)
        return _leaf(common, body, diagnostics, limits)

    try:
        children = _parse_children(body, boundary, content_type, limits, depth)
    except RecursionLimitExceeded as exc:
        logger.warning("mime_depth_limit_reached", depth=depth, content_type=content_type)
        diagnostics.append(exc.diagnostic)
        children = []

    return MultipartPart(
        **common,
        children=tuple(children),
        diagnostics=tuple(diagnostics),
    )


def parse(raw: bytes, settings: Settings | None = None) -> Message:
    """Parse a raw RFC 822 message into a :class:`Message`.

    Args:
        raw: Message bytes as fetched from the store.
        settings: Parsing limits and charset fallback. If None, uses default settings.

    Returns:
        Message: The parsed tree. Problems are reported through diagnostics.
    """

    settings = settings or get_settings()
    limits = _Limits(
        max_depth=min(settings.max_depth, MAX_NESTING_DEPTH),
        max_header_bytes=settings.max_header_bytes,
        charset_fallback=settings.charset_fallback,
    )
    root = _parse_entity(_skip_mbox_separator(raw), limits, depth=0)
    message = Message(root=root)
    logger.debug(
        "message_parsed",
        content_type=root.content_type,
        size=len(raw),
        diagnostics=[d.value for d in message.diagnostics],
    )
    return message
