"""MIME tree to raw message bytes."""

from __future__ import annotations

import re
import uuid

import structlog

from termail.mime.headers import format_params
from termail.models import Headers, LeafPart, Message, MultipartPart, Part

logger = structlog.get_logger()

CRLF = b"\r\n"

_NEWLINE = re.compile(r"\r\n|\n|\r")


def new_boundary(avoid: bytes = b"") -> str:
    """Generate a boundary string that does not occur in ``avoid``."""
    while True:
        boundary = "=_" + uuid.uuid4().hex
        if boundary.encode("ascii") not in avoid:
            return boundary
        logger.debug("mime_boundary_collision", boundary=boundary)


def _header_value(value: str) -> str:
    """Keep folds and turn any other line break into a space."""
    pieces = _NEWLINE.split(value)
    out = pieces[0]
    for piece in pieces[1:]:
        out += ("\r\n" if piece[:1] in (" ", "\t") else " ") + piece
    return out


def _header_block(headers: Headers) -> bytes:
    lines = [f"{name}: {_header_value(value)}" for name, value in headers.items()]
    return "".join(line + "\r\n" for line in lines).encode("utf-8")


def serialize_part(part: Part) -> bytes:
    """Serialize one entity: its header block, a blank line, and its body."""
    if isinstance(part, LeafPart):
        return _header_block(part.headers) + CRLF + part.raw_body

    children = [serialize_part(child) for child in part.children]
    boundary = new_boundary(b"".join(children))
    params = {**part.params, "boundary": boundary}
    headers = part.headers.replace(
        "Content-Type", format_params(part.content_type, params, quote=("boundary",))
    )
    delimiter = b"--" + boundary.encode("ascii")

    body = bytearray()
    for child in children:
        body += delimiter + CRLF + child + CRLF
    body += delimiter + b"--" + CRLF
    return _header_block(headers) + CRLF + bytes(body)


def serialize(message: Message) -> bytes:
    """Serialize ``message`` with CRLF line endings.

    Multipart boundaries are generated anew on every call; the boundary a
    parsed tree arrived with is never reused.
    """

    data = serialize_part(message.root)
    logger.debug(
        "message_serialized",
        size=len(data),
        multipart=isinstance(message.root, MultipartPart),
    )
    return data
