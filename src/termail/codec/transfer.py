"""Content-Transfer-Encoding decode and encode.

Decoding is lenient about whitespace and padding but strict about the
alphabet: bytes that cannot be decoded are returned untouched with a
``malformed_encoding`` diagnostic so the caller still has something to show.
"""

from __future__ import annotations

import base64
import binascii
import re

import structlog

from termail.exceptions import MalformedEncoding
from termail.models.diagnostics import DecodeResult

logger = structlog.get_logger()

BASE64 = "base64"
QUOTED_PRINTABLE = "quoted-printable"
SEVEN_BIT = "7bit"
EIGHT_BIT = "8bit"
BINARY = "binary"

_IDENTITY_ENCODINGS = frozenset({"", SEVEN_BIT, EIGHT_BIT, BINARY})

_MAX_LINE = 76
_MAX_SMTP_LINE = 998

_WHITESPACE = re.compile(rb"\s+")
_BAD_QP_ESCAPE = re.compile(rb"=(?![0-9A-Fa-f]{2})")
_QP_ESCAPE = re.compile(rb"=([0-9A-Fa-f]{2})")
_LINE = re.compile(rb"([^\r\n]*)(\r\n|\n|\r(?!\n)|$)")
# Bare CR stays inside the line so the encoder quotes it.
_ENCODE_LINE = re.compile(rb"((?:[^\r\n]|\r(?!\n))*)(\r\n|\n|$)")


def normalize_transfer_encoding(value: str | None) -> str:
    """Lowercase a Content-Transfer-Encoding value; ``None`` becomes ``""``."""
    if not value:
        return ""
    return value.strip().strip('"').lower()


def _split_lines(data: bytes, pattern: re.Pattern[bytes] = _LINE) -> list[tuple[bytes, bytes]]:
    """Split into ``(content, line ending)`` pairs, keeping endings as found."""
    lines: list[tuple[bytes, bytes]] = []
    for match in pattern.finditer(data):
        content, ending = match.group(1), match.group(2)
        if not content and not ending:
            # Zero-width match at end of input.
            continue
        lines.append((content, ending))
    return lines


def _decode_base64(data: bytes) -> bytes:
    cleaned = _WHITESPACE.sub(b"", data)
    remainder = len(cleaned) % 4
    if remainder == 1:
        raise MalformedEncoding("base64 data has an impossible length")
    if remainder:
        cleaned += b"=" * (4 - remainder)
    try:
        return base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedEncoding(f"invalid base64 data: {exc}") from exc


def _decode_quoted_printable(data: bytes) -> bytes:
    out = bytearray()
    for content, ending in _split_lines(data):
        content = content.rstrip(b" \t")
        soft_break = content.endswith(b"=")
        if soft_break:
            content = content[:-1]
        bad = _BAD_QP_ESCAPE.search(content)
        if bad is not None:
            raise MalformedEncoding(
                f"invalid quoted-printable escape at offset {bad.start()}"
            )
        out += _QP_ESCAPE.sub(lambda m: bytes((int(m.group(1), 16),)), content)
        if not soft_break:
            out += ending
    return bytes(out)


def decode_body(data: bytes, transfer_encoding: str | None) -> DecodeResult[bytes]:
    """Reverse the transfer encoding of a part body.

    Args:
        data: Body bytes as found in the message.
        transfer_encoding: Content-Transfer-Encoding value, if any.

    Returns:
        DecodeResult whose value is the decoded bytes, or ``data`` unchanged
        with ``Diagnostic.MALFORMED_ENCODING`` when decoding failed.
    """

    encoding = normalize_transfer_encoding(transfer_encoding)
    try:
        if encoding == BASE64:
            return DecodeResult(_decode_base64(data))
        if encoding == QUOTED_PRINTABLE:
            return DecodeResult(_decode_quoted_printable(data))
    except MalformedEncoding as exc:
        logger.warning("transfer_decode_failed", encoding=encoding, error=str(exc))
        return DecodeResult(data, exc.diagnostic, str(exc))

    if encoding not in _IDENTITY_ENCODINGS:
        logger.debug("transfer_encoding_passthrough", encoding=encoding)
    return DecodeResult(data)


def _encode_base64(data: bytes) -> bytes:
    encoded = base64.b64encode(data)
    lines = [encoded[i : i + _MAX_LINE] for i in range(0, len(encoded), _MAX_LINE)]
    return b"\r\n".join(lines)


def _quote_byte(byte: int) -> bytes:
    return b"=%02X" % byte


def _encode_quoted_printable(data: bytes) -> bytes:
    out: list[bytes] = []
    for content, ending in _split_lines(data, _ENCODE_LINE):
        tokens: list[bytes] = []
        last = len(content) - 1
        for index, byte in enumerate(content):
            if byte in (0x20, 0x09):
                # Trailing whitespace would be stripped in transit.
                tokens.append(_quote_byte(byte) if index == last else bytes((byte,)))
            elif byte == 0x3D or byte < 0x20 or byte > 0x7E:
                tokens.append(_quote_byte(byte))
            else:
                tokens.append(bytes((byte,)))

        line = b""
        for token in tokens:
            if len(line) + len(token) > _MAX_LINE - 1:
                out.append(line + b"=\r\n")
                line = b""
            line += token
        out.append(line + ending)
    return b"".join(out)


def encode_body(
    data: str | bytes,
    transfer_encoding: str,
    charset: str = "utf-8",
) -> bytes:
    """Apply a transfer encoding to a body.

    Text is first encoded with ``charset``. Quoted-printable output keeps the
    input's own line endings so that decoding restores the exact bytes.
    """

    raw = data.encode(charset) if isinstance(data, str) else data
    encoding = normalize_transfer_encoding(transfer_encoding)
    if encoding == BASE64:
        return _encode_base64(raw)
    if encoding == QUOTED_PRINTABLE:
        return _encode_quoted_printable(raw)
    return raw


def choose_transfer_encoding(data: bytes, text: bool = True) -> str:
    """Pick the transfer encoding for an outgoing body.

    ASCII text with short lines goes out as ``7bit``, other text as
    quoted-printable, and anything that is not text as base64.
    """

    if not text:
        return BASE64
    if not data.isascii() or b"\x00" in data:
        return QUOTED_PRINTABLE
    if any(len(content) > _MAX_SMTP_LINE for content, _ in _split_lines(data)):
        return QUOTED_PRINTABLE
    return SEVEN_BIT
