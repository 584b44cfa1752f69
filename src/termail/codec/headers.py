"""RFC 2047 encoded words in header values."""

from __future__ import annotations

import re
from email.errors import HeaderParseError
from email.header import Header, decode_header

import structlog

from termail.codec.charset import text_codec
from termail.exceptions import UnsupportedCharset

logger = structlog.get_logger()

_ENCODED_WORD = re.compile(r"=\?([^?\s]+)\?([qQbB])\?([^?\s]*)\?=")
_FOLD = re.compile(r"\r?\n(?=[ \t])")


def _decode_word(charset: str, encoding: str, payload: str) -> str | None:
    label = charset.split("*", 1)[0]
    try:
        chunks = decode_header(f"=?{label}?{encoding}?{payload}?=")
    except HeaderParseError:
        return None

    data = b"".join(
        chunk if isinstance(chunk, bytes) else chunk.encode("ascii", "replace")
        for chunk, _ in chunks
    )
    try:
        codec = text_codec(label)
    except UnsupportedCharset:
        return None
    return data.decode(codec, errors="replace")


def decode_header_word(value: str) -> str:
    """Decode every encoded word in a raw header value.

    Plain segments are kept as they are. Whitespace that only separates two
    encoded words is dropped. An encoded word that cannot be decoded (bad
    payload or unknown charset) is passed through verbatim.
    """

    value = _FOLD.sub("", value)
    if "=?" not in value:
        return value

    out: list[str] = []
    position = 0
    previous_decoded = False
    for match in _ENCODED_WORD.finditer(value):
        between = value[position : match.start()]
        decoded = _decode_word(*match.groups())
        if not (previous_decoded and decoded is not None and between.isspace()):
            out.append(between)
        if decoded is None:
            logger.debug("encoded_word_passthrough", word=match.group(0))
            out.append(match.group(0))
        else:
            out.append(decoded)
        previous_decoded = decoded is not None
        position = match.end()
    out.append(value[position:])
    return "".join(out)


def _is_header_safe(text: str) -> bool:
    return all(" " <= ch <= "~" for ch in text) and "=?" not in text


def encode_header_word(text: str, header_name: str | None = None) -> str:
    """Encode ``text`` for a header only when it has to be.

    Printable ASCII comes back unchanged. Anything else becomes UTF-8 encoded
    words, folded with CRLF.
    """

    if _is_header_safe(text):
        return text
    return Header(text, charset="utf-8", header_name=header_name).encode(linesep="\r\n")
