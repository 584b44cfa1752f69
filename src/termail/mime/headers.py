"""Header block splitting and structured field parsing.

Covers the header/body split, unfolding, and the parameterised fields
``Content-Type`` and ``Content-Disposition`` including RFC 2231 parameter
continuations and charsets.
"""

from __future__ import annotations

import re
from email.utils import encode_rfc2231
from urllib.parse import unquote_to_bytes

from termail.codec.charset import bytes_to_text
from termail.codec.headers import decode_header_word
from termail.exceptions import TruncatedMessage
from termail.models.headers import Headers
from termail.models.parts import Disposition
from termail.utils import strip_control_chars

DEFAULT_CONTENT_TYPE = "text/plain"
DEFAULT_PARAMS = {"charset": "us-ascii"}

_FIELD_NAME = re.compile(rb"[!-9;-~]+[ \t]*:")
_UNFOLD = re.compile(r"\r?\n(?=[ \t])")
_CONTINUATION = re.compile(r"([^*]+)\*(\d+)(\*?)")
_TOKEN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
_QUOTED_PAIR = re.compile(r"\\(.)")


def split_header_block(data: bytes, max_bytes: int) -> tuple[list[bytes], bytes]:
    """Split raw entity bytes into header lines and the body.

    Continuation lines are appended to the field they continue, line endings
    included, so each returned item is one complete (still folded) field.

    Raises:
        TruncatedMessage: If no blank line ends the header block within
            ``max_bytes``, or a line that is neither a field nor a
            continuation appears before it.
    """

    fields: list[bytes] = []
    position = 0
    while True:
        if position >= len(data):
            raise TruncatedMessage("no blank line after the header block")
        if position > max_bytes:
            raise TruncatedMessage(f"no header/body separator within {max_bytes} bytes")

        newline = data.find(b"\n", position)
        end = len(data) if newline == -1 else newline + 1
        line = data[position:end]
        content = line.rstrip(b"\r\n")

        if not content:
            return fields, data[end:]
        if content[:1] in (b" ", b"\t"):
            if not fields:
                raise TruncatedMessage("continuation line before any header field")
            fields[-1] += line
        elif _FIELD_NAME.match(content):
            fields.append(line)
        else:
            raise TruncatedMessage("line in header block is not a header field")
        position = end


def _decode_field(raw: bytes, fallback: str) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return bytes_to_text(raw, fallback, fallback).value


def build_headers(fields: list[bytes], fallback: str) -> Headers:
    """Turn folded field lines into an unfolded :class:`Headers` block."""
    pairs: list[tuple[str, str]] = []
    for raw in fields:
        text = _UNFOLD.sub("", _decode_field(raw, fallback).rstrip("\r\n"))
        name, _, value = text.partition(":")
        pairs.append((name.strip(), value.strip()))
    return Headers(fields=tuple(pairs))


def _split_segments(value: str) -> list[str]:
    """Split a structured field on ``;`` outside of quoted strings."""
    segments: list[str] = []
    current: list[str] = []
    quoted = False
    escaped = False
    for ch in value:
        if escaped:
            current.append(ch)
            escaped = False
            continue
        if ch == "\\" and quoted:
            current.append(ch)
            escaped = True
            continue
        if ch == '"':
            quoted = not quoted
        elif ch == ";" and not quoted:
            segments.append("".join(current))
            current = []
            continue
        current.append(ch)
    segments.append("".join(current))
    return segments


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return _QUOTED_PAIR.sub(r"\1", value[1:-1])
    return value


def _join_extended(pieces: list[tuple[int, bool, str]]) -> str:
    """Reassemble RFC 2231 ``name*0*=``/``name*1=`` pieces into text."""
    charset: str | None = None
    data = bytearray()
    for position, (_, encoded, value) in enumerate(sorted(pieces)):
        value = _unquote(value)
        if encoded:
            if position == 0:
                head = value.split("'", 2)
                if len(head) == 3:
                    charset, value = head[0] or None, head[2]
            data += unquote_to_bytes(value)
        else:
            data += value.encode("utf-8")
    return bytes_to_text(bytes(data), charset).value


def parse_params(segments: list[str]) -> dict[str, str]:
    """Parse ``key=value`` segments into an ordered, lowercase-keyed mapping.

    The first occurrence of a key wins. RFC 2231 extended and continued
    parameters are decoded and merged under their base name.
    """

    params: dict[str, str] = {}
    extended: dict[str, list[tuple[int, bool, str]]] = {}
    for segment in segments:
        key, sep, value = segment.partition("=")
        key = key.strip().lower()
        if not sep or not key:
            continue

        match = _CONTINUATION.fullmatch(key)
        if match is not None:
            base = match.group(1)
            extended.setdefault(base, []).append(
                (int(match.group(2)), bool(match.group(3)), value)
            )
            params.setdefault(base, "")
        elif key.endswith("*"):
            base = key[:-1]
            extended.setdefault(base, []).append((0, True, value))
            params.setdefault(base, "")
        elif key not in params:
            params[key] = _unquote(value)

    for base, pieces in extended.items():
        params[base] = _join_extended(pieces)
    return params


def parse_content_type(value: str | None) -> tuple[str, dict[str, str]]:
    """Parse a Content-Type value into ``(type/subtype, params)``.

    Missing or malformed values yield ``text/plain; charset=us-ascii``.
    """

    if not value:
        return DEFAULT_CONTENT_TYPE, dict(DEFAULT_PARAMS)
    segments = _split_segments(value)
    content_type = segments[0].strip().lower()
    maintype, sep, subtype = content_type.partition("/")
    if not sep or not _TOKEN.fullmatch(maintype) or not _TOKEN.fullmatch(subtype):
        return DEFAULT_CONTENT_TYPE, dict(DEFAULT_PARAMS)
    return content_type, parse_params(segments[1:])


def parse_disposition(value: str | None) -> tuple[Disposition | None, dict[str, str]]:
    """Parse a Content-Disposition value.

    Unknown disposition types count as ``attachment``, as RFC 2183 asks.
    """

    if not value:
        return None, {}
    segments = _split_segments(value)
    kind = segments[0].strip().lower()
    params = parse_params(segments[1:])
    if not kind:
        return None, params
    if kind == Disposition.INLINE.value:
        return Disposition.INLINE, params
    return Disposition.ATTACHMENT, params


def part_filename(params: dict[str, str], disposition_params: dict[str, str]) -> str | None:
    """Pick the decoded filename of a part, without control characters or directories."""
    raw = disposition_params.get("filename") or params.get("name")
    if not raw:
        return None
    name = strip_control_chars(decode_header_word(raw)).replace("\n", " ").replace("\t", " ")
    name = name.replace("\\", "/").rsplit("/", 1)[-1].strip()
    return name or None


def _format_param(key: str, value: str) -> str:
    if not value.isascii():
        return f"{key}*={encode_rfc2231(value, 'utf-8')}"
    if _TOKEN.fullmatch(value):
        return f"{key}={value}"
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'{key}="{escaped}"'


def format_params(head: str, params: dict[str, str], quote: tuple[str, ...] = ()) -> str:
    """Format ``head; key=value; ...`` for Content-Type or Content-Disposition.

    Keys listed in ``quote`` are always written as quoted strings.
    """

    items = [head]
    for key, value in params.items():
        if key in quote and value.isascii():
            escaped = value.replace("\\", "\\\\").replace('"', '\\"')
            items.append(f'{key}="{escaped}"')
        else:
            items.append(_format_param(key, value))
    return "; ".join(items)
