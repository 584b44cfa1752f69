"""Charset name handling and bytes-to-text decoding."""

from __future__ import annotations

import codecs

import structlog

from termail.exceptions import UnsupportedCharset
from termail.models.diagnostics import DecodeResult, Diagnostic

logger = structlog.get_logger()

DEFAULT_FALLBACK = "windows-1252"

# Labels seen in the wild that either have no Python codec or are better
# served by a superset codec.
_ALIASES = {
    "us-ascii": "utf-8",
    "ascii": "utf-8",
    "ansi_x3.4-1968": "utf-8",
    "iso-8859-1": "windows-1252",
    "iso8859-1": "windows-1252",
    "latin1": "windows-1252",
    "latin-1": "windows-1252",
    "iso-8859-8-i": "iso-8859-8",
    "ks_c_5601-1987": "euc-kr",
    "gb2312": "gb18030",
    "gbk": "gb18030",
    "x-sjis": "shift_jis",
    "utf8": "utf-8",
}

_UNKNOWN = frozenset({"unknown", "unknown-8bit", "x-unknown", "default"})


def normalize_charset(name: str | None) -> str:
    """Map a declared charset label to the codec name used for decoding.

    A missing label means ``us-ascii``, which decodes as UTF-8 since that is
    a strict superset and many senders mislabel 8-bit text as ASCII.
    """

    if not name:
        return "utf-8"
    label = name.strip().strip("\"'").lower()
    # RFC 2231 language suffix, e.g. "utf-8*en".
    label = label.split("*", 1)[0]
    return _ALIASES.get(label, label)


def text_codec(name: str | None) -> str:
    """Return a usable text codec name for ``name``.

    Raises:
        UnsupportedCharset: If Python has no text codec under that name.
    """

    label = normalize_charset(name)
    if not label or label in _UNKNOWN:
        raise UnsupportedCharset(f"unknown charset {name!r}")
    try:
        info = codecs.lookup(label)
    except (LookupError, ValueError) as exc:
        raise UnsupportedCharset(f"unknown charset {name!r}") from exc
    try:
        b"".decode(info.name)
    except LookupError as exc:
        # bytes-to-bytes codecs such as base64_codec or rot13.
        raise UnsupportedCharset(f"{name!r} is not a text encoding") from exc
    return info.name


def bytes_to_text(
    data: bytes,
    charset: str | None = None,
    fallback: str = DEFAULT_FALLBACK,
) -> DecodeResult[str]:
    """Decode body bytes to text without ever failing.

    Args:
        data: Transfer-decoded body bytes.
        charset: Declared charset label, if any.
        fallback: Codec used when ``charset`` is unknown.

    Returns:
        DecodeResult with the text. ``UNSUPPORTED_CHARSET`` is set when the
        fallback was used; ``MALFORMED_TEXT`` when invalid sequences were
        replaced with U+FFFD.
    """

    diagnostic: Diagnostic | None = None
    detail: str | None = None
    try:
        codec = text_codec(charset)
    except UnsupportedCharset as exc:
        logger.info("charset_fallback", charset=charset, fallback=fallback)
        diagnostic, detail = exc.diagnostic, str(exc)
        try:
            codec = text_codec(fallback)
        except UnsupportedCharset:
            codec = DEFAULT_FALLBACK

    try:
        return DecodeResult(data.decode(codec), diagnostic, detail)
    except UnicodeDecodeError as exc:
        logger.debug("charset_replacement", charset=codec, position=exc.start)
        text = data.decode(codec, errors="replace")
        if diagnostic is None:
            diagnostic, detail = Diagnostic.MALFORMED_TEXT, str(exc)
        return DecodeResult(text, diagnostic, detail)


def can_encode(text: str, charset: str) -> bool:
    """Return whether ``text`` is representable in ``charset``.

    Unlike decoding, no superset aliasing applies: ``us-ascii`` means ASCII.
    """
    try:
        text.encode(charset.strip().lower())
    except (LookupError, ValueError):
        return False
    return True
