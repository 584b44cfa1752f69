"""Content type confirmation for leaf parts.

Senders routinely label attachments ``application/octet-stream`` or give a
text type to binary data. The classifier trusts a declared type only when it
is specific and agrees with the bytes, and otherwise asks libmagic about the
leading bytes, then the filename extension, then a plain-text heuristic. It
never fails: unknown content is ``application/octet-stream``.
"""

from __future__ import annotations

import mimetypes

import magic
import structlog

from termail.models import Disposition, LeafPart, Part

logger = structlog.get_logger()

OCTET_STREAM = "application/octet-stream"

GENERIC_TYPES = frozenset({OCTET_STREAM, "application/unknown", "binary/octet-stream"})

_SNIFF_BYTES = 4096
_MAGIC_BYTES = 8192

# libmagic answers that carry no more than the text heuristic does.
_UNINFORMATIVE = GENERIC_TYPES | {"application/x-empty", "inode/x-empty", "text/plain"}

_MAGIC_ALIASES = {
    "application/csv": "text/csv",
    "application/cdfv2": "application/x-ole-storage",
    "application/cdfv2-corrupt": "application/x-ole-storage",
    "application/vnd.ms-office": "application/x-ole-storage",
    "image/x-ms-bmp": "image/bmp",
}

# Two-byte signatures that ordinary words also start with.
_WEAK_SIGNATURES = frozenset({"application/x-dosexec", "image/bmp"})

# Containers whose real type is better told by the extension.
_CONTAINERS = frozenset({"application/zip", "application/x-ole-storage"})

_TEXT_BOMS = (b"\xef\xbb\xbf", b"\xff\xfe", b"\xfe\xff")

_NOT_DISPLAYABLE_TEXT = frozenset(
    {"text/calendar", "text/vcard", "text/x-vcard", "text/directory", "text/rtf"}
)


def is_text_displayable(content_type: str) -> bool:
    """Return whether a part of this type may be shown inline as text."""
    content_type = content_type.lower()
    return content_type.startswith("text/") and content_type not in _NOT_DISPLAYABLE_TEXT


def looks_like_text(data: bytes) -> bool:
    """Heuristic: no NUL bytes and few control characters in the head of ``data``."""
    head = data[:_SNIFF_BYTES]
    if not head:
        return True
    if head.startswith(_TEXT_BOMS):
        return True
    if b"\x00" in head:
        return False
    try:
        head.decode("utf-8")
    except UnicodeDecodeError as exc:
        # A multibyte sequence cut off by the sniff window is still text.
        if exc.start < len(head) - 3:
            return _mostly_printable(head)
    return True


def _mostly_printable(head: bytes) -> bool:
    control = sum(1 for byte in head if byte < 0x20 and byte not in (0x09, 0x0A, 0x0C, 0x0D))
    return control / len(head) < 0.05


def _markup_type(head: bytes) -> str | None:
    lead = head[:256].lstrip().lower()
    if lead.startswith((b"<!doctype html", b"<html")):
        return "text/html"
    if lead.startswith(b"<?xml"):
        return "application/xml"
    return None


def sniff_signature(data: bytes) -> str | None:
    """Identify ``data`` from its leading bytes with libmagic.

    Returns None when libmagic sees nothing more specific than plain text or
    generic binary data; the caller settles those cases.
    """

    head = data[:_MAGIC_BYTES]
    if not head:
        return None
    try:
        detected = magic.from_buffer(head, mime=True).lower()
    except magic.MagicException as exc:
        logger.warning("content_sniff_failed", error=str(exc))
        return _markup_type(head)

    detected = _MAGIC_ALIASES.get(detected, detected)
    if detected in _UNINFORMATIVE or "/" not in detected:
        return _markup_type(head)
    if detected in _WEAK_SIGNATURES and looks_like_text(head):
        return None
    return detected


def guess_from_filename(filename: str | None) -> str | None:
    if not filename:
        return None
    guessed, _ = mimetypes.guess_type(filename, strict=False)
    return guessed


def _trusted(declared: str, data: bytes) -> bool:
    if declared in GENERIC_TYPES or "/" not in declared:
        return False
    if declared.startswith("multipart/"):
        return False
    # Text that is really binary must never reach the terminal.
    if declared.startswith("text/") and not looks_like_text(data):
        return False
    return True


def classify_bytes(
    data: bytes,
    filename: str | None = None,
    declared: str | None = None,
    disposition: Disposition | None = None,
) -> str:
    """Confirm the content type of a body.

    Args:
        data: Decoded body bytes.
        filename: Filename hint, used for the extension lookup.
        declared: Content type the sender declared, if any.
        disposition: Declared disposition of the part.

    Returns:
        str: Lowercase ``type/subtype``. Never empty.
    """

    declared = declared.lower() if declared else None
    if declared and _trusted(declared, data):
        return declared

    by_extension = guess_from_filename(filename)
    sniffed = sniff_signature(data)
    if sniffed in _CONTAINERS and by_extension:
        result = by_extension
    elif sniffed and sniffed.startswith("text/") and (by_extension or "").startswith("text/"):
        result = by_extension
    elif sniffed:
        result = sniffed
    elif by_extension and (looks_like_text(data) or not by_extension.startswith("text/")):
        result = by_extension
    elif looks_like_text(data):
        result = "text/plain"
    else:
        result = OCTET_STREAM

    logger.debug(
        "content_type_sniffed",
        declared=declared,
        confirmed=result,
        disposition=disposition.value if disposition else None,
        has_filename=filename is not None,
    )
    return result


def classify(part: Part, filename: str | None = None) -> str:
    """Confirm the content type of ``part``.

    Multipart containers keep their declared type. For leaves the declared
    type only counts when a ``Content-Type`` header was actually present.
    """

    if not isinstance(part, LeafPart):
        return part.content_type
    declared = part.content_type if "Content-Type" in part.headers else None
    return classify_bytes(
        part.decoded_body,
        filename=filename or part.filename,
        declared=declared,
        disposition=part.disposition,
    )
