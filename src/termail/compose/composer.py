"""Build outgoing messages from a :class:`ComposeRequest`."""

from __future__ import annotations

import os
from email.utils import formataddr, formatdate, getaddresses, make_msgid
from pathlib import Path

import structlog

from termail.codec.charset import can_encode
from termail.codec.headers import encode_header_word
from termail.codec.transfer import (
    BASE64,
    QUOTED_PRINTABLE,
    choose_transfer_encoding,
    encode_body,
)
from termail.compose.quoting import forward_block, reply_block
from termail.config import Settings, get_settings
from termail.exceptions import AttachmentUnreadable
from termail.extract import extract
from termail.mime.classifier import classify_bytes
from termail.mime.headers import format_params
from termail.mime.serializer import serialize
from termail.models import (
    AccountDefaults,
    ComposeRequest,
    Disposition,
    Headers,
    LeafPart,
    Message,
    MultipartPart,
)
from termail.utils import FORWARD_PREFIX, REPLY_PREFIX, normalize_newlines, prefix_subject

logger = structlog.get_logger()

MIME_VERSION = "1.0"


def build_subject(request: ComposeRequest) -> str:
    """Explicit subject, or the parent subject with one ``Re:``/``Fwd:`` prefix."""
    if request.subject is not None:
        return request.subject
    if request.parent is None:
        return ""
    if request.forward:
        return prefix_subject(request.parent.subject, "Fwd:", FORWARD_PREFIX)
    return prefix_subject(request.parent.subject, "Re:", REPLY_PREFIX)


def build_references(parent: Message) -> list[str]:
    """The parent's reference chain with the parent id appended, deduplicated."""
    chain = parent.references
    if not chain and parent.in_reply_to:
        chain = [parent.in_reply_to]
    if parent.message_id:
        chain = [*chain, parent.message_id]
    seen: list[str] = []
    for message_id in chain:
        if message_id not in seen:
            seen.append(message_id)
    return seen


def _without_own(
    pairs: list[tuple[str, str]], own: str | None, seen: set[str]
) -> list[tuple[str, str]]:
    kept: list[tuple[str, str]] = []
    for name, address in pairs:
        key = address.lower()
        if not key or (own and key == own.lower()) or key in seen:
            continue
        seen.add(key)
        kept.append((name, address))
    return kept


def build_recipients(
    request: ComposeRequest,
) -> tuple[list[tuple[str, str]], list[tuple[str, str]]]:
    """Work out ``(to, cc)`` as ``(display name, address)`` pairs.

    Explicit addresses win. A reply goes to the parent's Reply-To or From; a
    reply-all also keeps the parent's To and Cc. The account's own address is
    never a recipient.
    """

    own = request.account.address
    seen: set[str] = set()
    if request.to:
        to = _without_own(getaddresses(list(request.to)), None, seen)
    elif request.parent is not None and not request.forward:
        parent = request.parent
        targets = parent.reply_to or parent.addresses("From")
        if not request.reply_all:
            targets = targets[:1]
        else:
            targets = targets + parent.to
        to = _without_own(targets, own, seen)
    else:
        to = []

    if request.cc:
        cc = _without_own(getaddresses(list(request.cc)), None, seen)
    elif request.parent is not None and request.reply_all and not request.forward:
        cc = _without_own(request.parent.cc, own, seen)
    else:
        cc = []
    return to, cc


def format_address(pair: tuple[str, str]) -> str:
    """Format one mailbox for a header, keeping a non-ASCII address as raw UTF-8."""
    try:
        return formataddr(pair, charset="utf-8")
    except UnicodeEncodeError:
        name, address = pair
        logger.warning("non_ascii_address", address=address)
        if not name:
            return address
        return formataddr((name, ""), charset="utf-8").removesuffix("<>") + f"<{address}>"


def _format_addresses(pairs: list[tuple[str, str]]) -> str:
    return ", ".join(format_address(pair) for pair in pairs)


def build_body(request: ComposeRequest, settings: Settings) -> str:
    """User text, then the quoted or forwarded parent, then the signature."""
    account = request.account
    sections = [normalize_newlines(request.body).rstrip("\n")]

    if request.parent is not None:
        parent_text = extract(request.parent, settings).text
        if request.forward:
            sections.append(forward_block(request.parent, parent_text))
        else:
            sections.append(
                reply_block(request.parent, parent_text, account.signature_delimiter)
            )

    if account.signature:
        signature = normalize_newlines(account.signature).strip("\n")
        if signature.split("\n", 1)[0].rstrip() != account.signature_delimiter.rstrip():
            signature = f"{account.signature_delimiter}\n{signature}"
        sections.append(signature)

    return "\n\n".join(sections) + "\n"


def text_part(body: str, account: AccountDefaults) -> LeafPart:
    """A ``text/plain`` leaf for ``body`` with CRLF line endings."""
    text = normalize_newlines(body).replace("\n", "\r\n")
    if text.isascii():
        charset = "us-ascii"
        data = text.encode("ascii")
        transfer_encoding = choose_transfer_encoding(data)
    else:
        charset = account.charset if can_encode(text, account.charset) else "utf-8"
        data = text.encode(charset)
        transfer_encoding = QUOTED_PRINTABLE

    params = {"charset": charset}
    headers = Headers(
        fields=(
            ("Content-Type", format_params("text/plain", params)),
            ("Content-Transfer-Encoding", transfer_encoding),
        )
    )
    return LeafPart(
        headers=headers,
        content_type="text/plain",
        params=params,
        transfer_encoding=transfer_encoding,
        raw_body=encode_body(data, transfer_encoding),
        decoded_body=data,
        text=text,
    )


def resolve_attachment_path(path: Path) -> Path:
    """Expand ``~`` and environment variables in an attachment path."""
    return Path(os.path.expandvars(os.path.expanduser(str(path))))


def attachment_part(path: Path) -> LeafPart:
    """Read ``path`` into a base64 attachment leaf.

    Raises:
        AttachmentUnreadable: If the file cannot be read.
    """

    resolved = resolve_attachment_path(path)
    try:
        data = resolved.read_bytes()
    except OSError as e:
        logger.error("attachment_unreadable", path=str(resolved), error=str(e))
        raise AttachmentUnreadable(str(resolved), e.strerror or str(e)) from e

    filename = resolved.name
    content_type = classify_bytes(data, filename=filename)
    header_filename = filename if filename.isascii() else (
        encode_header_word(filename).replace("\r\n", "")
    )
    headers = Headers(
        fields=(
            ("Content-Type", format_params(content_type, {"name": header_filename}, ("name",))),
            (
                "Content-Disposition",
                format_params("attachment", {"filename": header_filename}, ("filename",)),
            ),
            ("Content-Transfer-Encoding", BASE64),
        )
    )
    logger.debug(
        "attachment_added",
        filename=filename,
        content_type=content_type,
        size=len(data),
    )
    return LeafPart(
        headers=headers,
        content_type=content_type,
        params={"name": filename},
        disposition=Disposition.ATTACHMENT,
        filename=filename,
        transfer_encoding=BASE64,
        raw_body=encode_body(data, BASE64),
        decoded_body=data,
    )


def _message_headers(request: ComposeRequest) -> list[tuple[str, str]]:
    account = request.account
    to, cc = build_recipients(request)
    fields = [("Date", formatdate(localtime=True))]

    if account.address:
        fields.append(("From", format_address((account.display_name or "", account.address))))
    else:
        logger.warning("compose_without_sender")
    if to:
        fields.append(("To", _format_addresses(to)))
    if cc:
        fields.append(("Cc", _format_addresses(cc)))
    fields.append(("Subject", encode_header_word(build_subject(request), "Subject")))

    domain = account.address.rpartition("@")[2] if account.address else None
    fields.append(("Message-ID", make_msgid(domain=domain or None)))

    parent = request.parent
    if parent is not None:
        if not request.forward and parent.message_id:
            fields.append(("In-Reply-To", parent.message_id))
        references = build_references(parent)
        if references:
            fields.append(("References", " ".join(references)))

    fields.append(("MIME-Version", MIME_VERSION))
    return fields


def build_message(request: ComposeRequest, settings: Settings | None = None) -> Message:
    """Assemble the outgoing MIME tree for ``request``.

    Args:
        request: Body, attachments, parent message and account defaults.
        settings: Used to extract the parent text. If None, uses default settings.

    Returns:
        Message: A single text/plain leaf, or multipart/mixed with the text
            first and one leaf per attachment.

    Raises:
        AttachmentUnreadable: If any attachment file cannot be read.
    """

    settings = settings or get_settings()
    attachments = [attachment_part(path) for path in request.attachments]
    body = text_part(build_body(request, settings), request.account)
    fields = _message_headers(request)

    if not attachments:
        headers = Headers(fields=(*fields, *body.headers.fields))
        return Message(root=body.model_copy(update={"headers": headers}))

    headers = Headers(fields=(*fields, ("Content-Type", "multipart/mixed")))
    root = MultipartPart(
        headers=headers,
        content_type="multipart/mixed",
        children=(body, *attachments),
    )
    return Message(root=root)


def compose(request: ComposeRequest, settings: Settings | None = None) -> bytes:
    """Build and serialize an outgoing message, ready for a transport."""
    message = build_message(request, settings)
    data = serialize(message)
    logger.info(
        "message_composed",
        attachments=len(request.attachments),
        reply=request.parent is not None and not request.forward,
        forward=request.forward,
        size=len(data),
    )
    return data
