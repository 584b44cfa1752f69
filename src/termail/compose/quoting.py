"""Reply quoting and forward blocks built from a parent message."""

from __future__ import annotations

from email.utils import format_datetime

from termail.models import Message

FORWARD_SEPARATOR = "-------- Forwarded Message --------"
ATTRIBUTION_DATE_FORMAT = "%d %b %Y, at %H:%M"


def _first_correspondent(parent: Message) -> str:
    addresses = parent.reply_to or parent.addresses("From")
    if not addresses:
        return "unknown sender"
    name, address = addresses[0]
    return name or address


def attribution(parent: Message) -> str:
    """The ``On <date>, <sender> wrote:`` line introducing a quote."""
    date = parent.date
    when = date.strftime(ATTRIBUTION_DATE_FORMAT) if date else "unknown date"
    return f"On {when}, {_first_correspondent(parent)} wrote:"


def quote_lines(text: str, signature_delimiter: str = "-- ") -> str:
    """Prefix every line of ``text`` with ``>``, stopping at the signature.

    Lines that already start with ``>`` get no extra space so nested quotes
    read ``>>``.
    """

    delimiter = signature_delimiter.rstrip()
    quoted: list[str] = []
    for line in text.strip().split("\n"):
        if delimiter and line.rstrip() == delimiter:
            break
        if not line:
            quoted.append(">")
        elif line.startswith(">"):
            quoted.append(">" + line)
        else:
            quoted.append("> " + line)
    while quoted and quoted[-1] == ">":
        quoted.pop()
    return "\n".join(quoted)


def reply_block(parent: Message, parent_text: str, signature_delimiter: str = "-- ") -> str:
    return f"{attribution(parent)}\n{quote_lines(parent_text, signature_delimiter)}"


def _address_list(pairs: list[tuple[str, str]]) -> str:
    return ", ".join(f"{name} <{address}>" if name else address for name, address in pairs)


def forward_block(parent: Message, parent_text: str) -> str:
    """The forwarded-message header summary followed by the parent text."""
    lines = [FORWARD_SEPARATOR, f"Subject: {parent.subject}"]
    if parent.date is not None:
        lines.append(f"Date: {format_datetime(parent.date)}")
    senders = parent.reply_to or parent.addresses("From")
    if senders:
        lines.append(f"From: {_address_list(senders)}")
    if parent.to:
        lines.append(f"To: {_address_list(parent.to)}")
    lines.append("")
    lines.append(parent_text)
    return "\n".join(lines)
