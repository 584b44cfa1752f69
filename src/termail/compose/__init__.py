"""Outgoing message composition."""

from termail.compose.composer import (
    attachment_part,
    build_message,
    build_recipients,
    build_references,
    build_subject,
    compose,
    text_part,
)
from termail.compose.quoting import attribution, forward_block, quote_lines, reply_block

__all__ = [
    "attachment_part",
    "attribution",
    "build_message",
    "build_recipients",
    "build_references",
    "build_subject",
    "compose",
    "forward_block",
    "quote_lines",
    "reply_block",
    "text_part",
]
