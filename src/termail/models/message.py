"""Message and attachment descriptor models."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime
from email.utils import getaddresses, parsedate_to_datetime

from pydantic import BaseModel, ConfigDict, Field

from termail.codec.headers import decode_header_word
from termail.models.diagnostics import Diagnostic
from termail.models.headers import Headers
from termail.models.parts import Disposition, LeafPart, MultipartPart, Part

PartPath = tuple[int, ...]


def _parse_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, OverflowError, IndexError):
        return None


def _split_ids(value: str | None) -> list[str]:
    if not value:
        return []
    ids: list[str] = []
    for token in value.replace(",", " ").split():
        if token and token not in ids:
            ids.append(token)
    return ids


class AttachmentDescriptor(BaseModel):
    """Summary of one attachment found in a message.

    The descriptor does not hold the attachment bytes; ``part_path`` points
    back into the owning :class:`Message`, see :meth:`Message.attachment_bytes`.
    """

    model_config = ConfigDict(frozen=True)

    filename: str = Field(description="Decoded filename or a generated placeholder")
    content_type: str = Field(description="Classifier-confirmed content type")
    declared_type: str = Field(description="Content type as declared by the sender")
    size_bytes: int = Field(ge=0, description="Size of the decoded body")
    part_path: PartPath = Field(description="Child indexes from the root to the part")
    disposition: Disposition | None = Field(default=None, description="Declared disposition")


class Message(BaseModel):
    """A parsed or composed message: the root part and its header block."""

    model_config = ConfigDict(frozen=True)

    root: Part = Field(description="Root of the MIME tree")

    @property
    def headers(self) -> Headers:
        return self.root.headers

    def header(self, name: str) -> str | None:
        """Return the decoded value of the first ``name`` field."""
        value = self.headers.get(name)
        return decode_header_word(value) if value is not None else None

    @property
    def subject(self) -> str:
        return self.header("Subject") or ""

    @property
    def sender(self) -> str | None:
        return self.header("From")

    @property
    def date(self) -> datetime | None:
        return _parse_date(self.headers.get("Date"))

    @property
    def message_id(self) -> str | None:
        value = self.headers.get("Message-ID")
        return value.strip() if value else None

    @property
    def in_reply_to(self) -> str | None:
        value = self.headers.get("In-Reply-To")
        return value.strip() if value else None

    @property
    def references(self) -> list[str]:
        return _split_ids(self.headers.get("References"))

    def addresses(self, name: str) -> list[tuple[str, str]]:
        """Return ``(display name, address)`` pairs from every ``name`` field."""
        values = self.headers.get_all(name)
        if not values:
            return []
        return [
            (decode_header_word(display), addr)
            for display, addr in getaddresses(values)
            if addr
        ]

    @property
    def to(self) -> list[tuple[str, str]]:
        return self.addresses("To")

    @property
    def cc(self) -> list[tuple[str, str]]:
        return self.addresses("Cc")

    @property
    def reply_to(self) -> list[tuple[str, str]]:
        return self.addresses("Reply-To")

    def walk(self) -> Iterator[tuple[PartPath, Part]]:
        """Yield ``(path, part)`` for every part, depth first, root first."""
        stack: list[tuple[PartPath, Part]] = [((), self.root)]
        while stack:
            path, part = stack.pop()
            yield path, part
            if isinstance(part, MultipartPart):
                for index in range(len(part.children) - 1, -1, -1):
                    stack.append(((*path, index), part.children[index]))

    def part_at(self, path: PartPath) -> Part:
        part: Part = self.root
        for index in path:
            if not isinstance(part, MultipartPart):
                raise KeyError(path)
            try:
                part = part.children[index]
            except IndexError:
                raise KeyError(path) from None
        return part

    def attachment_bytes(self, descriptor: AttachmentDescriptor) -> bytes:
        part = self.part_at(descriptor.part_path)
        if not isinstance(part, LeafPart):
            raise KeyError(descriptor.part_path)
        return part.decoded_body

    @property
    def diagnostics(self) -> list[Diagnostic]:
        """Every recovered problem in the tree, in walk order."""
        found: list[Diagnostic] = []
        for _, part in self.walk():
            found.extend(part.diagnostics)
        return found
