"""Interfaces to the mail store and the delivery transport.

Network sessions (IMAP, JMAP, SMTP, ...) live outside termail. They are
plugged in through the :class:`MailStore` and :class:`MailTransport`
protocols, which deal in opaque RFC 822 bytes only. The directory-backed
implementations here keep the CLI usable offline.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import structlog

from termail.config import Settings, get_settings
from termail.exceptions import StoreError
from termail.mime import parse

logger = structlog.get_logger()

MESSAGE_SUFFIX = ".eml"


@dataclass(frozen=True)
class Envelope:
    """Summary of one stored message, as shown in a listing."""

    identifier: str
    subject: str
    sender: str | None
    date: datetime | None


class MailStore(Protocol):
    """Read side of a mail session."""

    def fetch_raw_message(self, mailbox: str, identifier: str) -> bytes: ...

    def list_envelopes(self, mailbox: str, query: str | None = None) -> list[Envelope]: ...


class MailTransport(Protocol):
    """Delivery side of a mail session."""

    def submit_message(self, data: bytes) -> bool: ...


def _safe_name(name: str, what: str) -> str:
    if name in ("", ".") and what == "mailbox":
        return ""
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise StoreError(f"invalid {what} name: {name!r}")
    return name


class DirectoryMailStore:
    """Mail store over a directory tree of ``.eml`` files.

    Each subdirectory of ``root`` is a mailbox; the empty mailbox name means
    ``root`` itself. A message identifier is its file name.
    """

    def __init__(self, root: Path, settings: Settings | None = None) -> None:
        """Create a store.

        Args:
            root: Directory holding the mailboxes.
            settings: Used to parse messages for listings. If None, uses default settings.
        """

        self._root = root
        self._settings = settings or get_settings()

    def _mailbox_dir(self, mailbox: str) -> Path:
        directory = self._root / _safe_name(mailbox, "mailbox")
        if not directory.is_dir():
            raise StoreError(f"mailbox not found: {mailbox or str(self._root)!r}")
        return directory

    def fetch_raw_message(self, mailbox: str, identifier: str) -> bytes:
        path = self._mailbox_dir(mailbox) / _safe_name(identifier, "message")
        if not path.suffix:
            path = path.with_suffix(MESSAGE_SUFFIX)
        try:
            return path.read_bytes()
        except OSError as e:
            logger.error("store_read_failed", path=str(path), error=str(e))
            raise StoreError(f"cannot read message {identifier!r}: {e}") from e

    def list_envelopes(self, mailbox: str, query: str | None = None) -> list[Envelope]:
        """List messages in ``mailbox``, newest first.

        Args:
            mailbox: Mailbox name, or ``""`` for the store root.
            query: Case-insensitive text matched against subject and sender.

        Returns:
            list[Envelope]: Matching envelopes. Undated messages sort last.
        """

        needle = query.lower() if query else None
        envelopes: list[Envelope] = []
        for path in sorted(self._mailbox_dir(mailbox).glob(f"*{MESSAGE_SUFFIX}")):
            message = parse(self.fetch_raw_message(mailbox, path.name), self._settings)
            envelope = Envelope(
                identifier=path.name,
                subject=message.subject,
                sender=message.sender,
                date=message.date,
            )
            if needle and needle not in f"{envelope.subject}\n{envelope.sender or ''}".lower():
                continue
            envelopes.append(envelope)

        envelopes.sort(key=_envelope_sort_key, reverse=True)
        logger.info("store_listed", mailbox=mailbox, count=len(envelopes), query=query)
        return envelopes


def _envelope_sort_key(envelope: Envelope) -> tuple[bool, float]:
    if envelope.date is None:
        return (False, 0.0)
    date = envelope.date
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return (True, date.timestamp())


class DirectoryOutbox:
    """Transport that writes every submitted message to its own ``.eml`` file."""

    def __init__(self, root: Path) -> None:
        self._root = root
        self.last_path: Path | None = None

    def submit_message(self, data: bytes) -> bool:
        """Store ``data`` in the outbox.

        Returns:
            bool: True once the message is written.

        Raises:
            StoreError: If the outbox directory or file cannot be written.
        """

        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
        path = self._root / f"{stamp}-{uuid.uuid4().hex[:12]}{MESSAGE_SUFFIX}"
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            with path.open("xb") as handle:
                handle.write(data)
        except OSError as e:
            logger.error("outbox_write_failed", path=str(path), error=str(e))
            raise StoreError(f"cannot write {path}: {e}") from e

        self.last_path = path
        logger.info("message_submitted", path=str(path), size=len(data))
        return True
