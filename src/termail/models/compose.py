"""Input models for the message composer."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from termail.models.message import Message

if TYPE_CHECKING:
    from termail.config import Settings


class AccountDefaults(BaseModel):
    """Per-account values the composer needs."""

    model_config = ConfigDict(frozen=True)

    address: str | None = Field(default=None, description="Sender address")
    display_name: str | None = Field(default=None, description="Sender display name")
    charset: str = Field(default="utf-8", description="Preferred charset for text bodies")
    signature: str | None = Field(default=None, description="Signature appended to bodies")
    signature_delimiter: str = Field(default="-- ", description="Line separating the signature")

    @classmethod
    def from_settings(cls, settings: Settings) -> AccountDefaults:
        return cls(
            address=settings.address,
            display_name=settings.display_name,
            charset=settings.default_charset,
            signature=settings.signature,
            signature_delimiter=settings.signature_delimiter,
        )


class ComposeRequest(BaseModel):
    """Everything needed to build one outgoing message."""

    model_config = ConfigDict(frozen=True)

    body: str = Field(default="", description="Text written by the user")
    attachments: tuple[Path, ...] = Field(default=(), description="Files to attach")
    parent: Message | None = Field(
        default=None, description="Message being replied to or forwarded"
    )
    forward: bool = Field(default=False, description="Forward the parent instead of replying")
    reply_all: bool = Field(default=False, description="Reply to every parent recipient")
    subject: str | None = Field(default=None, description="Explicit subject")
    to: tuple[str, ...] = Field(default=(), description="Explicit To addresses")
    cc: tuple[str, ...] = Field(default=(), description="Explicit Cc addresses")
    account: AccountDefaults = Field(default_factory=AccountDefaults)
