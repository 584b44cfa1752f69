"""MIME part tree.

A part is either a leaf carrying a body or a multipart container carrying
children. The two variants are told apart by the ``kind`` tag so that code
walking the tree can dispatch on the variant and the ``type/subtype`` string
instead of a class per MIME subtype.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from termail.models.diagnostics import Diagnostic
from termail.models.headers import Headers


class Disposition(str, Enum):
    """Content-Disposition value."""

    INLINE = "inline"
    ATTACHMENT = "attachment"


class _PartBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    headers: Headers = Field(default_factory=Headers, description="Entity header block")
    content_type: str = Field(default="text/plain", description="Lowercase type/subtype")
    params: dict[str, str] = Field(
        default_factory=dict, description="Content-Type parameters in header order"
    )
    disposition: Disposition | None = Field(default=None, description="Declared disposition")
    filename: str | None = Field(default=None, description="Decoded filename, if any")
    transfer_encoding: str = Field(default="7bit", description="Content-Transfer-Encoding")
    raw_body: bytes = Field(default=b"", description="Body bytes before decoding")
    diagnostics: tuple[Diagnostic, ...] = Field(
        default=(), description="Recovered decode problems for this part"
    )

    @property
    def maintype(self) -> str:
        return self.content_type.split("/", 1)[0]

    @property
    def subtype(self) -> str:
        return self.content_type.split("/", 1)[1] if "/" in self.content_type else ""

    @property
    def charset(self) -> str | None:
        return self.params.get("charset")


class LeafPart(_PartBase):
    """A non-multipart entity with its decoded body."""

    kind: Literal["leaf"] = "leaf"
    decoded_body: bytes = Field(default=b"", description="Body after transfer decoding")
    text: str | None = Field(
        default=None, description="Charset-decoded body for text/* parts"
    )

    @property
    def decode_failed(self) -> bool:
        return Diagnostic.MALFORMED_ENCODING in self.diagnostics


class MultipartPart(_PartBase):
    """A multipart/* container. It has no body of its own."""

    kind: Literal["multipart"] = "multipart"
    content_type: str = Field(default="multipart/mixed", description="Lowercase type/subtype")
    children: tuple[Part, ...] = Field(default=(), description="Child parts in order")

    @property
    def boundary(self) -> str | None:
        return self.params.get("boundary")


Part = Annotated[Union[LeafPart, MultipartPart], Field(discriminator="kind")]

MultipartPart.model_rebuild()
