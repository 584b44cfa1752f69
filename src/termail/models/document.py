"""Display document produced by the terminal renderer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from termail.models.message import AttachmentDescriptor


class WrapPolicy(str, Enum):
    """How body lines longer than the display width are broken."""

    WORD = "word"
    CHAR = "char"
    NONE = "none"


@dataclass(frozen=True)
class DisplayCell:
    """One grapheme: a base character plus any zero-width marks after it."""

    text: str
    width: int


@dataclass(frozen=True)
class DisplayLine:
    """A sequence of cells shown on one terminal row."""

    cells: tuple[DisplayCell, ...] = ()

    @property
    def text(self) -> str:
        return "".join(cell.text for cell in self.cells)

    @property
    def width(self) -> int:
        return sum(cell.width for cell in self.cells)


@dataclass(frozen=True)
class RenderedDocument:
    """Lines ready for the terminal plus the attachments they summarise."""

    lines: tuple[DisplayLine, ...]
    attachments: tuple[AttachmentDescriptor, ...] = ()
    width: int = 80

    def to_text(self) -> str:
        return "\n".join(line.text for line in self.lines)
