"""Terminal display width of text.

Widths follow the usual wcwidth rules using the Unicode database that ships
with Python: combining marks and format characters take no column, East Asian
wide and fullwidth characters take two, everything else one.
"""

from __future__ import annotations

import unicodedata
from functools import lru_cache

from termail.models import DisplayCell

ZERO_WIDTH_JOINER = "\u200d"

_ZERO_WIDTH_CATEGORIES = frozenset({"Mn", "Me", "Cf"})


@lru_cache(maxsize=4096)
def char_width(ch: str) -> int:
    """Return the number of terminal columns ``ch`` occupies."""
    if unicodedata.category(ch) in _ZERO_WIDTH_CATEGORIES or unicodedata.combining(ch):
        return 0
    # Hangul medial vowels and final consonants attach to the preceding syllable.
    if "\u1160" <= ch <= "\u11ff":
        return 0
    if unicodedata.east_asian_width(ch) in ("W", "F"):
        return 2
    return 1


def cells(text: str) -> list[DisplayCell]:
    """Split ``text`` into grapheme cells.

    Zero-width characters join the preceding cell, and a character following
    a zero-width joiner joins it too, so emoji sequences stay in one cell.
    """

    result: list[DisplayCell] = []
    joined = False
    for ch in text:
        width = char_width(ch)
        if result and (width == 0 or joined):
            last = result[-1]
            result[-1] = DisplayCell(text=last.text + ch, width=last.width)
        else:
            result.append(DisplayCell(text=ch, width=width))
        joined = ch == ZERO_WIDTH_JOINER
    return result


def text_width(text: str) -> int:
    return sum(char_width(ch) for ch in text)
