"""Terminal rendering."""

from termail.render.renderer import expand_tabs, human_size, render_document, wrap_line
from termail.render.width import cells, char_width, text_width

__all__ = [
    "cells",
    "char_width",
    "expand_tabs",
    "human_size",
    "render_document",
    "text_width",
    "wrap_line",
]
