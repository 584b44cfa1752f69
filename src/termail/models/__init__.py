"""Data models for termail.

This module contains the immutable models passed between pipeline stages.
"""

from termail.models.diagnostics import DecodeResult, Diagnostic
from termail.models.headers import Headers
from termail.models.parts import Disposition, LeafPart, MultipartPart, Part
from termail.models.message import AttachmentDescriptor, Message, PartPath
from termail.models.document import DisplayCell, DisplayLine, RenderedDocument, WrapPolicy
from termail.models.compose import AccountDefaults, ComposeRequest

__all__ = [
    "AccountDefaults",
    "AttachmentDescriptor",
    "ComposeRequest",
    "DecodeResult",
    "Diagnostic",
    "DisplayCell",
    "DisplayLine",
    "Disposition",
    "Headers",
    "LeafPart",
    "Message",
    "MultipartPart",
    "Part",
    "PartPath",
    "RenderedDocument",
    "WrapPolicy",
]
