"""MIME tree building, serialization and content classification."""

from termail.mime.classifier import classify, classify_bytes, is_text_displayable
from termail.mime.parser import parse
from termail.mime.serializer import new_boundary, serialize, serialize_part

__all__ = [
    "classify",
    "classify_bytes",
    "is_text_displayable",
    "new_boundary",
    "parse",
    "serialize",
    "serialize_part",
]
