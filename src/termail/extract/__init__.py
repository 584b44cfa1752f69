"""Sanitizing text extraction."""

from termail.extract.extractor import ExtractedContent, choose_alternative, extract
from termail.extract.html import html_to_text

__all__ = ["ExtractedContent", "choose_alternative", "extract", "html_to_text"]
