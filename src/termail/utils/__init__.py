"""Text helpers shared by the extractor, renderer and composer."""

import re
import unicodedata

_NEWLINES = re.compile(r"\r\n|\r")
_BLANK_RUNS = re.compile(r"\n[ \t]*(?:\n[ \t]*)+\n")
_KEPT_CONTROLS = frozenset("\n\t")

REPLY_PREFIX = re.compile(r"^\s*re\s*:", re.IGNORECASE)
FORWARD_PREFIX = re.compile(r"^\s*(fwd|fw)\s*:", re.IGNORECASE)


def strip_control_chars(text: str) -> str:
    """Remove control characters except newline and tab.

    Covers C0, DEL and C1, so escape sequences cannot reach the terminal.
    """

    return "".join(
        ch for ch in text if ch in _KEPT_CONTROLS or unicodedata.category(ch) != "Cc"
    )


def normalize_newlines(text: str) -> str:
    return _NEWLINES.sub("\n", text)


def collapse_blank_lines(text: str) -> str:
    """Collapse runs of blank lines into a single blank line."""
    return _BLANK_RUNS.sub("\n\n", text)


def normalize_plain_text(text: str) -> str:
    """Normalize decoded text for display.

    Line endings become ``\\n``, control characters are removed, trailing
    whitespace is dropped from each line and blank line runs are merged.
    """

    text = strip_control_chars(normalize_newlines(text))
    text = "\n".join(line.rstrip() for line in text.split("\n"))
    return collapse_blank_lines(text).strip("\n")


def prefix_subject(subject: str, prefix: str, pattern: re.Pattern[str]) -> str:
    """Prefix ``subject`` with ``prefix`` unless ``pattern`` already matches it."""
    subject = subject.strip()
    if pattern.match(subject):
        return subject
    return f"{prefix} {subject}" if subject else prefix
