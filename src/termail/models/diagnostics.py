"""Recoverable decode conditions and the best-effort result wrapper."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class Diagnostic(str, Enum):
    """Condition recorded when malformed input was recovered from."""

    MALFORMED_ENCODING = "malformed_encoding"
    UNSUPPORTED_CHARSET = "unsupported_charset"
    MALFORMED_TEXT = "malformed_text"
    TRUNCATED_MESSAGE = "truncated_message"
    MISSING_BOUNDARY = "missing_boundary"
    RECURSION_LIMIT_EXCEEDED = "recursion_limit_exceeded"


@dataclass(frozen=True)
class DecodeResult(Generic[T]):
    """A usable value plus an optional note about how it was obtained.

    Callers always get ``value``; ``diagnostic`` is only set when the input
    was malformed and a fallback was applied.
    """

    value: T
    diagnostic: Diagnostic | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.diagnostic is None
