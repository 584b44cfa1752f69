"""Custom exceptions for termail."""

from __future__ import annotations

from termail.models.diagnostics import Diagnostic


class TermailError(Exception):
    """Base exception for all termail errors."""


class ConfigurationError(TermailError):
    """Exception raised for configuration related errors."""


class DecodeError(TermailError):
    """Base for recoverable errors on the decoding/display path.

    These are raised by low-level helpers and absorbed by the stage that
    called them, which records ``diagnostic`` on the affected part.
    """

    diagnostic: Diagnostic


class MalformedEncoding(DecodeError):
    """Exception raised for invalid base64 or quoted-printable bytes."""

    diagnostic = Diagnostic.MALFORMED_ENCODING


class UnsupportedCharset(DecodeError):
    """Exception raised when a charset name has no text codec."""

    diagnostic = Diagnostic.UNSUPPORTED_CHARSET


class TruncatedMessage(DecodeError):
    """Exception raised when no header/body separator is found."""

    diagnostic = Diagnostic.TRUNCATED_MESSAGE


class MissingBoundary(DecodeError):
    """Exception raised for a multipart entity without a boundary parameter."""

    diagnostic = Diagnostic.MISSING_BOUNDARY


class RecursionLimitExceeded(DecodeError):
    """Exception raised when multipart nesting goes past the configured depth."""

    diagnostic = Diagnostic.RECURSION_LIMIT_EXCEEDED


class CompositionError(TermailError):
    """Exception raised when an outgoing message cannot be built."""


class AttachmentUnreadable(CompositionError):
    """Exception raised when an attachment file cannot be read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cannot read attachment {path!r}: {reason}")
        self.path = path
        self.reason = reason


class StoreError(TermailError):
    """Exception raised by the file-backed mail store and outbox."""
