"""Unit tests for data models."""

import pytest
from pydantic import ValidationError

from termail.models import (
    AttachmentDescriptor,
    DecodeResult,
    Diagnostic,
    DisplayCell,
    DisplayLine,
    Headers,
    LeafPart,
    Message,
    MultipartPart,
    RenderedDocument,
)


class TestHeaders:
    """Test suite for the Headers model."""

    def test_lookup_is_case_insensitive(self) -> None:
        """Test that field names compare case-insensitively."""
        headers = Headers(fields=(("Subject", "one"), ("X-Tag", "a"), ("x-tag", "b")))

        assert headers.get("SUBJECT") == "one"
        assert headers.get("missing", "default") == "default"
        assert headers.get_all("X-TAG") == ["a", "b"]
        assert "subject" in headers
        assert "Date" not in headers
        assert len(headers) == 3

    def test_append_and_replace_return_copies(self) -> None:
        """Test that mutators leave the original untouched."""
        headers = Headers(fields=(("To", "a"), ("Cc", "b"), ("to", "c")))

        replaced = headers.replace("TO", "z")
        appended = headers.append("Subject", "s")

        assert replaced.fields == (("To", "z"), ("Cc", "b"))
        assert appended.names() == ["To", "Cc", "to", "Subject"]
        assert headers.get_all("to") == ["a", "c"]
        assert headers.replace("Date", "now").names()[-1] == "Date"

    def test_headers_are_frozen(self) -> None:
        headers = Headers()

        with pytest.raises(ValidationError):
            headers.fields = (("a", "b"),)


class TestParts:
    """Test suite for the part tree models."""

    def test_leaf_properties(self) -> None:
        part = LeafPart(
            content_type="text/html",
            params={"charset": "utf-8"},
            diagnostics=(Diagnostic.MALFORMED_ENCODING,),
        )

        assert part.maintype == "text"
        assert part.subtype == "html"
        assert part.charset == "utf-8"
        assert part.decode_failed

    def test_multipart_boundary(self) -> None:
        part = MultipartPart(params={"boundary": "b1"})

        assert part.content_type == "multipart/mixed"
        assert part.boundary == "b1"

    def test_tree_round_trips_through_dump(self) -> None:
        """Test that the discriminated union rebuilds the right variants."""
        root = MultipartPart(children=(LeafPart(raw_body=b"x"), MultipartPart()))

        rebuilt = Message.model_validate(Message(root=root).model_dump())

        assert isinstance(rebuilt.root, MultipartPart)
        assert isinstance(rebuilt.root.children[0], LeafPart)
        assert isinstance(rebuilt.root.children[1], MultipartPart)


class TestMessage:
    """Test suite for Message accessors."""

    def test_missing_headers(self) -> None:
        message = Message(root=LeafPart())

        assert message.subject == ""
        assert message.sender is None
        assert message.date is None
        assert message.message_id is None
        assert message.references == []
        assert message.to == []

    def test_unparseable_date_is_none(self) -> None:
        message = Message(root=LeafPart(headers=Headers(fields=(("Date", "yesterday-ish"),))))

        assert message.date is None

    def test_references_are_deduplicated(self) -> None:
        headers = Headers(fields=(("References", "<a@x>  <b@x>\r\n <a@x>"),))

        assert Message(root=LeafPart(headers=headers)).references == ["<a@x>", "<b@x>"]

    def test_diagnostics_collects_the_tree(self) -> None:
        root = MultipartPart(
            diagnostics=(Diagnostic.RECURSION_LIMIT_EXCEEDED,),
            children=(LeafPart(diagnostics=(Diagnostic.UNSUPPORTED_CHARSET,)),),
        )

        assert Message(root=root).diagnostics == [
            Diagnostic.RECURSION_LIMIT_EXCEEDED,
            Diagnostic.UNSUPPORTED_CHARSET,
        ]

    def test_attachment_bytes_rejects_multipart_path(self) -> None:
        message = Message(root=MultipartPart(children=(MultipartPart(),)))
        descriptor = AttachmentDescriptor(
            filename="x",
            content_type="application/octet-stream",
            declared_type="application/octet-stream",
            size_bytes=0,
            part_path=(0,),
        )

        with pytest.raises(KeyError):
            message.attachment_bytes(descriptor)


class TestDocumentModels:
    """Test suite for decode results and display models."""

    def test_decode_result(self) -> None:
        assert DecodeResult(value=b"x").ok
        assert not DecodeResult(value=b"x", diagnostic=Diagnostic.MALFORMED_ENCODING).ok

    def test_display_line_text_and_width(self) -> None:
        line = DisplayLine(cells=(DisplayCell("日", 2), DisplayCell("a", 1)))
        document = RenderedDocument(lines=(line, DisplayLine()))

        assert line.text == "日a"
        assert line.width == 3
        assert document.to_text() == "日a\n"

    def test_attachment_size_cannot_be_negative(self) -> None:
        with pytest.raises(ValidationError):
            AttachmentDescriptor(
                filename="x",
                content_type="a/b",
                declared_type="a/b",
                size_bytes=-1,
                part_path=(),
            )
