"""Unit tests for the render and compose entry points."""

import pytest

from termail.models import AccountDefaults, ComposeRequest, WrapPolicy
from termail.pipeline import compose, header_lines, render, render_many
from termail.mime import parse


class TestRender:
    """Test suite for render."""

    def test_render_with_headers(self, simple_message, mock_settings) -> None:
        document = render(simple_message, width=60, settings=mock_settings)
        lines = document.to_text().split("\n")

        assert lines[0] == "From: Alice Example <alice@example.com>"
        assert lines[1] == "To: me@example.org, Bob <bob@example.net>"
        assert "-" * 60 in lines
        assert "Shall we meet at noon?" in lines

    def test_render_without_headers(self, alternative_message, mock_settings) -> None:
        document = render(alternative_message, width=40, settings=mock_settings, show_headers=False)

        assert document.to_text() == "Hello"

    def test_render_lists_attachments(self, mixed_message, mock_settings) -> None:
        document = render(mixed_message, width=60, settings=mock_settings, show_headers=False)

        assert document.to_text().endswith("[1] photo.png (80 B, image/png)")
        assert document.attachments[0].part_path == (1,)

    def test_render_uses_settings_wrap_policy(self, mock_settings) -> None:
        settings = mock_settings.model_copy(update={"wrap_policy": WrapPolicy.NONE})
        raw = b"Content-Type: text/plain\r\n\r\n" + b"word " * 40

        document = render(raw, width=20, settings=settings, show_headers=False)

        assert len(document.lines) == 1

    @pytest.mark.parametrize("raw", [b"", b"\x00\x01\x02", b"Content-Type: multipart/mixed\r\n\r\n"])
    def test_render_never_fails(self, raw, mock_settings) -> None:
        document = render(raw, width=30, settings=mock_settings)

        assert all(line.width <= 30 for line in document.lines)

    def test_header_lines_skip_missing_fields(self, alternative_message, mock_settings) -> None:
        message = parse(alternative_message, mock_settings)

        assert header_lines(message, ("From", "To", "Subject")) == [
            ("From", "news@example.com"),
            ("Subject", "Hello"),
        ]

    @pytest.mark.asyncio
    async def test_render_many_keeps_order(
        self, simple_message, alternative_message, mock_settings
    ) -> None:
        documents = await render_many(
            [alternative_message, simple_message, alternative_message],
            width=50,
            settings=mock_settings,
        )

        assert len(documents) == 3
        assert "Hello" in documents[0].to_text()
        assert "Shall we meet at noon?" in documents[1].to_text()
        assert documents[2].to_text() == documents[0].to_text()


class TestCompose:
    """Test suite for compose."""

    def test_compose_reply_round_trip(self, simple_message, mock_settings) -> None:
        parent = parse(simple_message, mock_settings)
        request = ComposeRequest(
            body="Hi",
            parent=parent,
            account=AccountDefaults.from_settings(mock_settings),
        )

        reply = parse(compose(request, mock_settings), mock_settings)

        assert "<abc@x>" in reply.references
        assert reply.subject == "Re: Lunch plans"
        assert reply.subject.count("Re:") == 1
