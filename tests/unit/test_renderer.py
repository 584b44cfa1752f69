"""Unit tests for terminal layout."""

import pytest

from termail.models import AttachmentDescriptor, WrapPolicy
from termail.render import cells, char_width, human_size, render_document, text_width, wrap_line
from termail.render.renderer import expand_tabs


def _texts(lines) -> list[str]:
    return [line.text for line in lines]


class TestWidth:
    """Test suite for display width measurement."""

    @pytest.mark.parametrize(
        ("ch", "expected"),
        [("a", 1), ("é", 1), ("日", 2), ("Ｗ", 2), ("\u0301", 0), ("\u200b", 0)],
    )
    def test_char_width(self, ch, expected) -> None:
        assert char_width(ch) == expected

    def test_combining_marks_join_their_base(self) -> None:
        result = cells("e\u0301x")

        assert [cell.text for cell in result] == ["e\u0301", "x"]
        assert [cell.width for cell in result] == [1, 1]

    def test_zero_width_joiner_sequence_is_one_cell(self) -> None:
        result = cells("\U0001f469\u200d\U0001f4bb!")

        assert len(result) == 2
        assert result[0].width == 2

    def test_text_width(self) -> None:
        assert text_width("ab日本") == 6


class TestWrapLine:
    """Test suite for wrap_line."""

    def test_word_wrap(self) -> None:
        assert _texts(wrap_line("hello world foo", 11)) == ["hello world", "foo"]

    def test_long_word_is_hard_broken(self) -> None:
        assert _texts(wrap_line("a" * 25, 10)) == ["a" * 10, "a" * 10, "a" * 5]

    def test_wide_characters_never_straddle_the_edge(self) -> None:
        lines = wrap_line("日本語テキスト", 5)

        assert _texts(lines) == ["日本", "語テ", "キス", "ト"]
        assert all(line.width <= 5 for line in lines)

    def test_combining_marks_stay_with_their_base(self) -> None:
        lines = wrap_line("e\u0301" * 10, 4)

        assert [line.width for line in lines] == [4, 4, 2]
        assert all(not line.text.startswith("\u0301") for line in lines)

    @pytest.mark.parametrize("policy", [WrapPolicy.WORD, WrapPolicy.CHAR])
    def test_glyph_wider_than_the_line_is_replaced(self, policy) -> None:
        lines = wrap_line("中中", 1, policy)

        assert _texts(lines) == ["\ufffd", "\ufffd"]
        assert [line.width for line in lines] == [1, 1]

    def test_char_policy(self) -> None:
        assert _texts(wrap_line("ab cd ef", 3, WrapPolicy.CHAR)) == ["ab", "cd", "ef"]

    def test_none_policy_keeps_the_line(self) -> None:
        text = "x" * 200

        assert _texts(wrap_line(text, 10, WrapPolicy.NONE)) == [text]

    def test_empty_line(self) -> None:
        assert _texts(wrap_line("", 10)) == [""]

    def test_tabs_expand_to_stops(self) -> None:
        assert expand_tabs("a\tb") == "a" + " " * 7 + "b"
        assert expand_tabs("日\tb") == "日" + " " * 6 + "b"
        assert _texts(wrap_line("\tx", 80)) == [" " * 8 + "x"]

    def test_leading_indent_is_preserved(self) -> None:
        assert _texts(wrap_line("    indented", 20)) == ["    indented"]


class TestRenderDocument:
    """Test suite for render_document."""

    def test_lines_fit_width(self) -> None:
        text = "Grüße 日本語 " * 20 + "\n" + "x" * 300 + "\n\tindented e\u0301"

        document = render_document(text, width=17)

        assert all(line.width <= 17 for line in document.lines)

    def test_rendering_is_idempotent(self) -> None:
        text = "The quick brown fox jumps over the lazy dog. 日本語のテキスト " * 5

        first = render_document(text, width=23)
        second = render_document(first.to_text(), width=23)

        assert second.to_text() == first.to_text()

    def test_fallback_width(self, mock_settings) -> None:
        settings = mock_settings.model_copy(update={"display_width": 12})

        assert render_document("x", width=None, settings=settings).width == 12
        assert render_document("x", width=0, settings=settings).width == 12
        assert render_document("x", width=-3, settings=settings).width == 12

    def test_newlines_and_controls_are_normalized(self) -> None:
        document = render_document("one\r\ntwo\rthree\x1b[2J", width=20)

        assert _texts(document.lines) == ["one", "two", "three[2J"]

    def test_header_block_and_rule(self) -> None:
        document = render_document("body", width=20, headers=[("Subject", "Hi")])

        assert _texts(document.lines) == ["Subject: Hi", "-" * 20, "body"]

    def test_attachment_summary(self) -> None:
        attachment = AttachmentDescriptor(
            filename="photo.png",
            content_type="image/png",
            declared_type="application/octet-stream",
            size_bytes=1536,
            part_path=(1,),
        )

        document = render_document("body", [attachment], width=60)

        assert _texts(document.lines) == ["body", "", "[1] photo.png (1.5 KiB, image/png)"]
        assert document.attachments == (attachment,)


@pytest.mark.parametrize(
    ("size", "expected"),
    [(0, "0 B"), (512, "512 B"), (1536, "1.5 KiB"), (3 * 1024**2, "3.0 MiB"), (5 * 1024**5, "5120.0 TiB")],
)
def test_human_size(size, expected) -> None:
    assert human_size(size) == expected
