"""Unit tests for HTML reduction."""

import pytest

from termail.extract import html_to_text


class TestHtmlToText:
    """Test suite for html_to_text."""

    def test_script_and_handlers_are_removed(self) -> None:
        document = '<p onclick="x()">Hello<script>alert(1)</script></p>'

        assert html_to_text(document) == "Hello"

    def test_head_and_style_are_removed(self) -> None:
        document = (
            "<html><head><title>Title</title><style>p {color: red}</style></head>"
            "<body><p>Body</p></body></html>"
        )

        assert html_to_text(document) == "Body"

    def test_entities_are_decoded(self) -> None:
        assert html_to_text("<p>Fish &amp; chips &euro;5 &#x263A;</p>") == "Fish & chips €5 ☺"

    def test_escaped_markup_never_survives_as_tags(self) -> None:
        text = html_to_text("<p>&lt;script&gt;alert(1)&lt;/script&gt;</p>")

        assert "<script>" not in text
        assert "alert(1)" in text

    def test_block_elements_become_lines(self) -> None:
        document = "<div>first</div><div>second</div>line<br>break"

        assert html_to_text(document).split("\n") == ["first", "", "second", "line", "break"]

    def test_list_items_are_bulleted(self) -> None:
        text = html_to_text("<ul><li>One</li><li>Two</li></ul>")

        assert [line for line in text.split("\n") if line] == ["* One", "* Two"]

    def test_inline_whitespace_is_collapsed(self) -> None:
        assert html_to_text("<p>one\n     two\t three</p>") == "one two three"

    def test_preformatted_text_keeps_whitespace(self) -> None:
        assert html_to_text("<pre>a   b\n  c</pre>") == "a   b\n  c"

    def test_table_cells_are_separated(self) -> None:
        document = "<table><tr><td>a</td><td>b</td></tr><tr><td>c</td></tr></table>"

        assert [line for line in html_to_text(document).split("\n") if line] == ["a b", "c"]

    def test_comments_and_doctype_are_dropped(self) -> None:
        document = "<!DOCTYPE html><p>shown<!-- hidden --></p><?php echo 1; ?>"

        assert html_to_text(document) == "shown"

    def test_control_characters_are_stripped(self) -> None:
        assert html_to_text("<p>a\x1b[31mb\x07</p>") == "a[31mb"

    def test_blank_line_runs_are_collapsed(self) -> None:
        text = html_to_text("<p>a</p><p></p><p></p><div><div>b</div></div>")

        assert "\n\n\n" not in text
        assert text == "a\n\nb"

    @pytest.mark.parametrize("document", ["", "   \r\n", "<script>only()</script>"])
    def test_empty_results(self, document) -> None:
        assert html_to_text(document) == ""

    def test_unclosed_tags_are_tolerated(self) -> None:
        assert html_to_text("<p>open <b>bold <i>both") == "open bold both"
