"""Unit tests for the command-line interface."""

import pytest
import structlog

from termail.cli import main
from termail.config import get_settings
from termail.mime import parse
from samples import PNG_BYTES


@pytest.fixture(autouse=True)
def cli_env(monkeypatch: pytest.MonkeyPatch):
    """Run every command with a known account and fresh settings."""
    monkeypatch.setenv("TERMAIL_ADDRESS", "me@example.org")
    monkeypatch.setenv("TERMAIL_DISPLAY_NAME", "Test User")
    monkeypatch.setenv("TERMAIL_LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()


@pytest.fixture
def message_file(tmp_path, simple_message):
    path = tmp_path / "lunch.eml"
    path.write_bytes(simple_message)
    return path


class TestRead:
    """Test suite for the read command."""

    def test_read_prints_headers_and_body(self, message_file, capsys) -> None:
        assert main(["read", str(message_file), "--width", "60"]) == 0

        out = capsys.readouterr().out
        assert out.startswith("From: Alice Example <alice@example.com>\n")
        assert "Shall we meet at noon?" in out

    def test_read_format_and_no_headers(self, tmp_path, capsys) -> None:
        path = tmp_path / "alt.eml"
        path.write_bytes(
            b"Content-Type: multipart/alternative; boundary=a\r\n\r\n"
            b"--a\r\nContent-Type: text/plain\r\n\r\nplain\r\n"
            b"--a\r\nContent-Type: text/html\r\n\r\n<p>rich</p>\r\n--a--\r\n"
        )

        assert main(["read", str(path), "--width", "40", "--no-headers", "--format", "html"]) == 0

        assert capsys.readouterr().out == "rich\n"

    def test_read_missing_file(self, tmp_path, capsys) -> None:
        assert main(["read", str(tmp_path / "absent.eml"), "--width", "40"]) == 1

        assert "termail: cannot read" in capsys.readouterr().err

    def test_usage_error_exits_2(self) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["read", "x.eml", "--wrap", "sideways"])

        assert excinfo.value.code == 2


class TestList:
    """Test suite for the list command."""

    def test_list_directory(self, tmp_path, simple_message, mixed_message, capsys) -> None:
        (tmp_path / "a.eml").write_bytes(simple_message)
        (tmp_path / "b.eml").write_bytes(mixed_message)

        assert main(["list", str(tmp_path)]) == 0

        rows = capsys.readouterr().out.splitlines()
        assert [row.split("\t")[0] for row in rows] == ["b.eml", "a.eml"]
        assert rows[1].endswith("\tLunch plans")

    def test_list_missing_mailbox(self, tmp_path, capsys) -> None:
        assert main(["list", str(tmp_path), "--mailbox", "nope"]) == 1

        assert "mailbox not found" in capsys.readouterr().err


class TestCompose:
    """Test suite for the compose command."""

    def test_compose_to_file(self, tmp_path, sample_file, capsys) -> None:
        body = tmp_path / "body.txt"
        body.write_text("See the notes.\n", encoding="utf-8")
        output = tmp_path / "out.eml"

        code = main(
            [
                "compose",
                "--to", "Bob <bob@example.net>",
                "--subject", "Notes",
                "--body-file", str(body),
                "--attach", str(sample_file),
                "--output", str(output),
            ]
        )

        assert code == 0
        message = parse(output.read_bytes())
        assert message.subject == "Notes"
        assert message.to == [("Bob", "bob@example.net")]
        assert message.addresses("From") == [("Test User", "me@example.org")]
        assert message.root.children[1].filename == "notes.txt"
        assert capsys.readouterr().out.startswith("Wrote ")

    def test_reply_to_outbox(self, tmp_path, message_file, capsys) -> None:
        outbox = tmp_path / "outbox"

        assert main(["compose", "--reply", str(message_file), "--outbox", str(outbox)]) == 0

        (written,) = outbox.glob("*.eml")
        reply = parse(written.read_bytes())
        assert reply.subject == "Re: Lunch plans"
        assert reply.in_reply_to == "<abc@x>"
        assert "Submitted to" in capsys.readouterr().out

    def test_unreadable_attachment_fails(self, tmp_path, capsys) -> None:
        code = main(
            ["compose", "--attach", str(tmp_path / "gone.pdf"), "--output", str(tmp_path / "o.eml")]
        )

        assert code == 1
        assert "cannot read attachment" in capsys.readouterr().err
        assert not (tmp_path / "o.eml").exists()


class TestAttachment:
    """Test suite for the attachment command."""

    def test_save_attachment(self, tmp_path, mixed_message, capsys) -> None:
        source = tmp_path / "mixed.eml"
        source.write_bytes(mixed_message)
        target = tmp_path / "photo.png"

        assert main(["attachment", str(source), "1", "--output", str(target)]) == 0

        assert target.read_bytes() == PNG_BYTES
        assert "Saved photo.png" in capsys.readouterr().out

    def test_attachment_index_out_of_range(self, message_file, tmp_path, capsys) -> None:
        code = main(["attachment", str(message_file), "1", "--output", str(tmp_path / "x")])

        assert code == 1
        assert "no attachment #1" in capsys.readouterr().err


def test_invalid_configuration_exits_1(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.setenv("TERMAIL_DISPLAY_WIDTH", "0")
    get_settings.cache_clear()

    assert main(["list", "."]) == 1

    assert "termail: invalid configuration" in capsys.readouterr().err
