"""Pytest configuration and shared fixtures."""

import base64

import pytest
from samples import PNG_BYTES, crlf


@pytest.fixture
def mock_settings():
    """Provide settings for testing."""
    from termail.config import Settings

    return Settings(
        address="me@example.org",
        display_name="Test User",
        signature="Test User\nexample.org",
        log_level="DEBUG",
        debug=True,
    )


@pytest.fixture
def simple_message() -> bytes:
    """A single text/plain message with threading headers."""
    return crlf(
        "Received: from mx1.example.com",
        "Received: from mx2.example.com",
        "From: Alice Example <alice@example.com>",
        "To: me@example.org, Bob <bob@example.net>",
        "Cc: carol@example.com",
        "Subject: Lunch plans",
        "Date: Tue, 14 May 2024 12:30:00 +0200",
        "Message-ID: <abc@x>",
        "References: <root@x>",
        "In-Reply-To: <root@x>",
        "Content-Type: text/plain; charset=us-ascii",
        "",
        "Shall we meet at noon?",
        "",
        "-- ",
        "Alice",
    )


@pytest.fixture
def alternative_message() -> bytes:
    """multipart/alternative with a plain and an HTML child."""
    return crlf(
        "From: news@example.com",
        "Subject: Hello",
        "MIME-Version: 1.0",
        'Content-Type: multipart/alternative; boundary="alt"',
        "",
        "This is a preamble.",
        "--alt",
        "Content-Type: text/plain; charset=utf-8",
        "",
        "Hello",
        "--alt",
        "Content-Type: text/html; charset=utf-8",
        "",
        "<b>Hello</b>",
        "--alt--",
        "epilogue is ignored",
    )


@pytest.fixture
def html_only_message() -> bytes:
    """A text/html message carrying script and an event handler."""
    return crlf(
        "From: promo@example.com",
        "Subject: Offer",
        "Content-Type: text/html; charset=utf-8",
        "",
        '<html><head><title>x</title><style>p{color:red}</style></head>',
        '<body onload="steal()"><script>alert(1)</script>',
        "<p>Hi &amp; welcome</p><ul><li>One</li><li>Two</li></ul></body></html>",
    )


@pytest.fixture
def mixed_message() -> bytes:
    """multipart/mixed with a quoted-printable body and a mislabelled PNG."""
    encoded = base64.b64encode(PNG_BYTES).decode("ascii")
    return crlf(
        "From: =?utf-8?q?J=C3=BCrgen?= <jurgen@example.de>",
        "To: me@example.org",
        "Subject: =?utf-8?q?Gr=C3=BC=C3=9Fe?= =?utf-8?q?_aus_Berlin?=",
        "Date: Wed, 15 May 2024 08:00:00 +0000",
        "Message-ID: <mixed@example.de>",
        "MIME-Version: 1.0",
        "Content-Type: multipart/mixed; boundary=outer",
        "",
        "--outer",
        "Content-Type: text/plain; charset=utf-8",
        "Content-Transfer-Encoding: quoted-printable",
        "",
        "Sch=C3=B6ne Gr=C3=BC=C3=9Fe=",
        " aus Berlin",
        "--outer",
        "Content-Type: application/octet-stream",
        'Content-Disposition: attachment; filename="photo.png"',
        "Content-Transfer-Encoding: base64",
        "",
        encoded,
        "--outer--",
        "",
    )


@pytest.fixture
def sample_file(tmp_path):
    """A small text file to attach."""
    path = tmp_path / "notes.txt"
    path.write_text("meeting notes\n", encoding="utf-8")
    return path
