"""Command-line interface for termail.

This module provides the main entry point for the CLI application.
"""

from __future__ import annotations

import argparse
import logging
import shutil
import sys
from pathlib import Path

import structlog
from pydantic import ValidationError

from termail import __version__
from termail.config import Settings, get_settings
from termail.exceptions import ConfigurationError, TermailError
from termail.extract import extract
from termail.mime import parse
from termail.models import AccountDefaults, ComposeRequest, Message, WrapPolicy
from termail.pipeline import compose, render_message
from termail.session import DirectoryMailStore, DirectoryOutbox

logger = structlog.get_logger()

STDIN = "-"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="termail", description="Terminal email reader and composer")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    read_parser = subparsers.add_parser("read", help="Render a message for the terminal")
    read_parser.add_argument("path", help="Path to an .eml file, or - for stdin")
    read_parser.add_argument(
        "--width",
        type=int,
        default=None,
        help="Display width (default: terminal width, else settings display_width)",
    )
    read_parser.add_argument(
        "--format",
        choices=["plain", "html"],
        default=None,
        help="Preferred alternative (default: settings text_format)",
    )
    read_parser.add_argument(
        "--wrap",
        choices=[policy.value for policy in WrapPolicy],
        default=None,
        help="Wrap policy (default: settings wrap_policy)",
    )
    read_parser.add_argument(
        "--no-headers",
        action="store_true",
        help="Do not print header lines above the body",
    )

    list_parser = subparsers.add_parser("list", help="List messages in a directory store")
    list_parser.add_argument("directory", type=Path, help="Root directory of the store")
    list_parser.add_argument(
        "--mailbox",
        default="",
        help="Mailbox subdirectory (default: the root directory itself)",
    )
    list_parser.add_argument("--query", default=None, help="Filter on subject or sender")

    compose_parser = subparsers.add_parser("compose", help="Build an outgoing message")
    compose_parser.add_argument("--to", action="append", default=[], help="Recipient (repeatable)")
    compose_parser.add_argument("--cc", action="append", default=[], help="Cc recipient (repeatable)")
    compose_parser.add_argument("--subject", default=None, help="Subject line")
    compose_parser.add_argument(
        "--body-file",
        default=None,
        help="File holding the body text, or - for stdin",
    )
    compose_parser.add_argument(
        "--attach",
        action="append",
        type=Path,
        default=[],
        help="File to attach (repeatable)",
    )
    parent_group = compose_parser.add_mutually_exclusive_group()
    parent_group.add_argument("--reply", type=Path, default=None, help="Message to reply to")
    parent_group.add_argument("--forward", type=Path, default=None, help="Message to forward")
    compose_parser.add_argument(
        "--reply-all",
        action="store_true",
        help="Reply to every recipient of the parent message",
    )
    target_group = compose_parser.add_mutually_exclusive_group()
    target_group.add_argument("--output", type=Path, default=None, help="Write the message here")
    target_group.add_argument(
        "--outbox",
        type=Path,
        default=None,
        help="Submit the message to a directory outbox",
    )

    attachment_parser = subparsers.add_parser("attachment", help="Save an attachment")
    attachment_parser.add_argument("path", help="Path to an .eml file, or - for stdin")
    attachment_parser.add_argument("index", type=int, help="Attachment number, starting at 1")
    attachment_parser.add_argument("--output", type=Path, required=True, help="Destination file")

    return parser


def _read_source(source: str) -> bytes:
    if source == STDIN:
        return sys.stdin.buffer.read()
    path = Path(source)
    try:
        return path.read_bytes()
    except OSError as e:
        raise TermailError(f"cannot read {source}: {e.strerror or e}") from e


def _load_message(source: str, settings: Settings) -> Message:
    return parse(_read_source(source), settings)


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration: {e}") from e


def _terminal_width() -> int | None:
    columns = shutil.get_terminal_size(fallback=(0, 0)).columns
    return columns or None


def _cmd_read(args: argparse.Namespace, settings: Settings) -> int:
    overrides: dict[str, object] = {}
    if args.format:
        overrides["text_format"] = args.format
    if overrides:
        settings = settings.model_copy(update=overrides)

    message = _load_message(args.path, settings)
    document = render_message(
        message,
        width=args.width or _terminal_width(),
        settings=settings,
        wrap=WrapPolicy(args.wrap) if args.wrap else None,
        show_headers=not args.no_headers,
    )
    print(document.to_text())
    return 0


def _cmd_list(args: argparse.Namespace, settings: Settings) -> int:
    store = DirectoryMailStore(args.directory, settings)
    for envelope in store.list_envelopes(args.mailbox, args.query):
        date_part = envelope.date.isoformat() if envelope.date else "(no date)"
        sender = envelope.sender or "(unknown sender)"
        print(f"{envelope.identifier}\t{date_part}\t{sender}\t{envelope.subject}")
    return 0


def _cmd_compose(args: argparse.Namespace, settings: Settings) -> int:
    body = ""
    if args.body_file:
        body = _read_source(args.body_file).decode("utf-8", errors="replace")

    parent_path = args.reply or args.forward
    parent = _load_message(str(parent_path), settings) if parent_path else None

    request = ComposeRequest(
        body=body,
        attachments=tuple(args.attach),
        parent=parent,
        forward=args.forward is not None,
        reply_all=args.reply_all,
        subject=args.subject,
        to=tuple(args.to),
        cc=tuple(args.cc),
        account=AccountDefaults.from_settings(settings),
    )
    data = compose(request, settings)

    if args.outbox:
        outbox = DirectoryOutbox(args.outbox)
        outbox.submit_message(data)
        print(f"Submitted to {outbox.last_path}")
    elif args.output:
        try:
            args.output.write_bytes(data)
        except OSError as e:
            raise TermailError(f"cannot write {args.output}: {e.strerror or e}") from e
        print(f"Wrote {len(data)} bytes to {args.output}")
    else:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
    return 0


def _cmd_attachment(args: argparse.Namespace, settings: Settings) -> int:
    message = _load_message(args.path, settings)
    attachments = extract(message, settings).attachments
    if not 1 <= args.index <= len(attachments):
        raise TermailError(
            f"no attachment #{args.index}; the message has {len(attachments)}"
        )

    descriptor = attachments[args.index - 1]
    data = message.attachment_bytes(descriptor)
    try:
        args.output.write_bytes(data)
    except OSError as e:
        raise TermailError(f"cannot write {args.output}: {e.strerror or e}") from e
    print(f"Saved {descriptor.filename} ({len(data)} bytes) to {args.output}")
    return 0


_COMMANDS = {
    "read": _cmd_read,
    "list": _cmd_list,
    "compose": _cmd_compose,
    "attachment": _cmd_attachment,
}


def main(args: list[str] | None = None) -> int:
    """Main entry point for the termail CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, 1 for termail errors, 2 for usage errors).
    """
    if args is None:
        args = sys.argv[1:]

    try:
        settings = _load_settings()
    except ConfigurationError as e:
        print(f"termail: {e}", file=sys.stderr)
        return 1

    # Configure logging; stdout carries command output.
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level, logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )

    parser = _build_parser()
    parsed = parser.parse_args(args)

    logger.debug("termail_started", version=__version__, command=parsed.command, debug=settings.debug)

    handler = _COMMANDS.get(parsed.command)
    if handler is None:
        logger.error("unknown_command", command=parsed.command)
        return 2

    try:
        return handler(parsed, settings)
    except TermailError as e:
        logger.error("command_failed", command=parsed.command, error=str(e))
        print(f"termail: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
