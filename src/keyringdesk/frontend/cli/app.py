"""Console front end for keyringdesk.

Start here with `python -m keyringdesk.frontend.cli.app` or the
`keyringdesk` script:

  keyringdesk init
  keyringdesk list [--category NAME]
  keyringdesk show TITLE [--reveal] [--copy [--clear-after SECONDS]]
  keyringdesk add TITLE [--username U] [--url URL] [--notes N] [--category C]
  keyringdesk remove TITLE
  keyringdesk categories
  keyringdesk export-csv OUT
  keyringdesk convert IN OUT [--type csv]

The keyring location comes from --db or KEYRINGDESK_DB (see context.py).
"""

from __future__ import annotations

import argparse
import getpass
import io
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pyperclip

from keyringdesk.converters.base import CONVERTER_TYPES, get_converter
from keyringdesk.core.exceptions import KeyringError
from keyringdesk.core.export import export_csv, format_date
from keyringdesk.core.models import now_ms
from keyringdesk.core.ring import Ring
from keyringdesk.frontend.cli.clipboard import clear_clipboard_after, copy_password
from keyringdesk.frontend.cli.context import AppContext, build_context
from keyringdesk.frontend.cli.logging_config import configure_logging
from keyringdesk.network.transport import is_stdio, is_url, save_ring, write_text
from keyringdesk.security.session import SessionManager

logger = logging.getLogger(__name__)


class CommandError(Exception):
    """A user-facing failure; the message is printed and the exit status is 1."""


def _open_session(ctx: AppContext) -> SessionManager:
    session = SessionManager(ctx.db, ttl_seconds=ctx.idle_timeout)
    if not session.unlock(ctx.get_password()):
        raise CommandError("Wrong password (or the keyring is corrupted)")
    return session


def _new_password(ctx: AppContext, prompt: str) -> str:
    if ctx.password is not None:
        return ctx.password
    first = getpass.getpass(prompt)
    if first != getpass.getpass("Repeat password: "):
        raise CommandError("Passwords do not match")
    if not first:
        raise CommandError("Password must not be empty")
    return first


def _show_date(epoch_ms: int) -> str:
    # 0 means the date was never set
    return format_date(epoch_ms) if epoch_ms else ""


# === Commands ===


def cmd_init(ctx: AppContext, args: argparse.Namespace) -> int:
    if not (is_stdio(ctx.db) or is_url(ctx.db)) and Path(ctx.db).expanduser().exists() and not args.force:
        raise CommandError(f"{ctx.db} already exists; use --force to overwrite it")
    ring = Ring(_new_password(ctx, "New keyring password: "))
    save_ring(ring, ctx.db)
    print(f"Created empty keyring {ctx.db}", file=sys.stderr)
    return 0


def cmd_list(ctx: AppContext, args: argparse.Namespace) -> int:
    session = _open_session(ctx)
    try:
        ring = session.get_ring()
        for item in sorted(ring.items()):
            category = item.category
            if args.category is not None and category != args.category:
                continue
            print(f"{item.title}\t{category}")
    finally:
        session.lock()
    return 0


def cmd_show(ctx: AppContext, args: argparse.Namespace) -> int:
    session = _open_session(ctx)
    copied = None
    try:
        item = session.get_ring().get_item(args.title)
        if item is None:
            raise CommandError(f"No item titled {args.title!r}")
        print(f"Title:    {item.title}")
        print(f"Category: {item.category}")
        print(f"Username: {item.username}")
        print(f"Password: {item.password if args.reveal else '********'}")
        print(f"URL:      {item.url}")
        print(f"Notes:    {item.notes}")
        print(
            f"Created: {_show_date(item.created)} | Changed: {_show_date(item.changed)}"
            f" | Viewed: {_show_date(item.viewed)}"
        )
        if args.copy:
            try:
                copy_password(item)
            except pyperclip.PyperclipException as exc:
                raise CommandError(f"Could not copy to clipboard: {exc}") from exc
            print("Password copied to clipboard", file=sys.stderr)
            copied = item.password
    finally:
        session.lock()
    if copied is not None and args.clear_after > 0:
        try:
            cleared = clear_clipboard_after(args.clear_after, copied)
        except pyperclip.PyperclipException as exc:
            raise CommandError(f"Could not clear the clipboard: {exc}") from exc
        if cleared:
            print("Clipboard cleared", file=sys.stderr)
    return 0


def cmd_add(ctx: AppContext, args: argparse.Namespace) -> int:
    session = _open_session(ctx)
    try:
        ring = session.get_ring()
        if ring.get_item(args.title) is not None and not args.replace:
            raise CommandError(f"An item titled {args.title!r} already exists; use --replace")
        stamp = now_ms()
        ring.new_item(
            args.title,
            username=args.username,
            password=getpass.getpass(f"Password for {args.title}: "),
            url=args.url,
            notes=args.notes,
            category=args.category,
            created=stamp,
            viewed=stamp,
            changed=stamp,
        )
        session.save()
    finally:
        session.lock()
    return 0


def cmd_remove(ctx: AppContext, args: argparse.Namespace) -> int:
    session = _open_session(ctx)
    try:
        if not session.get_ring().remove_item(args.title):
            raise CommandError(f"No item titled {args.title!r}")
        session.save()
    finally:
        session.lock()
    return 0


def cmd_categories(ctx: AppContext, args: argparse.Namespace) -> int:
    session = _open_session(ctx)
    try:
        for name in session.get_ring().categories():
            print(name)
    finally:
        session.lock()
    return 0


def cmd_export_csv(ctx: AppContext, args: argparse.Namespace) -> int:
    if is_url(args.out):
        raise CommandError("CSV export can only go to a file or '-'")
    session = _open_session(ctx)
    try:
        buf = io.StringIO(newline="")
        count = export_csv(session.get_ring(), buf)
    finally:
        session.lock()
    write_text(args.out, buf.getvalue())
    print(f"{count} items exported to {args.out}", file=sys.stderr)
    return 0


def cmd_convert(ctx: AppContext, args: argparse.Namespace) -> int:
    converter = get_converter(args.type)
    in_password = None
    if converter.needs_input_password:
        in_password = getpass.getpass("Enter password for input file: ")
    out_password = _new_password(ctx, "Enter password for JSON (output) file: ")
    count = converter.export(out_password, in_password, args.input, args.output)
    for message in converter.errors:
        print(f"WARNING: {message}", file=sys.stderr)
    print(f"{count} Items converted and written to {args.output}", file=sys.stderr)
    return 0


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keyringdesk",
        description="Desktop companion for Keyring for webOS databases.",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="Keyring file, '-' for stdin/stdout or an http URL (default: $KEYRINGDESK_DB or keyring.json)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init", help="Create a new, empty keyring")
    p.add_argument("--force", action="store_true", help="Overwrite an existing file")
    p.set_defaults(func=cmd_init)

    p = sub.add_parser("list", help="List item titles and categories")
    p.add_argument("--category", default=None, help="Only items in this category")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("show", help="Show one item")
    p.add_argument("title")
    p.add_argument("--reveal", action="store_true", help="Print the password")
    p.add_argument("--copy", action="store_true", help="Copy the password to the clipboard")
    p.add_argument(
        "--clear-after",
        type=float,
        default=0,
        metavar="SECONDS",
        help="With --copy: wait, then clear the clipboard if it still holds the password",
    )
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("add", help="Add an item; its password is prompted for")
    p.add_argument("title")
    p.add_argument("--username", default="")
    p.add_argument("--url", default="")
    p.add_argument("--notes", default="")
    p.add_argument("--category", default="Unfiled")
    p.add_argument("--replace", action="store_true", help="Overwrite an item with the same title")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("remove", help="Remove an item")
    p.add_argument("title")
    p.set_defaults(func=cmd_remove)

    p = sub.add_parser("categories", help="List categories")
    p.set_defaults(func=cmd_categories)

    p = sub.add_parser("export-csv", help="Export all items as plaintext CSV")
    p.add_argument("out", help="Output file or '-'")
    p.set_defaults(func=cmd_export_csv)

    p = sub.add_parser("convert", help="Convert a foreign export into a new keyring")
    p.add_argument("input")
    p.add_argument("output")
    p.add_argument("--type", default="csv", choices=CONVERTER_TYPES)
    p.set_defaults(func=cmd_convert)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    ctx = build_context(db=args.db, verbose=args.verbose)
    configure_logging(ctx.log_level)
    try:
        return args.func(ctx, args)
    except CommandError as exc:
        print(str(exc), file=sys.stderr)
    except KeyringError as exc:
        logger.debug("command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
    except OSError as exc:
        logger.debug("command failed", exc_info=True)
        print(f"I/O error: {exc}", file=sys.stderr)
    return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
