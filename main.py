#!/usr/bin/env python3
"""
One-time Share CLI
Share a local file through a URL served by this host. The first download
activates the link; it keeps working for the validity window (4 hours by
default) and is refused afterwards.

Usage:
    python main.py config
    python main.py serve
    python main.py add path/to/file
    python main.py ls
    python main.py del TOKEN [TOKEN ...]
    python main.py purge
"""

import argparse
import logging
import sys
from typing import Optional

from infrastructure.store import JsonTokenStore
from onetime.config import LOG_FORMAT, Settings, create_default_config, load_settings
from onetime.errors import ConfigError, FatalEntropyFailure, ShareError, ValidationError
from onetime.lifecycle import ShareService
from onetime.printer import OutputPrinter

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_ENTROPY: int = 70
EXIT_INTERRUPTED: int = 130


def build_parser() -> argparse.ArgumentParser:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="onetime",
        description="Share local files through one-time, time-limited download links.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py config
  python main.py add ~/reports/report.pdf
  python main.py ls
  python main.py del ab12cd34 ef56gh78
        """,
    )
    parser.add_argument(
        "--config",
        "-c",
        metavar="PATH",
        default=None,
        help="Configuration file (default: $ONETIME_CONFIG, else onetime.json beside main.py).",
    )
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress all output except errors (add still prints the URL).",
    )
    parser.add_argument(
        "--no-color",
        "-n",
        action="store_true",
        help="Disable colored output (also auto-disabled when NO_COLOR env var is set).",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    config_cmd = commands.add_parser("config", help="Create a default configuration file.")
    config_cmd.add_argument("--force", action="store_true", help="Overwrite an existing file.")

    commands.add_parser("serve", aliases=["server"], help="Serve one-time requests.")

    add_cmd = commands.add_parser("add", aliases=["create"], help="Create a one-time link for a file.")
    add_cmd.add_argument("path", metavar="PATH", help="File to share.")

    commands.add_parser("ls", aliases=["list"], help="List existing tokens.")

    del_cmd = commands.add_parser("del", aliases=["delete", "rm"], help="Delete tokens.")
    del_cmd.add_argument("tokens", metavar="TOKEN", nargs="+", help="Token to delete.")

    commands.add_parser("purge", help="Delete all expired tokens.")

    return parser


def _service(settings: Settings) -> ShareService:
    return ShareService.from_settings(settings, JsonTokenStore(settings.token_db))


def _show_settings(printer: OutputPrinter, settings: Settings) -> None:
    printer.success(
        title="Serving one-time requests",
        details={
            "config":    settings.config_path,
            "TOKEN_DB":  settings.token_db,
            "LOG_FILE":  settings.log_file,
            "BASE_ADDR": settings.base_addr,
            "CRT":       settings.crt,
            "KEY":       settings.key,
        },
    )


def run(args: argparse.Namespace, printer: OutputPrinter) -> int:
    """Dispatch one command. Returns the process exit status."""
    if args.command == "config":
        path: str = create_default_config(args.config, force=args.force)
        printer.success(
            title="Config file created",
            details={"Path": path},
        )
        printer.info("Edit this file before launching the server.")
        return EXIT_OK

    settings: Settings = load_settings(args.config)

    if args.command in ("serve", "server"):
        # Flask is only needed by the server
        from server import serve

        _show_settings(printer, settings)
        serve(settings)
        return EXIT_OK

    service: ShareService = _service(settings)

    if args.command in ("add", "create"):
        printer.receipt(service.add(args.path))
    elif args.command in ("ls", "list"):
        printer.token_list(service.list())
    elif args.command in ("del", "delete", "rm"):
        printer.removed(service.remove(*args.tokens), requested=args.tokens)
    elif args.command == "purge":
        purged = service.purge()
        printer.removed(purged)
        printer.info(f"{len(purged)} expired token(s) purged.")
    return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    parser: argparse.ArgumentParser = build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    # HIG: Consistency, centralized output formatting
    printer: OutputPrinter = OutputPrinter(
        quiet=args.quiet,
        no_color=args.no_color,
    )
    # Store warnings (corrupt snapshot, failed writes) reach the operator on stderr
    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT)

    try:
        return run(args, printer)
    except (ConfigError, ValidationError) as exc:
        printer.error(str(exc))
        return EXIT_ERROR
    except FatalEntropyFailure as exc:
        # No fallback: a predictable token defeats the whole scheme
        printer.error(f"Random source failure: {exc}", hint="Refusing to create a token.")
        return EXIT_ENTROPY
    except ShareError as exc:
        printer.error(str(exc))
        return EXIT_ERROR
    except KeyboardInterrupt:
        printer.warning("Interrupted.")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
