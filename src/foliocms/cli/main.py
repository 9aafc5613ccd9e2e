from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.console import Console

from foliocms.cli.commands import (
    activity_cmd,
    content_cmd,
    doctor_cmd,
    groups_cmd,
    hash_password_cmd,
    init_cmd,
    purge_cmd,
    web_cmd,
)
from foliocms.cli.context import CLIContext
from foliocms.core.config import load_paths, load_settings
from foliocms.core.errors import FolioError
from foliocms.core.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="folio",
        description="Folio portfolio CMS",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=Path.cwd(),
        help="Project root to use for .folio data (default: current working directory)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)

    subparsers = parser.add_subparsers(dest="command", required=True)
    init_cmd.register(subparsers)
    groups_cmd.register(subparsers)
    content_cmd.register(subparsers)
    activity_cmd.register(subparsers)
    purge_cmd.register(subparsers)
    doctor_cmd.register(subparsers)
    hash_password_cmd.register(subparsers)
    web_cmd.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    paths = load_paths(args.project_root)
    ctx = CLIContext(paths=paths, settings=load_settings(), console=console)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 2

    try:
        return handler(args, ctx)
    except FolioError as exc:
        logger.error(str(exc))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
