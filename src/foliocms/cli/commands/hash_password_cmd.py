from __future__ import annotations

import argparse

from rich.prompt import Prompt

from foliocms.cli.context import CLIContext
from foliocms.core.errors import ValidationError
from foliocms.core.hashing import hash_password


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "hash-password",
        help="Hash an admin password for FOLIO_ADMIN_PASSWORD_HASH",
    )
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    password = Prompt.ask("Password", password=True, console=ctx.console)
    confirm = Prompt.ask("Repeat password", password=True, console=ctx.console)
    if not password:
        raise ValidationError("Password must not be empty.")
    if password != confirm:
        raise ValidationError("Passwords do not match.")
    ctx.console.print(hash_password(password), markup=False, highlight=False)
    return 0
