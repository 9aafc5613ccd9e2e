from __future__ import annotations

import argparse

from rich.table import Table

from foliocms.cli.context import CLIContext
from foliocms.domain.resource_groups import all_groups


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("groups", help="List the resource groups available for bulk deletion")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    groups = all_groups()
    table = Table(title=f"Resource groups ({len(groups)})")
    table.add_column("Key")
    table.add_column("Label")
    table.add_column("Tables", overflow="fold")
    table.add_column("Buckets", overflow="fold")

    for group in groups:
        table.add_row(group.key, group.label, ", ".join(group.tables), ", ".join(group.buckets) or "-")

    ctx.console.print(table)
    return 0
