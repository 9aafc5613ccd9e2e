from __future__ import annotations

import argparse
import json

from rich.table import Table

from foliocms.cli.context import CLIContext


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("activity", help="Show the admin activity log")
    parser.add_argument("--limit", type=int, default=50)
    parser.add_argument("--action-type", help="Only show entries of this action type")
    parser.add_argument("--details", action="store_true", help="Include the details payload")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    services = ctx.require_services()
    entries = services.activity_log.recent(limit=args.limit, action_type=args.action_type)

    table = Table(title=f"Admin activity ({len(entries)})")
    table.add_column("Timestamp")
    table.add_column("User")
    table.add_column("Action")
    table.add_column("Description", overflow="fold")
    if args.details:
        table.add_column("Details", overflow="fold")

    for entry in entries:
        row = [entry.occurred_at, entry.user_identifier, entry.action_type, entry.description]
        if args.details:
            row.append(json.dumps(entry.details, ensure_ascii=False) if entry.details else "")
        table.add_row(*row)

    ctx.console.print(table)
    return 0
