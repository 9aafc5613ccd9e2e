from __future__ import annotations

import argparse
import json
import mimetypes
from pathlib import Path
from typing import Any

from rich.panel import Panel
from rich.table import Table

from foliocms.cli.context import CLIContext
from foliocms.core.errors import ValidationError
from foliocms.domain.content_catalog import CONTENT_TABLES, get_content_table
from foliocms.domain.models.asset import AssetChange, UploadedFile


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("content", help="Manage portfolio content records")
    content_subparsers = parser.add_subparsers(dest="content_command", required=True)

    list_parser = content_subparsers.add_parser("list", help="List records of a content table")
    list_parser.add_argument("table", choices=sorted(CONTENT_TABLES))
    list_parser.add_argument("--limit", type=int, default=100)
    list_parser.set_defaults(handler=run_list)

    show_parser = content_subparsers.add_parser("show", help="Show one content record")
    show_parser.add_argument("table", choices=sorted(CONTENT_TABLES))
    show_parser.add_argument("record_id")
    show_parser.set_defaults(handler=run_show)

    save_parser = content_subparsers.add_parser("save", help="Create or update a content record")
    save_parser.add_argument("table", choices=sorted(CONTENT_TABLES))
    save_parser.add_argument("--id", dest="record_id", help="Existing record id (or the key of a legal document)")
    save_parser.add_argument(
        "--field",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Column value; JSON values are parsed for list/object columns. Repeatable.",
    )
    asset_group = save_parser.add_mutually_exclusive_group()
    asset_group.add_argument("--file", type=Path, help="Upload this file as the record's asset")
    asset_group.add_argument("--clear-asset", action="store_true", help="Remove the record's asset")
    asset_group.add_argument("--asset-url", help="Point the asset field at this URL")
    save_parser.set_defaults(handler=run_save)

    delete_parser = content_subparsers.add_parser("delete", help="Delete a content record and its asset")
    delete_parser.add_argument("table", choices=sorted(CONTENT_TABLES))
    delete_parser.add_argument("record_id")
    delete_parser.set_defaults(handler=run_delete)


def run_list(args: argparse.Namespace, ctx: CLIContext) -> int:
    services = ctx.require_services()
    content_table = get_content_table(args.table)
    records = services.content.list(args.table, limit=args.limit)

    table = Table(title=f"{content_table.label} ({len(records)})")
    table.add_column("ID")
    columns = [c for c in content_table.columns if c not in content_table.json_columns][:4]
    for column in columns:
        table.add_column(column, overflow="fold")

    for record in records:
        table.add_row(record.id, *[_display(record.fields.get(c)) for c in columns])

    ctx.console.print(table)
    return 0


def run_show(args: argparse.Namespace, ctx: CLIContext) -> int:
    services = ctx.require_services()
    record = services.content.get(args.table, args.record_id)
    ctx.console.print(
        Panel.fit(
            json.dumps(record.to_dict(), indent=2, ensure_ascii=False),
            title=f"{args.table} {record.id}",
        )
    )
    return 0


def run_save(args: argparse.Namespace, ctx: CLIContext) -> int:
    services = ctx.require_services()
    content_table = get_content_table(args.table)
    fields = _parse_fields(args.field, content_table.json_columns)

    asset_change: AssetChange | None = None
    if args.file is not None:
        if not args.file.is_file():
            raise ValidationError(f"File not found: {args.file}")
        content_type = mimetypes.guess_type(args.file.name)[0] or "application/octet-stream"
        asset_change = AssetChange(
            new_file=UploadedFile(data=args.file.read_bytes(), filename=args.file.name, content_type=content_type)
        )
    elif args.clear_asset:
        asset_change = AssetChange(cleared_url_field=True)
    elif args.asset_url:
        asset_change = AssetChange(manual_url=args.asset_url)

    result = services.content.save(
        args.table,
        fields,
        actor=ctx.settings.admin_identifier,
        record_id=args.record_id,
        asset_change=asset_change,
    )

    ctx.console.print(f"[green]{result.action.capitalize()}[/green] {args.table} {result.record.id}")
    if content_table.has_asset:
        ctx.console.print(f"Asset: {result.asset_url or '-'}")
        if result.old_asset_deleted:
            ctx.console.print("[yellow]Previous asset removed from storage[/yellow]")
    return 0


def run_delete(args: argparse.Namespace, ctx: CLIContext) -> int:
    services = ctx.require_services()
    result = services.content.delete(args.table, args.record_id, actor=ctx.settings.admin_identifier)
    ctx.console.print(f"[green]Deleted[/green] {args.table} {result.record.id}")
    if result.asset_deleted:
        ctx.console.print("[yellow]Asset removed from storage[/yellow]")
    return 0


def _parse_fields(pairs: list[str], json_columns: tuple[str, ...]) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise ValidationError(f"Expected NAME=VALUE, got: {pair!r}")
        name = name.strip()
        if name in json_columns:
            try:
                fields[name] = json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValidationError(f"Column {name} expects JSON: {exc}") from exc
        else:
            fields[name] = value
    return fields


def _display(value: Any) -> str:
    if value is None:
        return ""
    text = str(value)
    return text if len(text) <= 60 else text[:57] + "..."
