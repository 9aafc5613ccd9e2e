from __future__ import annotations

import argparse
import time

from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn
from rich.prompt import Confirm, Prompt

from foliocms.application.services.deletion_protocol import GuardedDeletionProtocol
from foliocms.cli.context import CLIContext
from foliocms.core.errors import AuthenticationError, FunctionInvocationError, RemoteDeletionLogicError
from foliocms.core.ids import new_session_token
from foliocms.core.time import now_utc_iso
from foliocms.domain.models.session import AdminSession
from foliocms.domain.resource_groups import all_groups, groups_by_keys

_TICK_SECONDS = 0.1


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "purge",
        help="Permanently delete selected resource groups (password and countdown guarded)",
    )
    parser.add_argument("groups", nargs="*", help="Resource group keys (see 'folio groups')")
    parser.add_argument("--all", action="store_true", help="Select every resource group")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    services = ctx.require_services()
    protocol = services.new_deletion_protocol()

    keys = [group.key for group in all_groups()] if args.all else list(args.groups)
    protocol.select(keys)

    session = None
    if services.identity.configured:
        session = AdminSession(
            identifier=ctx.settings.admin_identifier,
            token=new_session_token(),
            issued_at=now_utc_iso(),
        )
    notice = protocol.initiate(session)
    if notice:
        ctx.console.print(f"[yellow]{notice}[/yellow]")
        return 1

    groups = groups_by_keys(keys)
    ctx.console.print(
        Panel.fit(
            "\n".join(f"- {group.label} ({', '.join(group.tables)})" for group in groups),
            title="[red]The following data will be permanently deleted[/red]",
        )
    )

    credential = Prompt.ask("Admin password", password=True, console=ctx.console)
    try:
        protocol.reauthenticate(credential)
    except AuthenticationError as exc:
        protocol.cancel()
        ctx.console.print(f"[red]{exc}[/red]")
        return 1

    try:
        _run_countdown(protocol, ctx)
    except KeyboardInterrupt:
        protocol.cancel()
        ctx.console.print("[yellow]Deletion cancelled.[/yellow]")
        return 1

    if not Confirm.ask("Delete now?", default=False, console=ctx.console):
        protocol.cancel()
        ctx.console.print("[yellow]Deletion cancelled.[/yellow]")
        return 1

    try:
        message = protocol.confirm()
    except (FunctionInvocationError, RemoteDeletionLogicError) as exc:
        ctx.console.print(Panel.fit(str(exc), title="[red]Deletion failed[/red]"))
        return 1

    ctx.console.print(Panel.fit(message, title="[green]Deletion complete[/green]"))
    return 0


def _run_countdown(protocol: GuardedDeletionProtocol, ctx: CLIContext) -> None:
    total = protocol.countdown_seconds
    with Progress(
        TextColumn("[red]Deleting in"),
        BarColumn(),
        TextColumn("{task.fields[remaining]:.1f}s  (Ctrl-C to cancel)"),
        console=ctx.console,
        transient=True,
    ) as progress:
        task = progress.add_task("countdown", total=total, remaining=total)
        while not protocol.can_confirm():
            remaining = protocol.seconds_remaining() or 0.0
            progress.update(task, completed=total - remaining, remaining=remaining)
            time.sleep(_TICK_SECONDS)
        progress.update(task, completed=total, remaining=0.0)
