from __future__ import annotations

import argparse

from rich.panel import Panel
from rich.table import Table

from foliocms.application.services.project_service import ProjectService
from foliocms.cli.context import CLIContext


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("doctor", help="Check the database, resource groups and stored assets")
    parser.add_argument("--prune", action="store_true", help="Delete stored objects no record references")
    parser.set_defaults(handler=run_doctor)


def run_doctor(args: argparse.Namespace, ctx: CLIContext) -> int:
    services = ctx.require_services()
    ProjectService(ctx.paths).init_project()

    report = services.health.run_doctor()

    summary = Panel.fit(
        f"Checks run: {report.checks_run}\n"
        f"Issues: {len(report.issues)}\n"
        f"Status: {'PASS' if report.ok else 'FAIL'}",
        title="Doctor Summary",
    )
    ctx.console.print(summary)

    runtime = Table(title="Database Runtime")
    runtime.add_column("Setting")
    runtime.add_column("Value", overflow="fold")
    for key, value in report.db_runtime.items():
        runtime.add_row(str(key), str(value))
    ctx.console.print(runtime)

    if report.issues:
        out = Table(title="Doctor Issues")
        out.add_column("Level")
        out.add_column("Check")
        out.add_column("Message", overflow="fold")
        for issue in report.issues:
            out.add_row(issue.level, issue.check, issue.message)
        ctx.console.print(out)

    if args.prune and report.orphaned_objects:
        removed = services.health.prune_orphans()
        for bucket, paths in removed.items():
            ctx.console.print(f"[green]Pruned[/green] {len(paths)} object(s) from {bucket}")

    return 0 if report.ok else 1
