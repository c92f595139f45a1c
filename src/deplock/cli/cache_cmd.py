"""``deplock cache clean|verify``: maintain the content-addressed cache.

``clean`` deletes every cached artifact the lockfile does not reference.
It must not run while another ``deplock lock`` uses the same cache root.

Exit Codes:
    0 — Cache cleaned, or every locked artifact verified.
    1 — ``verify`` found missing or modified artifacts.
    2 — The lockfile is corrupt.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from typing import TypeVar

import click

from deplock.cli.context import get_settings
from deplock.cli.output import console, print_clean_report, print_json
from deplock.exceptions import LockfileError
from deplock.fetch import FetcherRouter
from deplock.session import DependencySession

T = TypeVar("T")


def _session(ctx: click.Context) -> DependencySession:
    settings = get_settings(ctx)
    return DependencySession(settings, FetcherRouter({}))


def _run(ctx: click.Context, operation: Callable[[DependencySession], T]) -> T:
    session = _session(ctx)
    try:
        return operation(session)
    except (LockfileError, json.JSONDecodeError) as exc:
        click.echo(f"Invalid lockfile {session.settings.lockfile_path}: {exc}", err=True)
        sys.exit(2)


@click.group("cache")
def cache_group() -> None:
    """Inspect and maintain the artifact cache."""


@cache_group.command("clean")
@click.option("--json", "json_output", is_flag=True, default=False, help="Output as JSON.")
@click.pass_context
def clean_command(ctx: click.Context, json_output: bool) -> None:
    """Remove cached artifacts not referenced by the lockfile."""
    report = _run(ctx, DependencySession.clean_cache)
    if json_output:
        print_json({
            "removed": report.removed,
            "kept": report.kept,
            "freed_bytes": report.freed_bytes,
        })
    else:
        print_clean_report(report)
    sys.exit(0)


@cache_group.command("verify")
@click.option("--json", "json_output", is_flag=True, default=False, help="Output as JSON.")
@click.pass_context
def verify_command(ctx: click.Context, json_output: bool) -> None:
    """Recompute the hash of every locked artifact in the cache."""
    report = _run(ctx, DependencySession.verify)
    if json_output:
        print_json({
            "ok": report.ok,
            "verified": report.verified,
            "missing": report.missing,
            "mismatched": report.mismatched,
        })
    else:
        for name in report.verified:
            console.print(f"  [green]ok[/green]        {name}")
        for name in report.missing:
            console.print(f"  [yellow]missing[/yellow]   {name}")
        for name in report.mismatched:
            console.print(f"  [red]modified[/red]  {name}")
        console.print(
            f"\n{len(report.verified)} verified, {len(report.missing)} missing, "
            f"{len(report.mismatched)} modified"
        )
    sys.exit(0 if report.ok else 1)
