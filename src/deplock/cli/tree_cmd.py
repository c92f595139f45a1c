"""``deplock tree`` and ``deplock why``: inspect the locked dependency graph.

Both commands read only the lockfile; nothing is resolved or fetched.

Exit Codes:
    0 — Output shown.
    1 — The requested package is not in the lockfile.
    2 — Lockfile missing, empty or corrupt.
"""

from __future__ import annotations

import json
import sys

import click

from deplock.cli.context import get_settings
from deplock.cli.output import console, print_json
from deplock.core.dependency import build_display_tree, render_tree, tree_stats
from deplock.core.lockfile import Lockfile
from deplock.exceptions import LockfileError


def _load_or_exit(ctx: click.Context) -> Lockfile:
    settings = get_settings(ctx)
    try:
        lockfile = Lockfile.load(settings.lockfile_path)
    except (LockfileError, json.JSONDecodeError) as exc:
        click.echo(f"Invalid lockfile {settings.lockfile_path}: {exc}", err=True)
        sys.exit(2)
    if len(lockfile) == 0:
        click.echo(
            f"No locked dependencies in {settings.lockfile_path}; run 'deplock lock' first.",
            err=True,
        )
        sys.exit(2)
    return lockfile


@click.command("tree")
@click.argument("package", required=False)
@click.pass_context
def tree_command(ctx: click.Context, package: str | None) -> None:
    """Show the locked dependency tree, optionally rooted at PACKAGE.

    Without PACKAGE, one tree is drawn per top-level package (a package
    no other locked package depends on).
    """
    lockfile = _load_or_exit(ctx)
    graph = lockfile.to_graph()

    if package is not None:
        if package not in lockfile:
            click.echo(f"{package} is not in the lockfile.", err=True)
            sys.exit(1)
        roots = [package]
    else:
        roots = [name for name in graph.names if not graph.dependents_of(name)]
        # Every package sits on a cycle; show them all.
        roots = roots or graph.names

    depth = 0
    for root in roots:
        display = build_display_tree(graph, root)
        console.print(render_tree(display), markup=False, highlight=False)
        depth = max(depth, tree_stats(display).max_depth)
    console.print(
        f"\n[dim]{len(lockfile)} locked packages, max depth {depth}[/dim]"
    )
    sys.exit(0)


@click.command("why")
@click.argument("package")
@click.option("--json", "json_output", is_flag=True, default=False, help="Output as JSON.")
@click.pass_context
def why_command(ctx: click.Context, package: str, json_output: bool) -> None:
    """Explain why PACKAGE is locked: every chain from a top-level package."""
    lockfile = _load_or_exit(ctx)
    if package not in lockfile:
        click.echo(f"{package} is not in the lockfile.", err=True)
        sys.exit(1)

    graph = lockfile.to_graph()
    paths = graph.paths_to(package)
    if json_output:
        print_json({"package": package, "paths": paths, "dependents": graph.dependents_of(package)})
        sys.exit(0)

    entry = lockfile.get(package)
    console.print(f"[bold]{package}[/bold] @ {entry.version}")
    if not paths or paths == [[package]]:
        console.print("  top-level dependency")
    for path in paths:
        if len(path) > 1:
            console.print("  " + " -> ".join(path), markup=False, highlight=False)
    sys.exit(0)
