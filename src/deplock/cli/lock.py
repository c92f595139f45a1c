"""``deplock lock``: resolve the manifest and write the lockfile.

Reads the manifest, checks every requirement pair for conflicts, resolves
each constrained package to its highest satisfying version, fetches
artifacts into the content-addressed cache, and writes a deterministic
lockfile.

Exit Codes:
    0 — Lockfile written.
    1 — Conflicting or unsatisfiable requirements, a dependency cycle, or
        a failed fetch.
    2 — Manifest not found or invalid (including a dependency's own
        manifest), or the existing lockfile is corrupt.
"""

from __future__ import annotations

import json
import sys

import click

from deplock.cli.context import get_settings, version_source_for
from deplock.cli.output import console, print_json, print_resolution_summary
from deplock.core.manifest import load_manifest
from deplock.exceptions import (
    CircularDependencyError,
    FetchError,
    LockfileError,
    ManifestError,
    ResolutionError,
    VersionConflict,
    VersionParseError,
)
from deplock.fetch import FetcherRouter
from deplock.session import DependencySession


@click.command("lock")
@click.option(
    "--versions",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML file of candidate versions ({name: [versions]}); default: git tags.",
)
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=None, help="Parallel fetches.")
@click.option("--json", "json_output", is_flag=True, default=False, help="Output as JSON.")
@click.pass_context
def lock_command(
    ctx: click.Context,
    versions: str | None,
    jobs: int | None,
    json_output: bool,
) -> None:
    """Resolve dependencies and write the lockfile.

    Exit code 0 on success, 1 on resolution or fetch failure, 2 if a
    manifest is missing or invalid or the existing lockfile is corrupt.
    """
    settings = get_settings(ctx, jobs=jobs)

    try:
        manifest = load_manifest(settings.manifest_path)
    except FileNotFoundError:
        click.echo(f"Manifest not found: {settings.manifest_path}", err=True)
        sys.exit(2)
    except (ManifestError, VersionParseError) as exc:
        click.echo(f"Invalid manifest: {exc}", err=True)
        sys.exit(2)

    fetcher = FetcherRouter.default(base_dir=settings.manifest_path.resolve().parent)
    session = DependencySession(settings, fetcher, version_source_for(versions))

    try:
        result = session.lock(list(manifest.dependencies), project=manifest.name)
    except VersionConflict as exc:
        _report_failure(json_output, [str(exc)])
        sys.exit(1)
    except CircularDependencyError as exc:
        _report_failure(json_output, [f"Circular dependency: {' -> '.join(exc.cycle)}"])
        sys.exit(1)
    except ResolutionError as exc:
        _report_failure(json_output, [str(c) for c in exc.conflicts] or [str(exc)])
        sys.exit(1)
    except FetchError as exc:
        _report_failure(json_output, [str(exc)])
        sys.exit(1)
    except (ManifestError, VersionParseError) as exc:
        click.echo(f"Invalid manifest: {exc}", err=True)
        sys.exit(2)
    except (LockfileError, json.JSONDecodeError) as exc:
        click.echo(f"Invalid lockfile {settings.lockfile_path}: {exc}", err=True)
        sys.exit(2)

    installed = {entry.name: entry.version for entry in result.lockfile.entries}
    if json_output:
        print_json({
            "success": True,
            "lockfile": str(settings.lockfile_path),
            "installed": installed,
            "fetched": result.fetched,
            "reused": result.reused,
        })
    else:
        print_resolution_summary(success=True, installed=installed, conflicts=[])
        console.print(
            f"\n{len(result.fetched)} fetched, {len(result.reused)} from cache"
        )
        click.echo(f"Lockfile written to: {settings.lockfile_path}")
    sys.exit(0)


def _report_failure(json_output: bool, conflicts: list[str]) -> None:
    if json_output:
        print_json({"success": False, "conflicts": conflicts})
    else:
        print_resolution_summary(success=False, installed={}, conflicts=conflicts)
