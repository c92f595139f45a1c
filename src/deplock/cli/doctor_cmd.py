"""``deplock doctor``: read-only health checks for the workspace and cache.

Checks that the manifest exists, the lockfile is present, consistent and
not older than the manifest, and that the cache has no unreadable files
or malformed entries. Nothing is repaired.

Exit Codes:
    0 — All checks passed.
    1 — At least one check failed.
"""

from __future__ import annotations

import json
import sys

import click

from deplock.cli.context import get_settings
from deplock.cli.output import print_checks, print_integrity_report, print_json
from deplock.core.cache import ContentStore
from deplock.core.lockfile import Lockfile, is_stale
from deplock.exceptions import LockfileError


@click.command("doctor")
@click.option("--json", "json_output", is_flag=True, default=False, help="Output as JSON.")
@click.pass_context
def doctor_command(ctx: click.Context, json_output: bool) -> None:
    """Diagnose manifest/lockfile drift and cache corruption."""
    settings = get_settings(ctx)
    checks: list[tuple[str, bool, str]] = []

    manifest_ok = settings.manifest_path.is_file()
    checks.append(("manifest", manifest_ok, str(settings.manifest_path)))

    lock_present = settings.lockfile_path.is_file()
    checks.append(("lockfile present", lock_present, str(settings.lockfile_path)))

    if lock_present:
        try:
            errors = Lockfile.load(settings.lockfile_path).validate()
        except (LockfileError, json.JSONDecodeError) as exc:
            errors = [str(exc)]
        checks.append(("lockfile consistent", not errors, "; ".join(errors) or "valid"))

    if manifest_ok:
        stale = is_stale(settings.manifest_path, settings.lockfile_path)
        checks.append((
            "lockfile up to date",
            not stale,
            "manifest changed since last lock; run 'deplock lock'" if stale else "current",
        ))

    integrity = ContentStore(settings.cache_dir).scan_integrity()
    checks.append((
        "cache integrity",
        integrity.ok,
        f"{integrity.total_files} files, {len(integrity.corrupted)} corrupted, "
        f"{len(integrity.malformed_slots)} malformed",
    ))

    healthy = all(passed for _, passed, _ in checks)
    if json_output:
        print_json({
            "healthy": healthy,
            "checks": [
                {"name": name, "passed": passed, "detail": detail}
                for name, passed, detail in checks
            ],
        })
    else:
        print_checks(checks)
        if not integrity.ok:
            print_integrity_report(integrity)
    sys.exit(0 if healthy else 1)
