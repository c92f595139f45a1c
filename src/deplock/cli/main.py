"""deplock CLI: dependency resolution, caching and lockfiles.

Entry point for the ``deplock`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    lock    Resolve the manifest, fetch artifacts, write the lockfile.
    audit   Check manifest dependencies against the policy file.
    tree    Show the locked dependency tree.
    why     Explain why a package is in the lockfile.
    cache   Clean or verify the content-addressed cache.
    doctor  Check the workspace for drift and cache problems.

Usage::

    deplock lock
    deplock lock --versions versions.yaml -j 8
    deplock audit --json
    deplock tree
    deplock why tls
    deplock cache clean
    deplock cache verify
    deplock doctor

Exit codes (all commands): 0 success, 1 conflicts, policy failures or
corruption, 2 missing input.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from deplock import __version__
from deplock.cli.audit import audit_command
from deplock.cli.cache_cmd import cache_group
from deplock.cli.doctor_cmd import doctor_command
from deplock.cli.lock import lock_command
from deplock.cli.tree_cmd import tree_command, why_command
from deplock.config import Settings


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", count=True, help="Increase log verbosity (-v info, -vv debug).")
@click.option(
    "--cache-dir",
    type=click.Path(file_okay=False),
    envvar="DEPLOCK_CACHE_DIR",
    default=None,
    help="Cache root (default: ~/.cache/deplock).",
)
@click.option(
    "--manifest", "-m",
    type=click.Path(dir_okay=False),
    envvar="DEPLOCK_MANIFEST",
    default=None,
    help="Manifest file (default: deplock.yaml).",
)
@click.option(
    "--lockfile", "-l",
    type=click.Path(dir_okay=False),
    envvar="DEPLOCK_LOCKFILE",
    default=None,
    help="Lockfile (default: deplock.lock).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: int,
    cache_dir: str | None,
    manifest: str | None,
    lockfile: str | None,
) -> None:
    """deplock: reproducible dependency resolution and artifact caching.

    Resolves version constraints, fetches artifacts into a
    content-addressed cache, and records the result in a deterministic
    lockfile with provenance.
    """
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    ctx.obj = Settings.from_env().with_overrides(
        cache_dir=Path(cache_dir).expanduser() if cache_dir else None,
        manifest_path=Path(manifest) if manifest else None,
        lockfile_path=Path(lockfile) if lockfile else None,
    )


# Register all subcommands
cli.add_command(lock_command)
cli.add_command(audit_command)
cli.add_command(tree_command)
cli.add_command(why_command)
cli.add_command(cache_group)
cli.add_command(doctor_command)
