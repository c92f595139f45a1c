"""``deplock audit``: check manifest dependencies against the policy file.

A missing policy file means the permissive default policy, so every
dependency passes.

Exit Codes:
    0 — Every dependency satisfies the policy.
    1 — At least one policy violation.
    2 — Manifest missing or invalid, or the policy file is malformed.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from deplock.cli.context import get_settings
from deplock.cli.output import print_audit_report, print_json
from deplock.core.manifest import read_manifest
from deplock.core.policy import Policy, PolicyEngine
from deplock.exceptions import ManifestError, PolicyError, VersionParseError


@click.command("audit")
@click.option(
    "--policy", "-p",
    type=click.Path(dir_okay=False),
    envvar="DEPLOCK_POLICY",
    default=None,
    help="Policy file (default: deplock-policy.json).",
)
@click.option("--json", "json_output", is_flag=True, default=False, help="Output as JSON.")
@click.pass_context
def audit_command(ctx: click.Context, policy: str | None, json_output: bool) -> None:
    """Validate every manifest dependency against allow/deny and hash rules.

    Exit code 0 if all pass, 1 on violations, 2 on missing or invalid input.
    """
    settings = get_settings(ctx)
    policy_path = Path(policy) if policy else settings.policy_path

    try:
        deps = read_manifest(settings.manifest_path)
    except FileNotFoundError:
        click.echo(f"Manifest not found: {settings.manifest_path}", err=True)
        sys.exit(2)
    except (ManifestError, VersionParseError) as exc:
        click.echo(f"Invalid manifest: {exc}", err=True)
        sys.exit(2)

    try:
        loaded = Policy.load(policy_path)
    except PolicyError as exc:
        click.echo(f"Invalid policy: {exc}", err=True)
        sys.exit(2)

    report = PolicyEngine(loaded).audit(deps)
    if json_output:
        print_json(report.to_dict())
    else:
        print_audit_report(report)
    sys.exit(0 if report.passed_all else 1)
