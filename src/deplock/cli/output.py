"""Rich output formatting helpers for the deplock CLI.

Provides consistent terminal output for resolution summaries, conflict
lists, audit reports, cache maintenance and dependency trees.
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from deplock.core.cache import CleanReport, IntegrityReport
from deplock.core.policy import AuditReport

console = Console()


def print_resolution_summary(
    success: bool,
    installed: dict[str, str],
    conflicts: list[str],
) -> None:
    """Print dependency resolution results.

    Args:
        success: Whether resolution succeeded.
        installed: Package name to version mapping (if success).
        conflicts: Conflict descriptions (if failure).
    """
    if success:
        console.print(
            Panel("[bold green]Resolution successful[/bold green]",
                  title="Dependency Resolution")
        )
        if installed:
            table = Table(show_header=True)
            table.add_column("Package", style="bold")
            table.add_column("Locked Version")
            for name in sorted(installed):
                table.add_row(name, installed[name])
            console.print(table)
        else:
            console.print("[dim]No dependencies to resolve.[/dim]")
    else:
        console.print(
            Panel("[bold red]Resolution failed[/bold red]",
                  title="Dependency Resolution")
        )
        for conflict in conflicts:
            console.print(f"  [red]- {conflict}[/red]")


def print_audit_report(report: AuditReport) -> None:
    """Print a policy audit as a verdict panel plus a violations table."""
    if report.passed_all:
        verdict = Text("PASSED", style="bold green")
    else:
        verdict = Text("FAILED", style="bold red")

    header = Text.assemble(
        ("Audited: ", "bold"), (str(report.total), ""),
        ("  Passed: ", "bold"), (str(report.passed), "green"),
        ("  Failed: ", "bold"), (str(report.failed), "red" if report.failed else ""),
        ("  Status: ", "bold"), verdict,
    )
    console.print(Panel(header, title="Policy Audit"))

    if report.violations:
        table = Table(title="Violations", show_header=True)
        table.add_column("Package", style="bold")
        table.add_column("Message")
        for violation in report.violations:
            table.add_row(violation.package_name, violation.message)
        console.print(table)


def print_clean_report(report: CleanReport) -> None:
    console.print(
        f"Removed [bold]{len(report.removed)}[/bold] cache entries "
        f"({_format_bytes(report.freed_bytes)}), kept {len(report.kept)}."
    )


def print_integrity_report(report: IntegrityReport) -> None:
    """Print the result of a cache integrity scan."""
    status = "[green]OK[/green]" if report.ok else "[red]PROBLEMS FOUND[/red]"
    console.print(Panel(
        f"Files: {report.total_files}  Size: {_format_bytes(report.total_bytes)}  "
        f"Status: {status}",
        title="Cache Integrity",
    ))
    for path in report.corrupted:
        console.print(f"  [red]corrupted[/red] {path}")
    for path in report.malformed_slots:
        console.print(f"  [yellow]malformed[/yellow] {path}")


def print_checks(checks: list[tuple[str, bool, str]]) -> None:
    """Print doctor checks as a pass/fail table."""
    table = Table(title="deplock doctor", show_header=True)
    table.add_column("Check", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Detail", style="dim")
    for name, passed, detail in checks:
        status = Text("OK", style="bold green") if passed else Text("FAIL", style="bold red")
        table.add_row(name, status, detail)
    console.print(table)


def print_json(data: Any) -> None:
    """Print data as formatted JSON to stdout.

    Args:
        data: Any JSON-serializable data structure.
    """
    console.print_json(json.dumps(data, default=str))


def _format_bytes(size: int) -> str:
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if value < 1024 or unit == "GiB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"
