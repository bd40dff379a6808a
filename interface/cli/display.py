"""Console output and formatting helpers for the bot host CLI."""

from typing import Dict, List

from rich.markup import escape
from rich.table import Table

from domain.entities import InstanceStatus, RiskLevel, ValidationVerdict

RISK_STYLES = {
    RiskLevel.LOW: "green",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.HIGH: "bold red",
}


def show_verdict(console, verdict: ValidationVerdict, source: str = "") -> None:
    """Display a validation verdict with one row per issue."""
    style = RISK_STYLES[verdict.risk_level]
    heading = f"{escape(source)}: " if source else ""
    status = "valid" if verdict.is_valid else "rejected"
    console.print(
        f"{heading}[{style}]{verdict.risk_level.value} risk[/{style}] ({status})"
    )

    if not verdict.issues:
        console.print("No issues found.")
        return

    table = Table(title="Issues", show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", width=4)
    table.add_column("Issue", width=70)
    for number, issue in enumerate(verdict.issues, start=1):
        table.add_row(str(number), escape(issue))
    console.print(table)


def show_instances(console, rows: List[InstanceStatus]) -> None:
    """Display the status report of stored instances."""
    if not rows:
        console.print("No instances stored yet. Add one with 'botforge add'.")
        return

    table = Table(title="Bot Instances", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", width=36)
    table.add_column("Name", width=20)
    table.add_column("Running", width=8)
    table.add_column("Persisted", width=9)
    table.add_column("Last failure", width=40)

    for row in rows:
        failure = ""
        if row.last_failure is not None:
            failure = escape(f"{row.last_failure.kind.value}: {row.last_failure.message}")
        persisted = "yes" if row.persisted_active else "no"
        if not row.in_sync:
            persisted = f"[yellow]{persisted}[/yellow]"
        table.add_row(
            row.instance_id,
            escape(row.name),
            "[green]yes[/green]" if row.running else "no",
            persisted,
            failure,
        )

    console.print(table)


def show_start_results(console, results: Dict[str, bool]) -> None:
    """Summarize which instances a serve run started."""
    if not results:
        console.print("No instances were started.")
        return
    for instance_id, started in results.items():
        mark = "[green]started[/green]" if started else "[red]failed[/red]"
        console.print(f"  {instance_id}: {mark}")
