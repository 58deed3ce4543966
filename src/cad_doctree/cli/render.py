"""Rich rendering shared by the CLI commands."""

from collections.abc import Mapping, Sequence
from typing import Any

from rich.console import Console
from rich.table import Table

from cad_doctree.models import BatchReport

console = Console()

_CATEGORIES = (
    "renamed",
    "failed_renames",
    "updated_references",
    "failed",
    "renamed_projects",
    "failed_project_renames",
    "planning_failures",
    "deleted",
    "failed_deletes",
    "warnings",
)


def render_table(headers: Sequence[str], rows: Sequence[tuple[Any, ...]], title: str | None = None) -> None:
    table = Table(show_lines=False, title=title)
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*("" if v is None else str(v) for v in row))
    console.print(table)
    console.print(f"({len(rows)} rows)")


def render_mapping(mapping: Mapping[str, str]) -> None:
    render_table(["source", "target"], sorted(mapping.items()), title="Rename plan")


def render_report(report: BatchReport) -> None:
    for category in _CATEGORIES:
        entries = getattr(report, category)
        if not entries:
            continue
        rows = [(e.path, e.target, e.reason, e.detail) for e in entries]
        render_table(["path", "target", "reason", "detail"], rows, title=category)
    summary = report.summary
    if summary is not None:
        colour = "green" if report.success else "red"
        console.print(
            f"[{colour}]processed={summary.processed} updated={summary.updated} "
            f"failed={summary.failed_count} success_rate={summary.success_rate:.1f}%[/{colour}]"
        )
    if report.cancelled:
        console.print("[yellow]Run was cancelled before completion.[/yellow]")
