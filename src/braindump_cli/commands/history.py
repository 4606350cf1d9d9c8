"""History commands: calendar view of archived days."""

from datetime import date

import typer
from rich.markup import escape
from rich.table import Table

from braindump_cli.utils.exit_codes import ERROR_INVALID_ARGS, ERROR_NOT_FOUND
from braindump_cli.utils.typer_helpers import SuggestingGroup
from braindump_cli.utils.ui.console import get_console
from braindump_cli.utils.ui.formatters import (
    build_calendar,
    format_error,
    format_history_entry,
)

from .utils import get_controller

console = get_console()
app = typer.Typer(cls=SuggestingGroup, help="Archived days")


def _parse_month(value: str | None) -> tuple[int, int]:
    if value is None:
        today = date.today()
        return today.year, today.month
    try:
        year, month = (int(part) for part in value.split("-"))
        date(year, month, 1)
    except ValueError as e:
        format_error(f"Invalid month '{value}', expected YYYY-MM")
        raise typer.Exit(ERROR_INVALID_ARGS) from e
    return year, month


@app.command("calendar")
def show_calendar(
    month: str | None = typer.Option(None, "--month", "-m", help="Month as YYYY-MM"),
) -> None:
    """Show a month of archived days."""
    year, month_num = _parse_month(month)
    archive = get_controller().archive
    entries = archive.query_month(year, month_num)

    console.print(build_calendar(year, month_num, entries, date.today()))
    console.print(
        f"[dim]{archive.count()} day(s) recorded  •  [green]✓[/green] done  "
        f"•  ● checked ○ open[/dim]"
    )
    if archive.count() == 0:
        console.print("\n[dim]No history yet. Finish a plan and it will show up here.[/dim]")


@app.command("show")
def show_day(
    day: str = typer.Argument(..., help="Date as YYYY-MM-DD"),
) -> None:
    """Show the plan archived for a day."""
    try:
        date.fromisoformat(day)
    except ValueError as e:
        format_error(f"Invalid date '{day}', expected YYYY-MM-DD")
        raise typer.Exit(ERROR_INVALID_ARGS) from e

    entry = get_controller().archive.query(day)
    if entry is None:
        console.print(f"[yellow]Nothing recorded for {day}[/yellow]")
        raise typer.Exit(ERROR_NOT_FOUND)
    format_history_entry(entry)


@app.command("list")
def list_days(
    limit: int = typer.Option(30, min=1, help="Number of days to show"),
) -> None:
    """List archived days, newest first."""
    entries = get_controller().archive.query_all()
    if not entries:
        console.print("[yellow]No history yet[/yellow]")
        return

    table = Table(title=f"History ({len(entries)} days)", show_header=True)
    table.add_column("Date", style="cyan")
    table.add_column("Done", justify="right")
    table.add_column("Top priority")
    table.add_column("", justify="center")

    for entry in reversed(entries[-limit:]):
        summary = entry.summary()
        first = entry.result.top3[0] if entry.result.top3 else "-"
        table.add_row(
            entry.date,
            f"{summary.done}/{summary.total}",
            escape(first[:40]),
            "[green]✓[/green]" if summary.all_done else "",
        )
    console.print(table)
