"""Rich renderers for plans, history and timetables."""

import calendar
from datetime import date

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from braindump_cli.models.plan import (
    ClassificationResult,
    DayPlan,
    DaySummary,
    HistoryEntry,
    Stage,
    TimetableResult,
    item_key,
)
from braindump_cli.utils.ui.console import get_console

console = get_console()

SECTION_TITLES = {
    "shallow": "Shallow work",
    "deep": "Deep focus",
    "micro": "First steps",
}

STAGE_LABELS = {
    Stage.INPUT: "Waiting for your brain dump",
    Stage.TIME_CONFIG: "Choose your available time",
    Stage.AWAITING: "Sorting your tasks...",
    Stage.RESULT: "Today's plan",
    Stage.ARCHIVED: "Day complete",
}

PHASE_STYLES = {
    "warm-up": "yellow",
    "deep focus": "magenta",
    "deep-focus": "magenta",
    "wind-down": "green",
}

WEEKDAY_HEADERS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def format_error(message: str) -> None:
    """Format and display an error message."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    console.print(f"[bold green]Success:[/bold green] {escape(message)}")


def format_warning(message: str) -> None:
    """Format and display a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {escape(message)}")


def format_info(message: str) -> None:
    """Format and display an info message."""
    console.print(f"[bold blue]Info:[/bold blue] {escape(message)}")


def minutes_label(minutes: int) -> str:
    """90 -> '1h 30m', 120 -> '2h', 45 -> '45m'."""
    if minutes < 60:
        return f"{minutes}m"
    hours, rest = divmod(minutes, 60)
    return f"{hours}h {rest}m" if rest else f"{hours}h"


def phase_style(phase: str) -> str:
    return PHASE_STYLES.get(phase.strip().lower(), "white")


def get_progress_bar(percentage: float) -> str:
    """Get a progress bar representation."""
    filled = int(percentage / 10)
    empty = 10 - filled
    return "▓" * filled + "░" * empty


def get_completion_color(percentage: float) -> str:
    """Get color based on completion percentage."""
    if percentage >= 80:
        return "green"
    if percentage >= 40:
        return "yellow"
    return "red"


def _check_mark(done: bool) -> str:
    return "[green]✓[/green]" if done else "[dim]○[/dim]"


def format_summary(summary: DaySummary) -> str:
    color = get_completion_color(summary.percent)
    return (
        f"[{color}]{get_progress_bar(summary.percent)}[/{color}] "
        f"{summary.percent}%  ({summary.done}/{summary.total} done)"
    )


def format_plan(plan: DayPlan) -> None:
    """Print the active plan with the keys used by check/delete."""
    title = f"{STAGE_LABELS[plan.stage]}  [dim]{plan.date}[/dim]"
    console.print(Panel(Text.from_markup(title), expand=False))

    if plan.result is None:
        if plan.dump_text:
            console.print("[bold]Brain dump[/bold]")
            console.print(plan.dump_text, markup=False)
        if plan.available_minutes is not None:
            console.print(f"\nAvailable time: {minutes_label(plan.available_minutes)}")
        return

    result = plan.result
    summary = plan.summary()

    table = Table(title="Top priorities", show_header=True, title_justify="left")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("", justify="center")
    table.add_column("Task")
    for i, task in enumerate(result.top3):
        key = item_key("top3", i)
        done = plan.checks.get(key, False)
        text = f"[strike dim]{escape(task)}[/strike dim]" if done else escape(task)
        table.add_row(key, _check_mark(done), text)
    console.print(table)
    if summary is not None:
        console.print(format_summary(summary))

    if plan.available_minutes is not None:
        console.print(f"\n[bold]Available time:[/bold] {minutes_label(plan.available_minutes)}")
    _print_timeblocks(result)

    for category, heading in SECTION_TITLES.items():
        rows = plan.visible_items(category)
        if not rows:
            continue
        console.print(f"\n[bold]{heading}[/bold]")
        for key, task, done in rows:
            console.print(f"  {_check_mark(done)} [cyan]{key:<10}[/cyan] {escape(task)}")

    _print_groups(result)
    _print_sequence(result, plan.checks)


def _print_timeblocks(result: ClassificationResult) -> None:
    if not result.timeblocks:
        return
    console.print("\n[bold]Timeblocks[/bold]")
    for block in result.timeblocks:
        console.print(f"  {escape(block.label):<30} [dim]{minutes_label(block.minutes)}[/dim]")


def _print_groups(result: ClassificationResult) -> None:
    if not result.groups:
        return
    console.print("\n[bold]Groups[/bold]")
    for group in result.groups:
        console.print(f"  {escape(group.emoji)} [bold]{escape(group.category)}[/bold]")
        for task in group.tasks:
            console.print(f"     • {escape(task)}")
        if group.tip:
            console.print(f"     [dim]💡 {escape(group.tip)}[/dim]")


def _print_sequence(result: ClassificationResult, checks: dict[str, bool]) -> None:
    if not result.sequence:
        return
    console.print("\n[bold]Execution order[/bold]")
    for p, phase in enumerate(result.sequence):
        style = phase_style(phase.phase)
        console.print(f"  [{style}]{p + 1}. {escape(phase.phase)}[/{style}]")
        for t, task in enumerate(phase.tasks):
            key = item_key("seq", p, t)
            console.print(f"     {_check_mark(checks.get(key, False))} [cyan]{key:<10}[/cyan] {escape(task)}")
        if phase.reason:
            console.print(f"     [dim]🧠 {escape(phase.reason)}[/dim]")


def format_history_entry(entry: HistoryEntry) -> None:
    """Print one archived day."""
    summary = entry.summary()
    console.print(
        Panel(
            Text.from_markup(f"[bold]{entry.date}[/bold]  {format_summary(summary)}"),
            expand=False,
        )
    )
    for i, task in enumerate(entry.result.top3):
        console.print(f"  {_check_mark(entry.checks.get(item_key('top3', i), False))} {escape(task)}")
    _print_timeblocks(entry.result)
    for category, heading in SECTION_TITLES.items():
        tasks = entry.result.items(category)
        if tasks:
            console.print(f"\n[bold]{heading}[/bold]")
            for task in tasks:
                console.print(f"  • {escape(task)}")
    _print_groups(entry.result)
    _print_sequence(entry.result, entry.checks)
    console.print(f"\n[dim]Saved {entry.saved_at:%Y-%m-%d %H:%M}[/dim]")


def build_calendar(
    year: int, month: int, entries: dict[str, HistoryEntry], today: date
) -> Table:
    """Month grid: ✓ for fully done days, filled/empty dots for progress."""
    table = Table(
        title=f"{calendar.month_name[month]} {year}",
        show_header=True,
        show_lines=False,
    )
    for i, name in enumerate(WEEKDAY_HEADERS):
        style = "red" if i == 6 else "blue" if i == 5 else None
        table.add_column(name, justify="center", header_style=style)

    for week in calendar.Calendar(firstweekday=0).monthdayscalendar(year, month):
        cells = []
        for day in week:
            if day == 0:
                cells.append("")
                continue
            day_iso = date(year, month, day).isoformat()
            label = f"[bold underline]{day}[/bold underline]" if day_iso == today.isoformat() else str(day)
            entry = entries.get(day_iso)
            if entry is not None:
                summary = entry.summary()
                if summary.all_done:
                    marks = "[green]✓[/green]"
                else:
                    shown = min(summary.total, 3)
                    marks = "".join(
                        "●" if i < summary.done else "[dim]○[/dim]" for i in range(shown)
                    )
                label = f"{label}\n{marks}"
            cells.append(label)
        table.add_row(*cells)
    return table


def format_timetable(timetable: TimetableResult) -> None:
    console.print(
        f"[bold]Free time:[/bold] about {timetable.free_hours:g}h a day, "
        f"{minutes_label(timetable.total_free_minutes)} in total"
    )
    if timetable.summary:
        console.print(f"[dim]{escape(timetable.summary)}[/dim]")
    if timetable.slots:
        table = Table(show_header=True)
        table.add_column("Day")
        table.add_column("From")
        table.add_column("To")
        table.add_column("Label", style="dim")
        for slot in timetable.slots:
            table.add_row(escape(slot.day), escape(slot.start), escape(slot.end), escape(slot.label))
        console.print(table)
