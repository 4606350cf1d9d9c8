"""Daily plan commands: dump, choose time, analyze, check off."""

import mimetypes
import sys
from pathlib import Path

import typer
from rich.markup import escape

from braindump_cli.models.plan import InvalidItemKeyError, Stage
from braindump_cli.utils.exit_codes import ERROR_INVALID_ARGS, ERROR_NOT_FOUND, ERROR_SERVICE
from braindump_cli.utils.typer_helpers import SuggestingGroup
from braindump_cli.utils.ui.console import get_console
from braindump_cli.utils.ui.formatters import (
    format_error,
    format_info,
    format_plan,
    format_success,
    format_timetable,
    minutes_label,
)

from .utils import get_controller, refuse, run_async

console = get_console()
app = typer.Typer(cls=SuggestingGroup, help="Today's plan")


def _read_dump(text: str | None, file: Path | None) -> str:
    if file is not None:
        try:
            return file.read_text(encoding="utf-8")
        except OSError as e:
            format_error(f"Could not read {file}: {e}")
            raise typer.Exit(ERROR_INVALID_ARGS) from e
    if text == "-" or (text is None and not sys.stdin.isatty()):
        return sys.stdin.read()
    return text or ""


@app.command("dump")
def dump(
    text: str | None = typer.Argument(
        None, help="Tasks, one per line. Use '-' to read from stdin."
    ),
    file: Path | None = typer.Option(
        None, "--file", "-f", help="Read the brain dump from a file"
    ),
) -> None:
    """Pour everything on your mind into today's plan."""
    controller = get_controller()
    if not controller.submit_dump(_read_dump(text, file)):
        refuse(controller)
    lines = [line for line in controller.plan.dump_text.splitlines() if line.strip()]
    format_success(f"Captured {len(lines)} line(s)")
    console.print(
        "Next: [cyan]braindump plan hours <n>[/cyan] or "
        "[cyan]braindump plan timetable <image>[/cyan]"
    )


@app.command("back")
def back() -> None:
    """Go back to editing the brain dump."""
    controller = get_controller()
    if not controller.back():
        refuse(controller)
    format_info("Back to input; run 'braindump plan dump' again to replace the text")


@app.command("hours")
def hours(
    value: float = typer.Argument(..., help="Hours you have available today"),
) -> None:
    """Set how much time you have today."""
    controller = get_controller()
    if not controller.set_available_hours(value):
        refuse(controller)
    format_success(f"Available time set to {minutes_label(controller.plan.available_minutes)}")


@app.command("timetable")
def timetable(
    image: Path = typer.Argument(..., exists=True, dir_okay=False, help="Timetable image"),
    media_type: str | None = typer.Option(
        None, "--type", help="Image media type (guessed from the file name)"
    ),
) -> None:
    """Find your free time from a timetable picture."""
    controller = get_controller()
    media_type = media_type or mimetypes.guess_type(image.name)[0] or "image/jpeg"

    async def _upload():
        async with controller.service:
            with console.status("Reading your timetable..."):
                return await controller.upload_timetable(image.read_bytes(), media_type)

    result = run_async(_upload())
    if result is None:
        refuse(controller, ERROR_SERVICE if controller.last_error else ERROR_INVALID_ARGS)
    format_timetable(result)
    if controller.stage == Stage.TIME_CONFIG:
        format_success(f"Available time set to {minutes_label(controller.plan.available_minutes)}")


@app.command("use-timetable")
def use_timetable() -> None:
    """Use the saved timetable for today's available time."""
    controller = get_controller()
    if not controller.use_saved_timetable():
        refuse(controller)
    saved = controller.timetables.load()
    if saved is not None:
        format_timetable(saved)
    format_success(f"Available time set to {minutes_label(controller.plan.available_minutes)}")


@app.command("analyze")
def analyze() -> None:
    """Sort the brain dump into today's plan."""
    controller = get_controller()

    async def _confirm():
        async with controller.service:
            with console.status("Sorting your tasks..."):
                return await controller.confirm()

    if not run_async(_confirm()):
        refuse(controller, ERROR_SERVICE if controller.last_error else ERROR_INVALID_ARGS)
    format_plan(controller.plan)


@app.command("show")
def show() -> None:
    """Show today's plan."""
    controller = get_controller()
    format_plan(controller.plan)


@app.command("status")
def status() -> None:
    """Show the current stage of today's plan."""
    controller = get_controller()
    plan = controller.plan
    console.print(f"[bold]Date:[/bold] {plan.date}")
    console.print(f"[bold]Stage:[/bold] {plan.stage.value}")
    if plan.available_minutes is not None:
        console.print(f"[bold]Available:[/bold] {minutes_label(plan.available_minutes)}")
    summary = plan.summary()
    if summary is not None:
        console.print(f"[bold]Done:[/bold] {summary.done}/{summary.total} ({summary.percent}%)")


def _mutate(action, key: str):
    try:
        return action(key)
    except InvalidItemKeyError as e:
        format_error(str(e))
        raise typer.Exit(ERROR_NOT_FOUND) from e


@app.command("check")
def check(key: str = typer.Argument(..., help="Item key, e.g. top3-0")) -> None:
    """Check or uncheck an item."""
    key = key.strip()
    controller = get_controller()
    archived = _mutate(lambda k: run_async(controller.toggle_check(k)), key)
    done = controller.plan.checks.get(key, False)
    mark = "[green]✓[/green]" if done else "[dim]○[/dim]"
    console.print(f"{mark} {escape(controller.plan.result.item_text(key))}")
    if archived:
        console.print("\n[bold green]🎉 All top priorities done! The day is archived.[/bold green]")
        console.print("[dim]Run 'braindump plan start-over' to plan again.[/dim]")
    elif controller.plan.completed and controller.stage == Stage.RESULT:
        format_info("All top priorities are done")


@app.command("delete")
def delete(key: str = typer.Argument(..., help="Item key, e.g. shallow-1")) -> None:
    """Dismiss a shallow, deep or micro item."""
    controller = get_controller()
    _mutate(controller.delete, key)
    format_success(f"Removed {key}")


@app.command("restore")
def restore(key: str = typer.Argument(..., help="Key of a removed item")) -> None:
    """Bring back a dismissed item."""
    controller = get_controller()
    _mutate(controller.restore, key)
    format_success(f"Restored {key}")


@app.command("reopen")
def reopen() -> None:
    """Keep working on a day that was already archived."""
    controller = get_controller()
    if not controller.reopen():
        refuse(controller)
    format_success("Plan reopened")


@app.command("start-over")
def start_over() -> None:
    """Start a new plan after finishing the day."""
    controller = get_controller()
    if not controller.start_over():
        refuse(controller)
    format_success("Ready for a new brain dump")


@app.command("reset")
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Throw away today's plan without archiving it."""
    controller = get_controller()
    if not yes and controller.plan.result is not None:
        if not typer.confirm("Discard today's plan? It will not be saved to history."):
            format_info("Cancelled")
            raise typer.Exit(0)
    controller.reset()
    format_success("Plan cleared")
