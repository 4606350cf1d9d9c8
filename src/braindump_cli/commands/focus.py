"""Focus timer command for working through one task."""

import typer
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.prompt import Prompt

from braindump_cli.models.focus.timer import TimerEngine, TimerStatus
from braindump_cli.services.config_service import get_config_service
from braindump_cli.services.notifier import Notifier
from braindump_cli.utils.typer_helpers import SuggestingGroup
from braindump_cli.utils.ui.console import get_console

from .utils import run_async

console = get_console()
app = typer.Typer(cls=SuggestingGroup, help="Focus timer")


def _describe(engine: TimerEngine) -> str:
    mins, secs = divmod(engine.remaining_seconds, 60)
    return f"⏱️  {mins:02d}:{secs:02d}  {escape(engine.task_label[:40])}"


async def _countdown(engine: TimerEngine) -> TimerStatus:
    """Tick until the session finishes; the ticker is always stopped on exit."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        console=console,
    ) as progress:
        task = progress.add_task(
            _describe(engine),
            total=engine.total_seconds,
            completed=engine.total_seconds - engine.remaining_seconds,
        )

        def update(e: TimerEngine) -> None:
            progress.update(
                task,
                completed=e.total_seconds - e.remaining_seconds,
                description=_describe(e),
            )

        engine.on_tick = update
        engine.start()
        try:
            return await engine.wait()
        finally:
            engine.cancel()
            engine.on_tick = None


def run_session(engine: TimerEngine) -> str:
    """Drive a session until it is closed. Returns 'finished' or 'closed'."""
    finished_once = False
    while True:
        try:
            status = run_async(_countdown(engine))
        except KeyboardInterrupt:
            engine.cancel()
            if engine.status == "running":
                engine.pause()
            choice = Prompt.ask(
                "\n[yellow]⏸  Paused[/yellow]",
                choices=["resume", "close"],
                default="resume",
                console=console,
            )
            if choice == "resume":
                if engine.status == "paused":
                    engine.resume()
                continue
            engine.close()
            console.print("[yellow]Session closed[/yellow]")
            return "finished" if finished_once else "closed"

        if status != "finished":
            return "closed"
        finished_once = True
        choice = Prompt.ask(
            "Start another round?",
            choices=["restart", "close"],
            default="close",
            console=console,
        )
        if choice == "restart":
            engine.restart()
            continue
        engine.close()
        return "finished"


@app.command("start")
def start_focus(
    label: str = typer.Argument(..., help="What you are focusing on"),
    minutes: int | None = typer.Option(
        None, "--minutes", "-m", min=1, help="Session length (defaults to config)"
    ),
) -> None:
    """Start a focus countdown. Ctrl-C pauses it."""
    config = get_config_service().config
    minutes = minutes or config.focus.session_minutes
    notifier = Notifier(console, enabled=config.output.notifications)

    engine = TimerEngine(
        label,
        total_seconds=minutes * 60,
        on_finish=lambda e: notifier.notify("Focus session complete", e.task_label),
        tick_seconds=config.focus.tick_seconds,
    )

    console.print(f"\n[bold green]🍅 Focus: {escape(label)}[/bold green]  ({minutes} minutes)")
    console.print("[dim]Press Ctrl-C to pause[/dim]\n")
    result = run_session(engine)
    if result == "finished":
        console.print("\n[bold green]🎉 Nice work![/bold green]\n")
