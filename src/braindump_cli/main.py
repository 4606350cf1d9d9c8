"""Main entry point for braindump."""

import typer

from braindump_cli import __version__
from braindump_cli.commands import config, focus, history, plan
from braindump_cli.services.config_service import get_config_service
from braindump_cli.utils.logger import get_logger
from braindump_cli.utils.typer_helpers import SuggestingGroup
from braindump_cli.utils.ui.console import get_console

# Create main app with custom group class
app = typer.Typer(
    name="braindump",
    cls=SuggestingGroup,
    help="Turn a messy brain dump into a focused plan for today",
    no_args_is_help=True,
)

console = get_console()


@app.callback()
def main() -> None:
    """Set up logging and console output before any command runs."""
    logger = get_logger()
    logger.debug("braindump %s starting", __version__)
    if not get_config_service().config.output.color:
        console.no_color = True


# Add subcommands
app.add_typer(plan.app, name="plan", help="Today's plan")
app.add_typer(history.app, name="history", help="Calendar of archived days")
app.add_typer(focus.app, name="focus", help="Focus timer for a single task")
app.add_typer(config.app, name="config", help="Configuration management")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]braindump[/bold] version [cyan]{__version__}[/cyan]")


if __name__ == "__main__":
    app()
