"""Configuration management commands."""

import json

import typer

from braindump_cli.services.config_service import get_config_service
from braindump_cli.utils.exit_codes import ERROR_INVALID_ARGS
from braindump_cli.utils.typer_helpers import SuggestingGroup
from braindump_cli.utils.ui.console import get_console
from braindump_cli.utils.ui.formatters import format_error, format_info, format_success

app = typer.Typer(cls=SuggestingGroup, help="Configuration management commands")
console = get_console()


def _parse_value(value: str):
    """Best-effort conversion of a CLI string into bool / int / float / None."""
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in ("none", "null"):
        return None
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            pass
    return value


@app.command("show")
def show_config() -> None:
    """Show the current configuration."""
    config_service = get_config_service()
    console.print(f"[dim]{config_service.config_path}[/dim]")
    console.print_json(json.dumps(config_service.config.model_dump()))


@app.command("get")
def get_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., service.endpoint)"),
) -> None:
    """Get a configuration value."""
    value = get_config_service().get(key)
    if value is None:
        format_error(f"Configuration key '{key}' not found or unset")
        raise typer.Exit(ERROR_INVALID_ARGS)
    console.print(value, markup=False)


@app.command("set")
def set_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., focus.session_minutes)"),
    value: str = typer.Argument(..., help="Configuration value"),
) -> None:
    """Set a configuration value."""
    parsed_value = _parse_value(value)
    try:
        get_config_service().set(key, parsed_value)
    except KeyError as e:
        format_error(f"Unknown configuration key '{key}'")
        raise typer.Exit(ERROR_INVALID_ARGS) from e
    except ValueError as e:
        format_error(str(e))
        raise typer.Exit(ERROR_INVALID_ARGS) from e
    format_success(f"Configuration '{key}' set to '{parsed_value}'")


@app.command("reset")
def reset_config(
    key: str | None = typer.Argument(None, help="Configuration key to reset"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset configuration to defaults."""
    if not yes:
        msg = "entire configuration" if not key else f"'{key}'"
        if not typer.confirm(f"Are you sure you want to reset {msg}?"):
            format_info("Cancelled")
            raise typer.Exit(0)

    try:
        get_config_service().reset_config(key)
    except KeyError as e:
        format_error(f"Unknown configuration key '{key}'")
        raise typer.Exit(ERROR_INVALID_ARGS) from e

    if key:
        format_success(f"Configuration '{key}' reset to default")
    else:
        format_success("Configuration reset to defaults")
