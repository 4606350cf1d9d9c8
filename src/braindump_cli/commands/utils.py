"""Helpers shared by the command modules."""

import asyncio

import typer

from braindump_cli.services.config_service import get_config_service
from braindump_cli.services.lifecycle import LifecycleController
from braindump_cli.utils.exit_codes import ERROR_INVALID_ARGS
from braindump_cli.utils.ui.formatters import format_error


def run_async(coro):
    """Helper to run async coroutines in sync Typer commands."""
    return asyncio.run(coro)


def get_controller() -> LifecycleController:
    """Build the lifecycle controller from the loaded configuration."""
    return LifecycleController.from_config(get_config_service().config)


def refuse(controller: LifecycleController, code: int = ERROR_INVALID_ARGS) -> None:
    """Print the controller's notices and exit with *code*."""
    notices = controller.dismiss_notices()
    for notice in notices:
        format_error(notice)
    raise typer.Exit(code)
