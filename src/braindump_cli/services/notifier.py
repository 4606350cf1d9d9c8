"""Best-effort user notifications."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.markup import escape

logger = logging.getLogger(__name__)


class Notifier:
    """Rings the terminal bell and prints a notice.

    Notifications never raise: when they are disabled or the console cannot be
    written to, the notice is dropped and logged.
    """

    def __init__(self, console: Console | None = None, enabled: bool = True):
        self.console = console
        self.enabled = enabled

    def notify(self, title: str, message: str) -> bool:
        """Show a notification. Returns True if it was delivered."""
        if not self.enabled or self.console is None:
            logger.debug("Notification suppressed: %s", title)
            return False
        try:
            self.console.bell()
            self.console.print(f"\n[bold green]🔔 {escape(title)}[/bold green]  {escape(message)}")
        except (OSError, ValueError) as e:
            logger.debug("Notification dropped: %s", e)
            return False
        return True
