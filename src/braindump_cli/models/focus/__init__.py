"""Focus mode - countdown timer for a single task."""

from .timer import DEFAULT_SESSION_MINUTES, TimerEngine, TimerStatus

__all__ = ["DEFAULT_SESSION_MINUTES", "TimerEngine", "TimerStatus"]
