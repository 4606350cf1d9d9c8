"""braindump - turn a brain dump into a daily plan."""

__version__ = "0.3.0"
