"""Data models for braindump."""

from .config_models import AppConfig
from .plan import (
    ClassificationResult,
    DayPlan,
    DaySummary,
    HistoryEntry,
    InvalidItemKeyError,
    Stage,
    TimetableResult,
)

__all__ = [
    "AppConfig",
    "ClassificationResult",
    "DayPlan",
    "DaySummary",
    "HistoryEntry",
    "InvalidItemKeyError",
    "Stage",
    "TimetableResult",
]
