"""Client for the classification and timetable services."""

from .client import ServiceClient
from .exceptions import ClassificationError, ServiceError, TimetableParseError

__all__ = [
    "ClassificationError",
    "ServiceClient",
    "ServiceError",
    "TimetableParseError",
]
