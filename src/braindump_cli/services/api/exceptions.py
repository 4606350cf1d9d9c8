"""Errors raised by the classification / timetable service client."""


class ServiceError(Exception):
    """Base exception for all service call failures."""


class ClassificationError(ServiceError):
    """Raised when the brain dump could not be classified."""


class TimetableParseError(ServiceError):
    """Raised when a timetable image could not be parsed."""
