"""Saved timetable parse result, reused across days until replaced."""

from __future__ import annotations

from braindump_cli.models.plan import TimetableResult
from braindump_cli.services.storage import TIMETABLE_KEY, PersistenceGateway


class TimetableStore:
    """Loads and saves the last parsed timetable."""

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway

    def load(self) -> TimetableResult | None:
        return self.gateway.load_model(TIMETABLE_KEY, TimetableResult)

    def save(self, timetable: TimetableResult) -> None:
        self.gateway.save_model(TIMETABLE_KEY, timetable)

    def clear(self) -> None:
        self.gateway.delete(TIMETABLE_KEY)
