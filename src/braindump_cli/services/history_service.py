"""Per-day archive of finished or rolled-over plans."""

from __future__ import annotations

import calendar
import logging
from collections.abc import Callable
from datetime import date, datetime

from pydantic import RootModel

from braindump_cli.models.plan import ClassificationResult, HistoryEntry
from braindump_cli.services.storage import HISTORY_KEY, PersistenceGateway

logger = logging.getLogger(__name__)


class History(RootModel[dict[str, HistoryEntry]]):
    """All archived days, keyed by ISO date."""

    root: dict[str, HistoryEntry] = {}


class HistoryArchive:
    """Stores one HistoryEntry per calendar date.

    Saving a date that already has an entry replaces it wholesale. Query
    methods only read.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        clock: Callable[[], datetime] | None = None,
    ):
        self.gateway = gateway
        self._clock = clock or (lambda: datetime.now().astimezone())

    def _load(self) -> dict[str, HistoryEntry]:
        history = self.gateway.load_model(HISTORY_KEY, History)
        return dict(history.root) if history is not None else {}

    def save(
        self, day: str, result: ClassificationResult, checks: dict[str, bool]
    ) -> HistoryEntry:
        """Write (or overwrite) the entry for *day*."""
        day = _iso(day)
        entries = self._load()
        entry = HistoryEntry(
            date=day,
            result=result,
            checks=dict(checks),
            saved_at=self._clock(),
        )
        replaced = day in entries
        entries[day] = entry
        self.gateway.save_model(HISTORY_KEY, History(entries))
        logger.info("%s history entry for %s", "Replaced" if replaced else "Saved", day)
        return entry

    def query(self, day: str | date) -> HistoryEntry | None:
        return self._load().get(_iso(day))

    def query_range(self, start: str | date, end: str | date) -> list[HistoryEntry]:
        """Entries from *start* to *end* inclusive, oldest first."""
        start_iso, end_iso = _iso(start), _iso(end)
        return [
            entry
            for day, entry in sorted(self._load().items())
            if start_iso <= day <= end_iso
        ]

    def query_all(self) -> list[HistoryEntry]:
        return [entry for _, entry in sorted(self._load().items())]

    def query_month(self, year: int, month: int) -> dict[str, HistoryEntry]:
        """Entries for one calendar month, keyed by ISO date."""
        last_day = calendar.monthrange(year, month)[1]
        entries = self.query_range(date(year, month, 1), date(year, month, last_day))
        return {entry.date: entry for entry in entries}

    def count(self) -> int:
        """Number of days recorded."""
        return len(self._load())


def _iso(day: str | date) -> str:
    """Normalise a date or ISO string to ``YYYY-MM-DD``."""
    if isinstance(day, date):
        return day.isoformat()
    return date.fromisoformat(day).isoformat()
