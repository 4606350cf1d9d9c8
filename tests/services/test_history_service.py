"""Unit tests for HistoryArchive."""

from __future__ import annotations

from datetime import date, datetime, timezone

from braindump_cli.services.history_service import HistoryArchive
from braindump_cli.services.storage import HISTORY_KEY
from conftest import SAVED_AT, make_result


class TestSave:
    def test_save_and_query(self, archive):
        result = make_result()
        entry = archive.save("2024-05-14", result, {"top3-0": True})
        assert entry.saved_at == SAVED_AT
        assert archive.query("2024-05-14") == entry
        assert archive.query(date(2024, 5, 14)) == entry

    def test_query_missing_day(self, archive):
        assert archive.query("2024-01-01") is None

    def test_save_overwrites_same_day(self, gateway):
        stamps = iter(
            [
                datetime(2024, 5, 14, 9, tzinfo=timezone.utc),
                datetime(2024, 5, 14, 21, tzinfo=timezone.utc),
            ]
        )
        archive = HistoryArchive(gateway, clock=lambda: next(stamps))
        archive.save("2024-05-14", make_result(), {"top3-0": True})
        archive.save("2024-05-14", make_result(), {"top3-0": True})
        entry = archive.query("2024-05-14")
        assert archive.count() == 1
        assert entry.saved_at.hour == 21
        assert entry.checks == {"top3-0": True}

    def test_checks_are_copied(self, archive):
        checks = {"top3-0": True}
        archive.save("2024-05-14", make_result(), checks)
        checks["top3-1"] = True
        assert archive.query("2024-05-14").checks == {"top3-0": True}

    def test_corrupt_history_starts_empty(self, gateway, archive):
        gateway.save(HISTORY_KEY, "{{{")
        assert archive.query_all() == []
        archive.save("2024-05-14", make_result(), {})
        assert archive.count() == 1


class TestQueries:
    def _fill(self, archive):
        for day in ["2024-05-30", "2024-04-30", "2024-05-01", "2024-06-01"]:
            archive.save(day, make_result(), {})

    def test_query_all_sorted(self, archive):
        self._fill(archive)
        assert [e.date for e in archive.query_all()] == [
            "2024-04-30",
            "2024-05-01",
            "2024-05-30",
            "2024-06-01",
        ]

    def test_query_range_is_inclusive(self, archive):
        self._fill(archive)
        days = [e.date for e in archive.query_range("2024-05-01", date(2024, 5, 30))]
        assert days == ["2024-05-01", "2024-05-30"]

    def test_query_month(self, archive):
        self._fill(archive)
        assert sorted(archive.query_month(2024, 5)) == ["2024-05-01", "2024-05-30"]
        assert archive.query_month(2023, 2) == {}

    def test_queries_do_not_write(self, gateway, archive):
        self._fill(archive)
        before = gateway.load(HISTORY_KEY)
        archive.query_all()
        archive.query_month(2024, 5)
        archive.query("2024-05-01")
        assert gateway.load(HISTORY_KEY) == before
