"""Unit tests for the history commands."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from braindump_cli.commands.history import app
from braindump_cli.models.plan import DayPlan, Stage
from braindump_cli.services.storage import ACTIVE_PLAN_KEY
from braindump_cli.utils.exit_codes import ERROR_INVALID_ARGS, ERROR_NOT_FOUND
from conftest import YESTERDAY, make_result

runner = CliRunner()

pytestmark = pytest.mark.usefixtures("patch_controller")


@pytest.fixture()
def filled(archive):
    archive.save("2024-05-02", make_result(), {"top3-0": True, "top3-1": True, "top3-2": True})
    archive.save("2024-05-09", make_result(), {"top3-0": True})
    archive.save("2024-04-20", make_result(top3=["tax return"]), {})
    return archive


class TestCalendar:
    def test_month_view(self, filled):
        result = runner.invoke(app, ["calendar", "--month", "2024-05"])
        assert result.exit_code == 0
        assert "May 2024" in result.output
        assert "✓" in result.output
        assert "3 day(s) recorded" in result.output

    def test_empty_history(self):
        result = runner.invoke(app, ["calendar", "--month", "2024-05"])
        assert result.exit_code == 0
        assert "No history yet" in result.output

    @pytest.mark.parametrize("month", ["2024-13", "May", "2024"])
    def test_invalid_month(self, month):
        result = runner.invoke(app, ["calendar", "--month", month])
        assert result.exit_code == ERROR_INVALID_ARGS


class TestShow:
    def test_show_day(self, filled):
        result = runner.invoke(app, ["show", "2024-04-20"])
        assert result.exit_code == 0
        assert "tax return" in result.output

    def test_missing_day(self, filled):
        result = runner.invoke(app, ["show", "2024-04-21"])
        assert result.exit_code == ERROR_NOT_FOUND
        assert "Nothing recorded for 2024-04-21" in result.output

    def test_bad_date(self):
        assert runner.invoke(app, ["show", "yesterday"]).exit_code == ERROR_INVALID_ARGS


class TestList:
    def test_newest_first(self, filled):
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        out = result.output
        assert out.index("2024-05-09") < out.index("2024-05-02") < out.index("2024-04-20")

    def test_limit(self, filled):
        result = runner.invoke(app, ["list", "--limit", "1"])
        assert "2024-05-09" in result.output
        assert "2024-04-20" not in result.output

    def test_no_history(self):
        assert "No history yet" in runner.invoke(app, ["list"]).output


def test_history_includes_yesterdays_unarchived_plan(gateway):
    gateway.save_model(
        ACTIVE_PLAN_KEY,
        DayPlan(
            date=YESTERDAY.isoformat(),
            stage=Stage.RESULT,
            result=make_result(top3=["file expenses"]),
        ),
    )
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert YESTERDAY.isoformat() in result.output
    assert "file expenses" in result.output


def test_limit_must_be_positive():
    assert runner.invoke(app, ["list", "--limit", "0"]).exit_code == 2
