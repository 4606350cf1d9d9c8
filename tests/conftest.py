"""Shared test fixtures and configuration.

Provides infrastructure to isolate tests from real filesystem/service state.
Every store lives under *tmp_path* and "today" is pinned to ``TODAY``.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from braindump_cli.models.config_models import AppConfig
from braindump_cli.models.plan import ClassificationResult
from braindump_cli.services.api.client import ServiceClient
from braindump_cli.services.history_service import HistoryArchive
from braindump_cli.services.lifecycle import LifecycleController
from braindump_cli.services.plan_store import PlanStore
from braindump_cli.services.storage import PersistenceGateway
from braindump_cli.services.timetable_service import TimetableStore

TODAY = date(2024, 5, 14)
YESTERDAY = date(2024, 5, 13)
SAVED_AT = datetime(2024, 5, 14, 18, 30, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Sample payloads
# ---------------------------------------------------------------------------


def make_result(**overrides) -> ClassificationResult:
    """Build a ClassificationResult with a full set of sections."""
    data = {
        "top3": ["write report", "call the bank", "book dentist"],
        "shallow": ["buy milk", "reply to Sam"],
        "deep": ["draft chapter two"],
        "micro": ["open the report doc"],
        "timeblocks": [
            {"label": "Deep work", "minutes": 150},
            {"label": "Errands", "minutes": 90},
        ],
        "groups": [
            {"category": "Errands", "emoji": "🛒", "tasks": ["buy milk"], "tip": "Batch them"}
        ],
        "sequence": [
            {"phase": "Warm-up", "tasks": ["reply to Sam"], "reason": "Easy start"},
            {"phase": "Deep focus", "tasks": ["write report", "draft chapter two"], "reason": ""},
        ],
    }
    data.update(overrides)
    return ClassificationResult.model_validate(data)


# ---------------------------------------------------------------------------
# Storage fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def gateway(tmp_path) -> PersistenceGateway:
    return PersistenceGateway(tmp_path / "state")


@pytest.fixture()
def archive(gateway) -> HistoryArchive:
    return HistoryArchive(gateway, clock=lambda: SAVED_AT)


@pytest.fixture()
def store(gateway, archive) -> PlanStore:
    return PlanStore(gateway, archive, today=lambda: TODAY)


@pytest.fixture()
def timetables(gateway) -> TimetableStore:
    return TimetableStore(gateway)


# ---------------------------------------------------------------------------
# Controller fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def app_config(tmp_path) -> AppConfig:
    """Config with no completion delay and storage under tmp_path."""
    return AppConfig.model_validate(
        {
            "plan": {"completion_delay_seconds": 0},
            "storage": {"data_dir": str(tmp_path / "state")},
        }
    )


@pytest.fixture()
def fake_service():
    """A ServiceClient stand-in whose calls are AsyncMocks."""
    service = MagicMock(spec=ServiceClient)
    service.classify.return_value = make_result()
    return service


@pytest.fixture()
def controller(app_config, store, timetables, fake_service) -> LifecycleController:
    return LifecycleController(app_config, store, timetables, fake_service)


# ---------------------------------------------------------------------------
# Command fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def patch_controller(app_config, store, timetables, fake_service):
    """Make every command build its controller over the tmp stores.

    Each invocation gets a fresh controller (and a fresh PlanStore reading
    the same gateway), the way separate CLI runs would.
    """

    def _build():
        fresh_store = PlanStore(store.gateway, store.archive, today=lambda: TODAY)
        return LifecycleController(app_config, fresh_store, timetables, fake_service)

    with patch("braindump_cli.commands.plan.get_controller", side_effect=_build), patch(
        "braindump_cli.commands.history.get_controller", side_effect=_build
    ):
        yield fake_service


@pytest.fixture()
def tmp_config(tmp_path):
    """Provide a real ConfigService backed by a temporary directory.

    Patches platform dirs so config files land in *tmp_path* only.
    Also clears the lru_cache so each test gets a fresh service instance.
    """
    from braindump_cli.services.config_service import ConfigService, get_config_service

    get_config_service.cache_clear()
    with patch(
        "braindump_cli.services.config_service.user_config_dir",
        return_value=str(tmp_path / "config"),
    ):
        svc = ConfigService()
        with patch("braindump_cli.commands.config.get_config_service", return_value=svc), patch(
            "braindump_cli.commands.focus.get_config_service", return_value=svc
        ):
            yield svc
    get_config_service.cache_clear()
