"""Stage machine for the day's plan.

    input -> time_config -> awaiting_classification -> result -> archived
                 ^                    |
                 +---- on failure ----+

The controller is the only thing that moves a plan between stages. Refused
transitions return False and leave a notice for the user instead of raising;
service failures are logged, turned into a notice and rolled back to the
stage that preceded the request.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import date
from pathlib import Path

from braindump_cli.models.config_models import AppConfig
from braindump_cli.models.plan import DayPlan, Stage, TimetableResult
from braindump_cli.services.api.client import ServiceClient, build_service_client
from braindump_cli.services.api.exceptions import ServiceError
from braindump_cli.services.history_service import HistoryArchive
from braindump_cli.services.plan_store import PlanStore
from braindump_cli.services.storage import PersistenceGateway
from braindump_cli.services.timetable_service import TimetableStore

logger = logging.getLogger(__name__)


class LifecycleController:
    """Drives the active DayPlan through its stages."""

    def __init__(
        self,
        config: AppConfig,
        plan_store: PlanStore,
        timetables: TimetableStore,
        service: ServiceClient,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config
        self.plan_store = plan_store
        self.timetables = timetables
        self.service = service
        self._sleep = sleep
        self.notices: list[str] = []
        self.last_error: ServiceError | None = None
        self._request_seq = 0
        self._pending: int | None = None

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        service: ServiceClient | None = None,
        today: Callable[[], date] = date.today,
    ) -> LifecycleController:
        """Wire up the store, archive and service client for *config*."""
        data_dir = Path(config.storage.data_dir) if config.storage.data_dir else None
        gateway = PersistenceGateway(data_dir)
        archive = HistoryArchive(gateway)
        return cls(
            config=config,
            plan_store=PlanStore(gateway, archive, today=today),
            timetables=TimetableStore(gateway),
            service=service or build_service_client(config.service),
        )

    @property
    def plan(self) -> DayPlan:
        return self.plan_store.plan

    @property
    def stage(self) -> Stage:
        return self.plan.stage

    @property
    def archive(self) -> HistoryArchive:
        return self.plan_store.archive

    @property
    def is_busy(self) -> bool:
        """True while a service request is outstanding."""
        return self._pending is not None

    def _refuse(self, message: str) -> bool:
        logger.info("Refused: %s", message)
        self.notices.append(message)
        return False

    def dismiss_notices(self) -> list[str]:
        notices, self.notices = self.notices, []
        return notices

    # -- input -------------------------------------------------------------

    def submit_dump(self, text: str) -> bool:
        """Input -> TimeConfig once there is something to triage."""
        if self.stage not in (Stage.INPUT, Stage.TIME_CONFIG):
            return self._refuse("A plan is already in progress; reset it first.")
        if not text or not text.strip():
            return self._refuse("Write down at least one task first.")
        self.plan_store.set_dump(text)
        self.plan_store.set_stage(Stage.TIME_CONFIG)
        return True

    def back(self) -> bool:
        """TimeConfig -> Input, keeping the dump text for editing."""
        if self.stage != Stage.TIME_CONFIG:
            return self._refuse("Nothing to go back to.")
        self.plan_store.set_stage(Stage.INPUT)
        return True

    # -- time configuration ------------------------------------------------

    def set_available_hours(self, hours: float) -> bool:
        if self.stage != Stage.TIME_CONFIG:
            return self._refuse("Add your brain dump before choosing hours.")
        if hours <= 0:
            return self._refuse("Available hours must be greater than zero.")
        self.plan_store.set_available_minutes(round(hours * 60))
        return True

    def use_saved_timetable(self) -> bool:
        if self.stage != Stage.TIME_CONFIG:
            return self._refuse("Add your brain dump before choosing hours.")
        timetable = self.timetables.load()
        if timetable is None:
            return self._refuse("No saved timetable yet.")
        self.plan_store.set_available_minutes(round(timetable.free_hours * 60))
        return True

    async def upload_timetable(
        self, image: bytes, media_type: str = "image/jpeg"
    ) -> TimetableResult | None:
        """Parse a timetable image and keep it as the time source."""
        if self.is_busy:
            self._refuse("Still waiting on the previous request.")
            return None
        token = self._begin_request()
        try:
            timetable = await self.service.parse_timetable(image, media_type)
        except ServiceError as e:
            if self._pending == token:
                self._pending = None
            self.last_error = e
            self._refuse(f"Timetable analysis failed: {e}")
            return None
        if self._pending != token:
            logger.info("Ignoring stale timetable response")
            return None
        self._pending = None
        self.timetables.save(timetable)
        if self.stage == Stage.TIME_CONFIG:
            self.plan_store.set_available_minutes(round(timetable.free_hours * 60))
        return timetable

    def available_hours(self) -> float | None:
        """Manual hours win over the saved timetable."""
        if self.plan.available_minutes is not None:
            return self.plan.available_minutes / 60
        timetable = self.timetables.load()
        if timetable is not None:
            return timetable.free_hours
        return None

    # -- classification ----------------------------------------------------

    def _begin_request(self) -> int:
        self.last_error = None
        self._request_seq += 1
        self._pending = self._request_seq
        return self._request_seq

    async def confirm(self) -> bool:
        """TimeConfig -> Awaiting -> Result (or back to TimeConfig on failure)."""
        if self.stage != Stage.TIME_CONFIG:
            return self._refuse("Add your brain dump and available time first.")
        if self.is_busy:
            return self._refuse("Still waiting on the previous request.")
        hours = self.available_hours()
        if hours is None or hours <= 0:
            return self._refuse("Choose your available hours or upload a timetable.")

        minutes = round(hours * 60)
        self.plan_store.set_available_minutes(minutes)
        self.plan_store.set_stage(Stage.AWAITING)
        token = self._begin_request()
        logger.info("Requesting classification (%s hours)", hours)

        try:
            result = await self.service.classify(self.plan.dump_text, hours)
        except ServiceError as e:
            if self._pending != token:
                logger.info("Ignoring failure of a stale request")
                return False
            self._pending = None
            self.last_error = e
            if self.stage == Stage.AWAITING:
                self.plan_store.set_stage(Stage.TIME_CONFIG)
            return self._refuse(f"Analysis failed, please try again: {e}")

        if self._pending != token or self.stage != Stage.AWAITING:
            logger.info("Ignoring late classification response")
            return False
        self._pending = None

        if result.timeblocks and result.total_timeblock_minutes() != minutes:
            logger.warning(
                "Timeblocks add up to %d minutes, expected %d",
                result.total_timeblock_minutes(),
                minutes,
            )
        self.plan_store.install_result(result)
        return True

    # -- result ------------------------------------------------------------

    async def toggle_check(self, key: str) -> bool:
        """Flip a checklist item. Returns True if the day got archived."""
        if self.plan_store.toggle_check(key):
            return await self._finish_day()
        return False

    async def _finish_day(self) -> bool:
        delay = self.config.plan.completion_delay_seconds
        if delay > 0:
            await self._sleep(delay)
        if self.plan_store.mark_archived():
            logger.info("Day %s completed and archived", self.plan.date)
            return True
        return False

    def delete(self, key: str) -> None:
        self.plan_store.delete(key)

    def restore(self, key: str) -> None:
        self.plan_store.restore(key)

    # -- leaving the day ---------------------------------------------------

    def reopen(self) -> bool:
        """Archived -> Result, to keep working on an archived day."""
        if self.stage != Stage.ARCHIVED:
            return self._refuse("Only an archived day can be reopened.")
        self.plan_store.set_stage(Stage.RESULT)
        return True

    def start_over(self) -> bool:
        """Archived -> Input. History is kept."""
        if self.stage != Stage.ARCHIVED:
            return self._refuse("Finish the day first, or use reset.")
        self.plan_store.clear()
        return True

    def reset(self) -> None:
        """Drop the active plan from any stage without archiving it."""
        self._pending = None
        self.plan_store.clear()
        logger.info("Plan reset")
