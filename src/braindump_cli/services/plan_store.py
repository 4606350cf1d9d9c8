"""Active day plan: checklist, deletions and rollover.

``PlanStore`` owns the single active ``DayPlan``. Every mutation is written
through ``PersistenceGateway`` before the method returns. On load, a plan left
over from an earlier day is archived under its own date and replaced by an
empty plan for today.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from braindump_cli.models.plan import (
    DELETABLE_CATEGORIES,
    TOP_PRIORITY,
    ClassificationResult,
    DayPlan,
    DaySummary,
    InvalidItemKeyError,
    Stage,
    item_key,
    parse_item_key,
)
from braindump_cli.services.history_service import HistoryArchive
from braindump_cli.services.storage import ACTIVE_PLAN_KEY, PersistenceGateway

logger = logging.getLogger(__name__)


class CompletionDetector:
    """Decides when a day is done: every top-priority item is checked."""

    @staticmethod
    def is_complete(plan: DayPlan) -> bool:
        if plan.result is None or not plan.result.top3:
            return False
        return all(
            plan.checks.get(item_key(TOP_PRIORITY, i), False)
            for i in range(len(plan.result.top3))
        )


class PlanStore:
    """Holds and persists the active day's plan."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        archive: HistoryArchive,
        today: Callable[[], date] = date.today,
        detector: CompletionDetector | None = None,
    ):
        self.gateway = gateway
        self.archive = archive
        self._today = today
        self.detector = detector or CompletionDetector()
        self._plan: DayPlan | None = None
        self.load()

    @property
    def today(self) -> str:
        return self._today().isoformat()

    @property
    def plan(self) -> DayPlan:
        if self._plan is None:
            self._plan = self.load()
        return self._plan

    def load(self) -> DayPlan:
        """Load the persisted plan, rolling it over if it belongs to another day."""
        today = self.today
        stored = self.gateway.load_model(ACTIVE_PLAN_KEY, DayPlan)

        if stored is None:
            plan = DayPlan(date=today)
        elif stored.date != today:
            if stored.result is not None:
                self.archive.save(stored.date, stored.result, stored.checks)
                logger.info("Rolled over plan from %s", stored.date)
            else:
                logger.info("Discarded empty plan from %s", stored.date)
            plan = DayPlan(date=today)
            self.gateway.save_model(ACTIVE_PLAN_KEY, plan)
        else:
            plan = stored
            if plan.stage == Stage.AWAITING:
                # No request outlives the process that issued it.
                plan.stage = Stage.TIME_CONFIG
            elif plan.stage in (Stage.RESULT, Stage.ARCHIVED) and plan.result is None:
                logger.warning("Plan in stage %s without a result, resetting", plan.stage.value)
                plan = DayPlan(date=today)
            elif plan.archive_pending:
                # Interrupted between archiving and the stage change.
                plan.archive_pending = False
                if plan.stage == Stage.RESULT and self.detector.is_complete(plan):
                    plan.stage = Stage.ARCHIVED
                self.gateway.save_model(ACTIVE_PLAN_KEY, plan)

        self._plan = plan
        return plan

    def _persist(self) -> None:
        self.gateway.save_model(ACTIVE_PLAN_KEY, self.plan)

    def _require_result(self) -> ClassificationResult:
        if self.plan.result is None:
            raise InvalidItemKeyError("There is no plan to check off yet")
        return self.plan.result

    # -- input / configuration --------------------------------------------

    def set_dump(self, text: str) -> None:
        self.plan.dump_text = text
        self._persist()

    def set_available_minutes(self, minutes: int | None) -> None:
        self.plan.available_minutes = minutes
        self._persist()

    def set_stage(self, stage: Stage) -> None:
        self.plan.stage = stage
        self._persist()

    def install_result(self, result: ClassificationResult) -> None:
        """Install a fresh classification with an empty checklist."""
        plan = self.plan
        plan.result = result
        plan.checks = {}
        plan.deleted = set()
        plan.completed = False
        plan.archive_pending = False
        plan.stage = Stage.RESULT
        self._persist()

    def clear(self) -> DayPlan:
        """Drop the active plan and start today from scratch. History is untouched."""
        self._plan = DayPlan(date=self.today)
        self._persist()
        return self._plan

    # -- checklist ---------------------------------------------------------

    def toggle_check(self, key: str) -> bool:
        """Flip the completion flag for *key*.

        Returns True when this toggle took the day from incomplete to complete
        while in the result stage, in which case the plan has already been
        written to the history archive.
        """
        key = key.strip()
        result = self._require_result()
        if not result.has_item(key):
            raise InvalidItemKeyError(f"No item for key '{key}'")
        plan = self.plan
        was_complete = self.detector.is_complete(plan)
        plan.checks[key] = not plan.checks.get(key, False)
        return self._after_mutation(was_complete)

    def delete(self, key: str) -> None:
        """Dismiss a shallow/deep/micro item. Its flag is kept."""
        key = key.strip()
        result = self._require_result()
        category, _ = parse_item_key(key)
        if category not in DELETABLE_CATEGORIES:
            raise InvalidItemKeyError(f"Items in '{category}' cannot be deleted")
        if not result.has_item(key):
            raise InvalidItemKeyError(f"No item for key '{key}'")
        self.plan.deleted.add(key)
        self._persist()

    def restore(self, key: str) -> None:
        """Bring back a dismissed item."""
        key = key.strip()
        self._require_result()
        if key not in self.plan.deleted:
            raise InvalidItemKeyError(f"Item '{key}' is not deleted")
        self.plan.deleted.discard(key)
        self._persist()

    def _after_mutation(self, was_complete: bool) -> bool:
        plan = self.plan
        complete = self.detector.is_complete(plan)
        plan.completed = complete
        fired = plan.stage == Stage.RESULT and complete and not was_complete
        if fired:
            self.archive.save(plan.date, plan.result, plan.checks)
            plan.archive_pending = True
        elif not complete:
            plan.archive_pending = False
        self._persist()
        return fired

    def mark_archived(self) -> bool:
        """Move a completed plan to ARCHIVED. Returns False if it is no longer complete."""
        plan = self.plan
        if plan.stage != Stage.RESULT or not plan.archive_pending:
            return False
        plan.stage = Stage.ARCHIVED
        plan.archive_pending = False
        self._persist()
        return True

    # -- views -------------------------------------------------------------

    def visible_items(self, category: str) -> list[tuple[str, str, bool]]:
        """(key, text, checked) for every item in *category* that is not deleted."""
        return self.plan.visible_items(category)

    def sequence_items(self) -> list[tuple[str, list[tuple[str, str, bool]]]]:
        return self.plan.sequence_items()

    def summary(self) -> DaySummary | None:
        return self.plan.summary()
