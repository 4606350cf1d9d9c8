"""Daily plan data model.

``ClassificationResult`` is what the classification service returns for a
brain dump. It is frozen once received; everything the user does to it
(checking items off, dismissing items) lives next to it in ``DayPlan`` as
checklist flags and tombstones keyed by synthetic item keys.

Item keys follow the ``<category>-<index>`` pattern, e.g. ``top3-0`` or
``shallow-2``. Sequence items carry both indices: ``seq-<phase>-<item>``.
"""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

TOP_PRIORITY = "top3"
SEQUENCE = "seq"
LIST_CATEGORIES = ("top3", "shallow", "deep", "micro")
DELETABLE_CATEGORIES = ("shallow", "deep", "micro")

_KEY_RE = re.compile(r"^(top3|shallow|deep|micro)-(\d+)$|^seq-(\d+)-(\d+)$")


class InvalidItemKeyError(ValueError):
    """Raised when an item key is malformed or points at nothing."""


class Stage(str, Enum):
    """Lifecycle stage of the active day plan."""

    INPUT = "input"
    TIME_CONFIG = "time_config"
    AWAITING = "awaiting_classification"
    RESULT = "result"
    ARCHIVED = "archived"


def _clean_tasks(value):
    """Strip task strings and drop blank ones.

    Anything that is not a list is handed back untouched so the ``list[str]``
    check rejects it.
    """
    if value is None:
        return []
    if not isinstance(value, list):
        return value
    return [
        item.strip() if isinstance(item, str) else item
        for item in value
        if not (isinstance(item, str) and not item.strip())
    ]


class TimeBlock(BaseModel):
    """A named allocation of minutes within the available time."""

    model_config = ConfigDict(frozen=True)

    label: str
    minutes: int = Field(ge=0)


class TaskGroup(BaseModel):
    """A semantic clustering of related tasks with an advisory tip."""

    model_config = ConfigDict(frozen=True)

    category: str
    emoji: str = ""
    tasks: list[str] = Field(default_factory=list)
    tip: str = ""

    @field_validator("tasks", mode="before")
    @classmethod
    def clean_tasks(cls, v):
        return _clean_tasks(v)


class SequencePhase(BaseModel):
    """One ordered phase of the recommended execution sequence."""

    model_config = ConfigDict(frozen=True)

    phase: str
    tasks: list[str] = Field(default_factory=list)
    reason: str = ""

    @field_validator("tasks", mode="before")
    @classmethod
    def clean_tasks(cls, v):
        return _clean_tasks(v)


class ClassificationResult(BaseModel):
    """Categorised tasks returned by the classification service."""

    model_config = ConfigDict(frozen=True)

    top3: list[str]
    shallow: list[str] = Field(default_factory=list)
    deep: list[str] = Field(default_factory=list)
    micro: list[str] = Field(default_factory=list)
    timeblocks: list[TimeBlock] = Field(default_factory=list)
    groups: list[TaskGroup] = Field(default_factory=list)
    sequence: list[SequencePhase] = Field(default_factory=list)

    @field_validator("top3", mode="before")
    @classmethod
    def require_top3(cls, v):
        """top3 is required; a missing or null list fails validation."""
        if v is None:
            raise ValueError("top3 is required")
        return _clean_tasks(v)

    @field_validator("shallow", "deep", "micro", mode="before")
    @classmethod
    def clean_lists(cls, v):
        return _clean_tasks(v)

    @field_validator("timeblocks", "groups", "sequence", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return [] if v is None else v

    def items(self, category: str) -> list[str]:
        """Return the task list for one of the flat categories."""
        if category not in LIST_CATEGORIES:
            raise InvalidItemKeyError(f"Unknown category '{category}'")
        return getattr(self, category)

    def total_timeblock_minutes(self) -> int:
        return sum(block.minutes for block in self.timeblocks)

    def has_item(self, key: str) -> bool:
        """Check that *key* is well-formed and points at an existing item."""
        try:
            category, indices = parse_item_key(key)
        except InvalidItemKeyError:
            return False
        if category == SEQUENCE:
            phase, item = indices
            return phase < len(self.sequence) and item < len(self.sequence[phase].tasks)
        return indices[0] < len(self.items(category))

    def item_text(self, key: str) -> str:
        """Return the task text behind *key*."""
        if not self.has_item(key):
            raise InvalidItemKeyError(f"No item for key '{key}'")
        category, indices = parse_item_key(key)
        if category == SEQUENCE:
            return self.sequence[indices[0]].tasks[indices[1]]
        return self.items(category)[indices[0]]


def item_key(category: str, index: int, item: int | None = None) -> str:
    """Build a checklist key: ``top3-0`` or ``seq-1-2``."""
    if category == SEQUENCE:
        if item is None:
            raise InvalidItemKeyError("Sequence keys need a phase and an item index")
        return f"seq-{index}-{item}"
    if category not in LIST_CATEGORIES:
        raise InvalidItemKeyError(f"Unknown category '{category}'")
    return f"{category}-{index}"


def parse_item_key(key: str) -> tuple[str, tuple[int, ...]]:
    """Split a checklist key into its category and indices."""
    match = _KEY_RE.match(key.strip())
    if not match:
        raise InvalidItemKeyError(f"Malformed item key '{key}'")
    category, index, phase, item = match.groups()
    if category:
        return category, (int(index),)
    return SEQUENCE, (int(phase), int(item))


class DaySummary(BaseModel):
    """Completion of the top-priority list for a day."""

    done: int
    total: int

    @property
    def percent(self) -> int:
        return round(self.done / self.total * 100) if self.total > 0 else 0

    @property
    def all_done(self) -> bool:
        return self.total > 0 and self.done == self.total

    @classmethod
    def from_checks(
        cls, result: ClassificationResult, checks: dict[str, bool]
    ) -> DaySummary:
        total = len(result.top3)
        done = sum(
            1 for i in range(total) if checks.get(item_key(TOP_PRIORITY, i), False)
        )
        return cls(done=done, total=total)


class DayPlan(BaseModel):
    """The active day's plan and everything the user has done to it."""

    date: str  # ISO date, YYYY-MM-DD
    stage: Stage = Stage.INPUT
    dump_text: str = ""
    available_minutes: int | None = None
    result: ClassificationResult | None = None
    checks: dict[str, bool] = Field(default_factory=dict)
    deleted: set[str] = Field(default_factory=set)
    completed: bool = False
    # Completion fired and was archived, but the stage has not moved yet.
    archive_pending: bool = False

    def summary(self) -> DaySummary | None:
        if self.result is None:
            return None
        return DaySummary.from_checks(self.result, self.checks)

    def visible_items(self, category: str) -> list[tuple[str, str, bool]]:
        """(key, text, checked) for the items of *category*, minus tombstoned ones."""
        if self.result is None:
            return []
        items = []
        for i, text in enumerate(self.result.items(category)):
            key = item_key(category, i)
            if key in self.deleted:
                continue
            items.append((key, text, self.checks.get(key, False)))
        return items

    def sequence_items(self) -> list[tuple[str, list[tuple[str, str, bool]]]]:
        """Each phase name with its (key, text, checked) items."""
        if self.result is None:
            return []
        phases = []
        for p, phase in enumerate(self.result.sequence):
            items = [
                (item_key(SEQUENCE, p, t), text, self.checks.get(item_key(SEQUENCE, p, t), False))
                for t, text in enumerate(phase.tasks)
            ]
            phases.append((phase.phase, items))
        return phases


class HistoryEntry(BaseModel):
    """Archived snapshot of one day's plan."""

    model_config = ConfigDict(frozen=True)

    date: str
    result: ClassificationResult
    checks: dict[str, bool] = Field(default_factory=dict)
    saved_at: datetime

    def summary(self) -> DaySummary:
        return DaySummary.from_checks(self.result, self.checks)


class FreeSlot(BaseModel):
    """A free block found in the timetable."""

    model_config = ConfigDict(frozen=True)

    day: str
    start: str
    end: str
    label: str = ""


class TimetableResult(BaseModel):
    """Free time extracted from a timetable image."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    free_hours: float = Field(alias="freeHours", ge=0)
    total_free_minutes: int = Field(alias="totalFreeMinutes", ge=0)
    slots: list[FreeSlot] = Field(default_factory=list)
    summary: str = ""
