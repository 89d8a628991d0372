"""Core record models for 4Eunoia.

Every persisted entity is a pydantic model deriving from :class:`Record`.
Python code uses snake_case attributes; stored JSON uses the camelCase
names the records have always been saved under (``dueDate``,
``lastCompleted``, ``diaryEntry``...), so existing storage slots stay
readable.

All datetimes are timezone-aware UTC. Naive values coming out of storage
are taken to be UTC.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# Helpers
# =============================================================================


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def new_record_id() -> str:
    return uuid.uuid4().hex


UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]


# =============================================================================
# Enums
# =============================================================================


class TaskStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class GoalStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    ACHIEVED = "Achieved"
    ON_HOLD = "On Hold"


class HabitFrequency(str, Enum):
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    SPECIFIC_DAYS = "Specific Days"


class Mood(str, Enum):
    """Fixed mood labels a daily log can carry."""

    HAPPY = "😊 Happy"
    CALM = "😌 Calm"
    NEUTRAL = "😕 Neutral"
    ANXIOUS = "😟 Anxious"
    SAD = "😢 Sad"
    STRESSED = "😠 Stressed"
    PRODUCTIVE = "⚡ Productive"
    TIRED = "😴 Tired"
    OTHER = "❓ Other"

    @property
    def label(self) -> str:
        """The mood name without its emoji."""
        return self.value.split(" ", 1)[-1]


NEGATIVE_MOODS = frozenset({Mood.STRESSED, Mood.ANXIOUS, Mood.TIRED})
POSITIVE_MOODS = frozenset({Mood.HAPPY, Mood.CALM, Mood.PRODUCTIVE})


# =============================================================================
# Records
# =============================================================================


class Record(BaseModel):
    """Base class for every persisted record."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str = Field(default_factory=new_record_id)

    def to_storage(self) -> dict[str, Any]:
        """Serialize for a storage slot (camelCase keys, ISO-8601 dates)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Task(Record):
    title: str
    description: str | None = None
    due_date: UTCDateTime | None = None
    status: TaskStatus = TaskStatus.PENDING
    created_at: UTCDateTime | None = None

    def is_open(self) -> bool:
        return self.status != TaskStatus.COMPLETED

    def is_overdue(self, now: datetime) -> bool:
        return self.is_open() and self.due_date is not None and self.due_date < now


class CalendarEvent(Record):
    title: str
    start: UTCDateTime
    end: UTCDateTime
    description: str | None = None

    @model_validator(mode="after")
    def check_order(self) -> "CalendarEvent":
        if self.end < self.start:
            raise ValueError("event end must not be before its start")
        return self


class Expense(Record):
    description: str
    amount: float = Field(ge=0)
    date: UTCDateTime
    category: str


class Note(Record):
    title: str
    content: str = ""
    created_at: UTCDateTime
    updated_at: UTCDateTime


class Goal(Record):
    title: str
    description: str | None = None
    status: GoalStatus = GoalStatus.NOT_STARTED
    target_date: UTCDateTime | None = None
    created_at: UTCDateTime
    updated_at: UTCDateTime


class Habit(Record):
    title: str
    description: str | None = None
    frequency: HabitFrequency = HabitFrequency.DAILY
    specific_days: list[Annotated[int, Field(ge=0, le=6)]] | None = None
    streak: int = Field(default=0, ge=0)
    last_completed: UTCDateTime | None = None
    created_at: UTCDateTime
    updated_at: UTCDateTime


class Reminder(Record):
    title: str
    date_time: UTCDateTime
    description: str | None = None


class LogEntry(Record):
    """A daily log / diary entry."""

    date: UTCDateTime
    activity: str
    mood: Mood | None = None
    notes: str | None = None
    diary_entry: str | None = None
    focus_level: int | None = None

    @field_validator("focus_level", mode="before")
    @classmethod
    def discard_out_of_range_focus(cls, v: Any) -> int | None:
        # Out-of-range values are dropped, not clamped
        if isinstance(v, bool) or not isinstance(v, (int, float, str)):
            return None
        try:
            number = float(v)
        except ValueError:
            return None
        if not number.is_integer() or not 1 <= number <= 5:
            return None
        return int(number)


class GratitudeLog(Record):
    timestamp: UTCDateTime
    text: str


class ReframingLog(Record):
    timestamp: UTCDateTime
    negative_thought: str
    positive_reframing: str
