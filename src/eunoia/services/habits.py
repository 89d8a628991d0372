"""Habits and streak tracking."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

from eunoia.config import AppConfig, StreakPolicy
from eunoia.core.models import Habit, HabitFrequency
from eunoia.core.storage import HABITS_KEY, StorageContext
from eunoia.services.base import RecordService

# Longest gap, in calendar days, between completions that keeps a streak alive
# under StreakPolicy.RESET_ON_MISS.
ALLOWED_GAP_DAYS: dict[HabitFrequency, int] = {
    HabitFrequency.DAILY: 1,
    HabitFrequency.WEEKLY: 7,
    HabitFrequency.MONTHLY: 31,
    HabitFrequency.SPECIFIC_DAYS: 7,
}


class CompletionStatus(str, Enum):
    COMPLETED = "completed"
    ALREADY_COMPLETED = "already_completed"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class CompletionResult:
    """Outcome of :meth:`HabitService.mark_complete`.

    Attributes:
        status: What happened.
        habit: The habit after the call (unchanged for ALREADY_COMPLETED),
            or None when it was not found.
    """

    status: CompletionStatus
    habit: Habit | None = None

    @property
    def completed(self) -> bool:
        return self.status == CompletionStatus.COMPLETED


class HabitService(RecordService[Habit]):
    """Habits, most recently edited first.

    Args:
        context: Storage context.
        streak_policy: What a missed period does to the streak.
    """

    storage_key = HABITS_KEY
    model = Habit
    sort_field = "updated_at"

    def __init__(
        self,
        context: StorageContext,
        streak_policy: StreakPolicy = StreakPolicy.ALWAYS_INCREMENT,
    ) -> None:
        super().__init__(context)
        self.streak_policy = streak_policy

    @classmethod
    def from_config(cls, context: StorageContext, config: AppConfig) -> "HabitService":
        return cls(context, streak_policy=config.habits.streak_policy)

    def mark_complete(self, habit_id: str) -> CompletionResult:
        """Record today's completion of a habit.

        Completing twice on the same calendar day is a no-op that reports
        ALREADY_COMPLETED. Otherwise the streak grows by one (or restarts at
        1 under RESET_ON_MISS when the previous completion is too old) and
        ``last_completed`` becomes now.
        """
        items = self._load()
        index = next((i for i, habit in enumerate(items) if habit.id == habit_id), None)
        if index is None:
            return CompletionResult(CompletionStatus.NOT_FOUND)

        habit = items[index]
        clock = self._context.clock
        now = clock.now()
        today = clock.local_date(now)

        if habit.last_completed is not None and clock.local_date(habit.last_completed) == today:
            return CompletionResult(CompletionStatus.ALREADY_COMPLETED, habit)

        streak = habit.streak + 1
        if self._streak_broken(habit, today):
            self._logger.debug(f"Streak for habit {habit_id} reset after a missed period")
            streak = 1

        updated = habit.model_copy(update={"streak": streak, "last_completed": now, "updated_at": now})
        items[index] = updated
        self._save(items)
        return CompletionResult(CompletionStatus.COMPLETED, updated)

    def _streak_broken(self, habit: Habit, today: date) -> bool:
        if self.streak_policy != StreakPolicy.RESET_ON_MISS or habit.last_completed is None:
            return False
        gap = (today - self._context.clock.local_date(habit.last_completed)).days
        return gap > ALLOWED_GAP_DAYS[habit.frequency]
