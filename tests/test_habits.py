"""Tests for eunoia.services.habits: completion and streak policies."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from eunoia.config import AppConfig, HabitConfig, StreakPolicy
from eunoia.core.clock import FixedClock
from eunoia.core.models import HabitFrequency
from eunoia.core.storage import HABITS_KEY, MemoryStore, StorageContext
from eunoia.services import CompletionStatus, HabitService


class TestMarkComplete:
    def test_twice_same_day(self, memory_context, clock):
        service = HabitService(memory_context)
        habit = service.add(title="Meditate")

        first = service.mark_complete(habit.id)
        clock.advance(hours=3)
        second = service.mark_complete(habit.id)

        assert first.status == CompletionStatus.COMPLETED
        assert first.completed
        assert first.habit.streak == 1
        assert second.status == CompletionStatus.ALREADY_COMPLETED
        assert not second.completed
        assert second.habit.streak == 1
        assert service.get(habit.id).streak == 1

    def test_next_day_increments(self, memory_context, clock):
        service = HabitService(memory_context)
        habit = service.add(title="Meditate")
        service.mark_complete(habit.id)
        clock.advance(days=1)

        result = service.mark_complete(habit.id)

        assert result.habit.streak == 2
        assert result.habit.last_completed == clock.now()
        assert result.habit.updated_at == clock.now()

    def test_not_found(self, memory_context):
        result = HabitService(memory_context).mark_complete("missing")
        assert result.status == CompletionStatus.NOT_FOUND
        assert result.habit is None
        assert memory_context.store.get(HABITS_KEY) is None

    def test_calendar_day_uses_clock_timezone(self):
        # 23:30 and 00:30 UTC are the same day in UTC-5
        minus_five = timezone(timedelta(hours=-5))
        clock = FixedClock(datetime(2024, 3, 15, 23, 30, tzinfo=timezone.utc), tz=minus_five)
        service = HabitService(StorageContext(store=MemoryStore(), clock=clock))
        habit = service.add(title="Stretch")

        service.mark_complete(habit.id)
        clock.advance(hours=1)

        assert service.mark_complete(habit.id).status == CompletionStatus.ALREADY_COMPLETED


class TestStreakPolicies:
    def test_always_increment_ignores_gaps(self, memory_context, clock):
        service = HabitService(memory_context, streak_policy=StreakPolicy.ALWAYS_INCREMENT)
        habit = service.add(title="Daily walk", frequency=HabitFrequency.DAILY)
        service.mark_complete(habit.id)
        clock.advance(days=2)

        assert service.mark_complete(habit.id).habit.streak == 2

    def test_reset_on_miss_daily(self, memory_context, clock):
        service = HabitService(memory_context, streak_policy=StreakPolicy.RESET_ON_MISS)
        habit = service.add(title="Daily walk", frequency=HabitFrequency.DAILY)
        service.mark_complete(habit.id)
        clock.advance(days=1)
        assert service.mark_complete(habit.id).habit.streak == 2

        clock.advance(days=2)
        assert service.mark_complete(habit.id).habit.streak == 1

    @pytest.mark.parametrize(
        "frequency, kept_gap, broken_gap",
        [
            (HabitFrequency.WEEKLY, 7, 8),
            (HabitFrequency.SPECIFIC_DAYS, 7, 8),
            (HabitFrequency.MONTHLY, 31, 32),
        ],
    )
    def test_reset_on_miss_allowed_gaps(self, memory_context, clock, frequency, kept_gap, broken_gap):
        service = HabitService(memory_context, streak_policy=StreakPolicy.RESET_ON_MISS)
        habit = service.add(title="Review", frequency=frequency)
        service.mark_complete(habit.id)

        clock.advance(days=kept_gap)
        assert service.mark_complete(habit.id).habit.streak == 2

        clock.advance(days=broken_gap)
        assert service.mark_complete(habit.id).habit.streak == 1

    def test_first_completion_under_reset_policy(self, memory_context):
        service = HabitService(memory_context, streak_policy=StreakPolicy.RESET_ON_MISS)
        habit = service.add(title="New habit")
        assert service.mark_complete(habit.id).habit.streak == 1

    def test_policy_from_config(self, memory_context):
        config = AppConfig(habits=HabitConfig(streak_policy=StreakPolicy.RESET_ON_MISS))
        assert HabitService.from_config(memory_context, config).streak_policy == StreakPolicy.RESET_ON_MISS

    def test_default_policy(self, memory_context):
        assert HabitService(memory_context).streak_policy == StreakPolicy.ALWAYS_INCREMENT
