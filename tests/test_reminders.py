"""Tests for eunoia.services.reminders: upcoming visibility vs. stored reminders."""

from __future__ import annotations

from datetime import timedelta

from eunoia.services import ReminderService


class TestReminderVisibility:
    def _seed(self, service, now):
        service.add(title="past", date_time=now - timedelta(hours=1))
        service.add(title="now", date_time=now)
        service.add(title="tomorrow", date_time=now + timedelta(days=1))
        service.add(title="soon", date_time=now + timedelta(hours=2))

    def test_upcoming_hides_past_soonest_first(self, memory_context, fixed_now):
        service = ReminderService(memory_context)
        self._seed(service, fixed_now)

        assert [r.title for r in service.upcoming()] == ["now", "soon", "tomorrow"]

    def test_past_reminders_stay_stored(self, memory_context, fixed_now):
        service = ReminderService(memory_context)
        self._seed(service, fixed_now)

        assert [r.title for r in service.get_all()] == ["past", "now", "soon", "tomorrow"]
        assert [r.title for r in service.past()] == ["past"]

    def test_reminder_becomes_past_as_clock_moves(self, memory_context, clock, fixed_now):
        service = ReminderService(memory_context)
        self._seed(service, fixed_now)
        clock.advance(hours=3)

        assert [r.title for r in service.upcoming()] == ["tomorrow"]
        assert len(service.get_all()) == 4

    def test_purge_past(self, memory_context, fixed_now):
        service = ReminderService(memory_context)
        self._seed(service, fixed_now)

        assert service.purge_past() == 1
        assert [r.title for r in service.get_all()] == ["now", "soon", "tomorrow"]
        assert service.purge_past() == 0

    def test_delete_past_reminder(self, memory_context, fixed_now):
        service = ReminderService(memory_context)
        past = service.add(title="past", date_time=fixed_now - timedelta(days=1))
        assert service.delete(past.id) is True
        assert service.get_all() == []
