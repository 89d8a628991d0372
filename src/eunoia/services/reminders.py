"""Reminders.

Visibility and storage are separate on purpose: :meth:`ReminderService.upcoming`
hides reminders whose time has passed, but they stay stored until deleted
one by one or swept with :meth:`ReminderService.purge_past`.
"""

from __future__ import annotations

from eunoia.core.models import Reminder
from eunoia.core.storage import REMINDERS_KEY
from eunoia.services.base import RecordService


class ReminderService(RecordService[Reminder]):
    """Every stored reminder, soonest first."""

    storage_key = REMINDERS_KEY
    model = Reminder
    sort_field = "date_time"
    sort_descending = False

    def upcoming(self) -> list[Reminder]:
        """Reminders due now or later, soonest first."""
        now = self._now()
        return [reminder for reminder in self.get_all() if reminder.date_time >= now]

    def past(self) -> list[Reminder]:
        now = self._now()
        return [reminder for reminder in self.get_all() if reminder.date_time < now]

    def purge_past(self) -> int:
        """Delete every reminder whose time has passed.

        Returns:
            Number of reminders removed.
        """
        items = self._load()
        now = self._now()
        remaining = [reminder for reminder in items if reminder.date_time >= now]
        removed = len(items) - len(remaining)
        if removed:
            self._save(remaining)
            self._logger.info(f"Purged {removed} past reminder(s)")
        return removed
