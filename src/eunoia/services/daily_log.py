"""Daily log and diary entries."""

from __future__ import annotations

from datetime import datetime

from eunoia.analysis.aggregation import filter_in_range
from eunoia.core.models import LogEntry
from eunoia.core.storage import DAILY_LOGS_KEY
from eunoia.services.base import RecordService


class DailyLogService(RecordService[LogEntry]):
    """Log entries, most recent date first."""

    storage_key = DAILY_LOGS_KEY
    model = LogEntry
    sort_field = "date"

    def in_range(self, start: datetime, end: datetime) -> list[LogEntry]:
        return self._sorted(filter_in_range(self._load(), start, end, lambda log: log.date))

    def diary_entries(self, start: datetime, end: datetime) -> list[LogEntry]:
        """Entries in range that carry diary text, most recent first."""
        return [log for log in self.in_range(start, end) if log.diary_entry and log.diary_entry.strip()]
