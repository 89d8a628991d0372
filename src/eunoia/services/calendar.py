"""Calendar events."""

from __future__ import annotations

from datetime import datetime

from eunoia.analysis.aggregation import filter_in_range
from eunoia.core.models import CalendarEvent
from eunoia.core.storage import CALENDAR_EVENTS_KEY
from eunoia.services.base import RecordService


class CalendarService(RecordService[CalendarEvent]):
    """Events, listed in chronological order by start."""

    storage_key = CALENDAR_EVENTS_KEY
    model = CalendarEvent
    sort_field = "start"
    sort_descending = False

    def in_range(self, start: datetime, end: datetime) -> list[CalendarEvent]:
        """Events starting within ``[start, end]``, most recent first."""
        events = filter_in_range(self._load(), start, end, lambda e: e.start)
        return self._sorted(events, descending=True)
