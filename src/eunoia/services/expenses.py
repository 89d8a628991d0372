"""Expense records."""

from __future__ import annotations

from datetime import datetime

from eunoia.analysis.aggregation import filter_in_range
from eunoia.core.models import Expense
from eunoia.core.storage import EXPENSES_KEY
from eunoia.services.base import RecordService


class ExpenseService(RecordService[Expense]):
    """Expenses, most recent first."""

    storage_key = EXPENSES_KEY
    model = Expense
    sort_field = "date"

    def in_range(self, start: datetime, end: datetime) -> list[Expense]:
        return self._sorted(filter_in_range(self._load(), start, end, lambda e: e.date))
