"""Long-term goals."""

from __future__ import annotations

from eunoia.core.models import Goal
from eunoia.core.storage import GOALS_KEY
from eunoia.services.base import RecordService


class GoalService(RecordService[Goal]):
    """Goals, most recently edited first."""

    storage_key = GOALS_KEY
    model = Goal
    sort_field = "updated_at"
