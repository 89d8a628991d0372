"""Wellness exercises: gratitude and cognitive reframing logs."""

from __future__ import annotations

from eunoia.core.models import GratitudeLog, ReframingLog
from eunoia.core.storage import GRATITUDE_KEY, REFRAMING_KEY
from eunoia.services.base import RecordService


class GratitudeService(RecordService[GratitudeLog]):
    storage_key = GRATITUDE_KEY
    model = GratitudeLog
    sort_field = "timestamp"
    default_now_fields = ("timestamp",)


class ReframingService(RecordService[ReframingLog]):
    storage_key = REFRAMING_KEY
    model = ReframingLog
    sort_field = "timestamp"
    default_now_fields = ("timestamp",)
