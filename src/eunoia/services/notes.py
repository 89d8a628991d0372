"""Free-form notes."""

from __future__ import annotations

from eunoia.core.models import Note
from eunoia.core.storage import NOTES_KEY
from eunoia.services.base import RecordService


class NoteService(RecordService[Note]):
    """Notes, most recently edited first."""

    storage_key = NOTES_KEY
    model = Note
    sort_field = "updated_at"
