"""Domain record services, one per entity kind."""

from eunoia.services.base import RecordService
from eunoia.services.calendar import CalendarService
from eunoia.services.daily_log import DailyLogService
from eunoia.services.expenses import ExpenseService
from eunoia.services.goals import GoalService
from eunoia.services.habits import CompletionResult, CompletionStatus, HabitService
from eunoia.services.notes import NoteService
from eunoia.services.reminders import ReminderService
from eunoia.services.tasks import TaskService
from eunoia.services.wellness import GratitudeService, ReframingService

__all__ = [
    "CalendarService",
    "CompletionResult",
    "CompletionStatus",
    "DailyLogService",
    "ExpenseService",
    "GoalService",
    "GratitudeService",
    "HabitService",
    "NoteService",
    "RecordService",
    "ReframingService",
    "ReminderService",
    "TaskService",
]
