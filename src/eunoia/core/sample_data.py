"""Generated demo dataset for sample mode.

The records are built relative to the clock's current instant so the demo
always looks recent: expenses from the last two weeks, reminders in the
coming days, a habit last completed yesterday.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from eunoia.core.clock import Clock
from eunoia.core.models import (
    CalendarEvent,
    Expense,
    Goal,
    GoalStatus,
    GratitudeLog,
    Habit,
    HabitFrequency,
    LogEntry,
    Mood,
    Note,
    Record,
    ReframingLog,
    Reminder,
    Task,
    TaskStatus,
)
from eunoia.core.storage import (
    CALENDAR_EVENTS_KEY,
    DAILY_LOGS_KEY,
    EXPENSES_KEY,
    GOALS_KEY,
    GRATITUDE_KEY,
    HABITS_KEY,
    NOTES_KEY,
    REFRAMING_KEY,
    REMINDERS_KEY,
    TASKS_KEY,
    MemoryStore,
    encode_records,
)


def _at(base: datetime, days: int = 0, hour: int | None = None, minute: int = 0) -> datetime:
    moment = base + timedelta(days=days)
    if hour is not None:
        moment = moment.replace(hour=hour, minute=minute, second=0, microsecond=0)
    return moment


def sample_records(clock: Clock) -> dict[str, list[Record]]:
    """Build the sample dataset, keyed by storage key."""
    now = clock.now()

    tasks = [
        Task(id="task-sample-1", title="Finish quarterly report", description="Draft and send to the team",
             due_date=_at(now, 1, 17), status=TaskStatus.IN_PROGRESS, created_at=_at(now, -4, 9)),
        Task(id="task-sample-2", title="Book dentist appointment", due_date=_at(now, -2, 12),
             status=TaskStatus.PENDING, created_at=_at(now, -6, 8)),
        Task(id="task-sample-3", title="Plan weekend hike", due_date=_at(now, 3, 10),
             status=TaskStatus.PENDING, created_at=_at(now, -1, 20)),
        Task(id="task-sample-4", title="Review project proposal", due_date=_at(now, -3, 15),
             status=TaskStatus.COMPLETED, created_at=_at(now, -8, 11)),
        Task(id="task-sample-5", title="Pay electricity bill", due_date=_at(now, -1, 18),
             status=TaskStatus.COMPLETED, created_at=_at(now, -5, 19)),
    ]

    events = [
        CalendarEvent(id="event-sample-1", title="Team meeting", start=_at(now, -1, 10),
                      end=_at(now, -1, 11), description="Weekly sync"),
        CalendarEvent(id="event-sample-2", title="Yoga class", start=_at(now, -3, 18),
                      end=_at(now, -3, 19)),
        CalendarEvent(id="event-sample-3", title="Dinner with friends", start=_at(now, -5, 19, 30),
                      end=_at(now, -5, 22)),
        CalendarEvent(id="event-sample-4", title="Client workshop", start=_at(now, 2, 9),
                      end=_at(now, 2, 12)),
    ]

    expenses = [
        Expense(id="exp-sample-1", description="Groceries", amount=75.50, date=_at(now, -2), category="Food"),
        Expense(id="exp-sample-2", description="Gasoline", amount=55.00, date=_at(now, -3), category="Transport"),
        Expense(id="exp-sample-3", description="Movie Tickets", amount=30.00, date=_at(now, -5), category="Entertainment"),
        Expense(id="exp-sample-4", description="New Shirt", amount=45.99, date=_at(now, -7), category="Shopping"),
        Expense(id="exp-sample-5", description="Lunch Out", amount=18.20, date=_at(now, -4), category="Food"),
        Expense(id="exp-sample-6", description="Streaming Subscription", amount=15.99, date=_at(now, -12),
                category="Entertainment"),
        Expense(id="exp-sample-7", description="Dinner", amount=60.00, date=_at(now, -9), category="Food"),
        Expense(id="exp-sample-8", description="Train Ticket", amount=25.00, date=_at(now, -15), category="Transport"),
    ]

    notes = [
        Note(id="note-sample-1", title="Project ideas",
             content="Try a habit tracker widget. Felt excited sketching it out.",
             created_at=_at(now, -6, 21), updated_at=_at(now, -2, 8)),
        Note(id="note-sample-2", title="Reading list", content="Deep Work; Atomic Habits; The Overstory",
             created_at=_at(now, -10, 22), updated_at=_at(now, -10, 22)),
        Note(id="note-sample-3", title="Stressful week",
             content="Deadlines piling up, feeling overwhelmed but managing.",
             created_at=_at(now, -3, 23), updated_at=_at(now, -3, 23)),
    ]

    goals = [
        Goal(id="goal-sample-1", title="Run a 10k", description="Build up from 5k runs",
             status=GoalStatus.IN_PROGRESS, target_date=_at(now, 60), created_at=_at(now, -30),
             updated_at=_at(now, -2)),
        Goal(id="goal-sample-2", title="Read 12 books this year", status=GoalStatus.NOT_STARTED,
             created_at=_at(now, -20), updated_at=_at(now, -20)),
    ]

    habits = [
        Habit(id="habit-sample-1", title="Meditate 10 minutes", frequency=HabitFrequency.DAILY, streak=4,
              last_completed=_at(now, -1, 7), created_at=_at(now, -14), updated_at=_at(now, -1, 7)),
        Habit(id="habit-sample-2", title="Weekly review", frequency=HabitFrequency.WEEKLY, streak=2,
              last_completed=_at(now, -6, 18), created_at=_at(now, -21), updated_at=_at(now, -6, 18)),
        Habit(id="habit-sample-3", title="Strength training", frequency=HabitFrequency.SPECIFIC_DAYS,
              specific_days=[1, 3, 5], streak=0, created_at=_at(now, -3), updated_at=_at(now, -3)),
    ]

    reminders = [
        Reminder(id="reminder-sample-1", title="Call mom", date_time=_at(now, 1, 18)),
        Reminder(id="reminder-sample-2", title="Submit expense report", date_time=_at(now, 2, 9),
                 description="Attach receipts"),
        Reminder(id="reminder-sample-3", title="Water the plants", date_time=_at(now, -1, 8)),
    ]

    logs = [
        LogEntry(id="log-sample-1", date=_at(now, -1, 21), activity="Worked on quarterly report",
                 mood=Mood.PRODUCTIVE, focus_level=4,
                 diary_entry="Good focus in the morning. Got the hardest section done and felt proud."),
        LogEntry(id="log-sample-2", date=_at(now, -2, 21), activity="Team meeting and emails",
                 mood=Mood.STRESSED, focus_level=2,
                 diary_entry="Too many interruptions. Felt overwhelmed by the deadline."),
        LogEntry(id="log-sample-3", date=_at(now, -3, 20), activity="Yoga and reading",
                 mood=Mood.CALM, focus_level=3, notes="Finished two chapters"),
        LogEntry(id="log-sample-4", date=_at(now, -4, 22), activity="Late night project work",
                 mood=Mood.TIRED, focus_level=2,
                 diary_entry="Exhausted. Should have stopped earlier."),
        LogEntry(id="log-sample-5", date=_at(now, -5, 23), activity="Dinner with friends",
                 mood=Mood.HAPPY,
                 diary_entry="Lovely evening with friends, grateful for good company."),
    ]

    gratitude = [
        GratitudeLog(id="gratitude-sample-1", timestamp=_at(now, -1, 22), text="A quiet morning coffee"),
        GratitudeLog(id="gratitude-sample-2", timestamp=_at(now, -4, 22), text="Friends who listen"),
    ]

    reframing = [
        ReframingLog(id="reframing-sample-1", timestamp=_at(now, -2, 22),
                     negative_thought="I'll never finish this report on time.",
                     positive_reframing="I've finished harder reports before; one section at a time."),
    ]

    return {
        TASKS_KEY: tasks,
        CALENDAR_EVENTS_KEY: events,
        EXPENSES_KEY: expenses,
        NOTES_KEY: notes,
        GOALS_KEY: goals,
        HABITS_KEY: habits,
        REMINDERS_KEY: reminders,
        DAILY_LOGS_KEY: logs,
        GRATITUDE_KEY: gratitude,
        REFRAMING_KEY: reframing,
    }


def build_sample_store(clock: Clock) -> MemoryStore:
    """Create a :class:`MemoryStore` holding the sample dataset."""
    return MemoryStore({key: encode_records(items) for key, items in sample_records(clock).items()})
