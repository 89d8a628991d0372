"""Report flows.

Each flow turns already-loaded records and an ISO-8601 date range into one
structured report. Every flow runs the same pipeline:

1. Parse the date range (``InvalidDateRangeError`` is raised here, before
   any aggregation).
2. Aggregate the records in range with :mod:`eunoia.analysis`.
3. If there is too little data, return a canned report without calling the
   model.
4. Build the prompt and call the gateway once. No retries.
5. On any :class:`ModelError`, build the rule-based fallback instead.

A flow never raises for model trouble and never returns a partially filled
report. The ``source`` field says which path produced it.

Example:
    >>> flows = ReportFlows(build_gateway(config), clock=SystemClock(), ai_config=config.ai)
    >>> report = flows.estimate_burnout_risk("2024-03-01", "2024-03-14", logs, tasks, events)
    >>> report.risk_level, report.source
    (<RiskLevel.MODERATE: 'Moderate'>, <ReportSource.MODEL: 'model'>)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import TypeVar

from pydantic import BaseModel

from eunoia.ai.fallback import (
    FallbackAnalyzer,
    insufficient_attention_report,
    insufficient_burnout_report,
    insufficient_diary_report,
    insufficient_expense_report,
    insufficient_life_balance_report,
    insufficient_productivity_report,
    insufficient_sentiment_report,
    insufficient_task_completion_report,
)
from eunoia.ai.gateway import CompletionGateway, CompletionRequest, ModelError
from eunoia.ai.prompts import (
    build_attention_patterns_request,
    build_burnout_risk_request,
    build_diary_summary_request,
    build_expense_trends_request,
    build_life_balance_request,
    build_productivity_patterns_request,
    build_sentiment_trends_request,
    build_task_completion_request,
    format_day,
    serialize_events,
    serialize_excerpts,
    serialize_expenses,
    serialize_logs,
    serialize_notes,
    serialize_reminders,
    serialize_tasks,
)
from eunoia.ai.reports import (
    ActivityFocus,
    AreaScore,
    AttentionInput,
    AttentionReport,
    BurnoutInput,
    BurnoutReport,
    CategorySpending,
    DateSpan,
    DiaryFrequency,
    DiarySummaryInput,
    DiarySummaryReport,
    EventSummary,
    ExpenseTrendsInput,
    ExpenseTrendsReport,
    FocusBuckets,
    LifeBalanceInput,
    LifeBalanceReport,
    LogSummary,
    ProductivityInput,
    ProductivityReport,
    ReportSource,
    SentimentInput,
    SentimentReport,
    TaskCompletionInput,
    TaskCompletionReport,
    TaskSummary,
)
from eunoia.analysis.aggregation import (
    DateRange,
    average_per_day,
    filter_in_range,
    group_and_rank_by_category,
    parse_iso_range,
    sum_amounts,
    whole_days_inclusive,
)
from eunoia.analysis.keywords import (
    DISTRACTION_KEYWORDS,
    LIFE_AREAS,
    STRESS_KEYWORDS,
    count_keywords,
    count_focus_levels,
    count_life_areas,
    count_moods,
    focus_by_activity,
)
from eunoia.config import AIConfig
from eunoia.core.clock import Clock, SystemClock
from eunoia.core.models import (
    CalendarEvent,
    Expense,
    LogEntry,
    Note,
    Reminder,
    Task,
    TaskStatus,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)

# Logs + open tasks + events below this skip the burnout model call
MIN_BURNOUT_ACTIVITY = 5


class ReportFlows:
    """Runs the report pipelines against a completion gateway.

    Args:
        gateway: Where prompts are sent.
        clock: Time source for "now" (overdue checks, weekday bucketing).
        ai_config: Prompt bounds (``max_prompt_entries``, ``max_excerpt_chars``).
        fallback: Rule-based analyzer used when the model fails.
    """

    def __init__(
        self,
        gateway: CompletionGateway,
        clock: Clock | None = None,
        ai_config: AIConfig | None = None,
        fallback: FallbackAnalyzer | None = None,
    ) -> None:
        self._gateway = gateway
        self._clock = clock or SystemClock()
        self._ai = ai_config or AIConfig()
        self._fallback = fallback or FallbackAnalyzer()

    # =========================================================================
    # Pipeline helpers
    # =========================================================================

    def _call_model(self, request: CompletionRequest) -> BaseModel | None:
        """One gateway call. Returns None when the fallback should be used."""
        try:
            return self._gateway.complete(request)
        except ModelError as e:
            logger.warning(f"Model call for {request.prompt_id} failed: {type(e).__name__}")
            logger.info(f"Using rule-based fallback for {request.prompt_id}")
            return None

    @staticmethod
    def _insufficient(name: str, report: R) -> R:
        logger.info(f"Not enough data for {name}; returning canned report")
        return report

    @staticmethod
    def _span(period: DateRange) -> DateSpan:
        return DateSpan(start=format_day(period.start), end=format_day(period.end))

    @staticmethod
    def _tasks_in_period(tasks: Iterable[Task], period: DateRange) -> list[Task]:
        """Tasks due or created within the period."""
        return [
            t
            for t in tasks
            if any(moment is not None and period.start <= moment <= period.end for moment in (t.due_date, t.created_at))
        ]

    @property
    def _max_entries(self) -> int:
        return self._ai.max_prompt_entries

    @property
    def _max_chars(self) -> int:
        return self._ai.max_excerpt_chars

    # =========================================================================
    # Expense trends
    # =========================================================================

    def analyze_expense_trends(self, start: str, end: str, expenses: Sequence[Expense]) -> ExpenseTrendsReport:
        """Totals, daily average and top categories, with a model-written summary."""
        period = parse_iso_range(start, end)
        in_range = filter_in_range(expenses, period.start, period.end, lambda e: e.date)
        if not in_range:
            return self._insufficient("expense trends", insufficient_expense_report())

        total = sum_amounts(in_range, lambda e: e.amount)
        ranked = group_and_rank_by_category(in_range, lambda e: e.category, lambda e: e.amount)
        span = self._span(period)
        payload = ExpenseTrendsInput(
            start_date=span.start,
            end_date=span.end,
            day_count=max(1, whole_days_inclusive(period.start, period.end)),
            expense_count=len(in_range),
            total_spending=round(total, 2),
            average_daily_spending=round(average_per_day(total, period.start, period.end), 2),
            top_spending_categories=[
                CategorySpending(category=row.category, amount=row.amount, percentage=row.percentage)
                for row in ranked
            ],
        )

        reply = self._call_model(build_expense_trends_request(payload))
        if reply is None:
            return self._fallback.expense_trends(payload)
        return ExpenseTrendsReport(
            total_spending=payload.total_spending,
            average_daily_spending=payload.average_daily_spending,
            top_spending_categories=payload.top_spending_categories,
            spending_summary=reply.spending_summary,
            source=ReportSource.MODEL,
        )

    # =========================================================================
    # Sentiment trends
    # =========================================================================

    def analyze_sentiment_trends(
        self,
        start: str,
        end: str,
        logs: Sequence[LogEntry],
        notes: Sequence[Note] = (),
    ) -> SentimentReport:
        """Sentiment of diary entries and notes written in the period."""
        period = parse_iso_range(start, end)
        diary_logs = [
            log
            for log in filter_in_range(logs, period.start, period.end, lambda log: log.date)
            if log.diary_entry and log.diary_entry.strip()
        ]
        notes_in = [
            n
            for n in filter_in_range(notes, period.start, period.end, lambda n: n.created_at)
            if (n.title + n.content).strip()
        ]
        entry_count = len(diary_logs) + len(notes_in)
        if entry_count == 0:
            return self._insufficient("sentiment trends", insufficient_sentiment_report())

        span = self._span(period)
        payload = SentimentInput(
            start_date=span.start,
            end_date=span.end,
            entries=serialize_excerpts(diary_logs, notes_in, self._max_entries, self._max_chars),
        )

        reply = self._call_model(build_sentiment_trends_request(payload))
        if reply is None:
            texts = [log.diary_entry for log in diary_logs] + [f"{n.title} {n.content}" for n in notes_in]
            return self._fallback.sentiment_trends(texts, count_moods(diary_logs), entry_count)
        return SentimentReport(**reply.model_dump(), entry_count=entry_count, source=ReportSource.MODEL)

    # =========================================================================
    # Productivity patterns
    # =========================================================================

    def analyze_productivity_patterns(
        self,
        start: str,
        end: str,
        events: Sequence[CalendarEvent] = (),
        tasks: Sequence[Task] = (),
        expenses: Sequence[Expense] = (),
        reminders: Sequence[Reminder] = (),
        notes: Sequence[Note] = (),
        logs: Sequence[LogEntry] = (),
        additional_context: str | None = None,
    ) -> ProductivityReport:
        """Peak times, obstacles and strategies across every record kind."""
        period = parse_iso_range(start, end)
        events_in = filter_in_range(events, period.start, period.end, lambda e: e.start)
        tasks_in = self._tasks_in_period(tasks, period)
        expenses_in = filter_in_range(expenses, period.start, period.end, lambda e: e.date)
        reminders_in = filter_in_range(reminders, period.start, period.end, lambda r: r.date_time)
        notes_in = filter_in_range(notes, period.start, period.end, lambda n: n.created_at)
        logs_in = filter_in_range(logs, period.start, period.end, lambda log: log.date)

        if not any((events_in, tasks_in, expenses_in, reminders_in, notes_in, logs_in)):
            return self._insufficient("productivity patterns", insufficient_productivity_report())

        span = self._span(period)
        limit = self._max_entries
        payload = ProductivityInput(
            start_date=span.start,
            end_date=span.end,
            calendar_events=serialize_events(events_in, limit),
            tasks=serialize_tasks(tasks_in, limit),
            expenses=serialize_expenses(expenses_in, limit),
            reminders=serialize_reminders(reminders_in, limit),
            notes=serialize_notes(notes_in, limit),
            daily_logs=serialize_logs(logs_in, limit, self._max_chars),
            additional_context=additional_context or None,
        )

        reply = self._call_model(build_productivity_patterns_request(payload))
        if reply is not None:
            return ProductivityReport(**reply.model_dump(), source=ReportSource.MODEL)

        now = self._clock.now()
        moments: list[datetime] = [e.start for e in events_in] + [log.date for log in logs_in]
        moments += [n.created_at for n in notes_in]
        moments += [t.created_at for t in tasks_in if t.created_at is not None]
        texts = [log.diary_entry for log in logs_in] + [log.notes for log in logs_in] + [n.content for n in notes_in]
        return self._fallback.productivity_patterns(
            weekdays=[self._clock.local_date(m).weekday() for m in moments],
            overdue_count=sum(1 for t in tasks_in if t.is_overdue(now)),
            distraction_counts=count_keywords(texts, DISTRACTION_KEYWORDS),
        )

    # =========================================================================
    # Burnout risk
    # =========================================================================

    def estimate_burnout_risk(
        self,
        start: str,
        end: str,
        logs: Sequence[LogEntry],
        tasks: Sequence[Task],
        events: Sequence[CalendarEvent],
    ) -> BurnoutReport:
        """Burnout risk from mood mix, open and overdue tasks, and calendar load.

        All open tasks count toward the task load, whatever their dates. Logs
        and events count only within the period.
        """
        period = parse_iso_range(start, end)
        period_days = max(1, whole_days_inclusive(period.start, period.end))
        logs_in = filter_in_range(logs, period.start, period.end, lambda log: log.date)
        events_in = filter_in_range(events, period.start, period.end, lambda e: e.start)
        open_tasks = [t for t in tasks if t.is_open()]

        if len(logs_in) + len(open_tasks) + len(events_in) < MIN_BURNOUT_ACTIVITY:
            return self._insufficient("burnout risk", insufficient_burnout_report(period_days))

        now = self._clock.now()
        moods = count_moods(logs_in)
        stress = count_keywords([log.diary_entry for log in logs_in] + [log.notes for log in logs_in], STRESS_KEYWORDS)
        payload = BurnoutInput(
            analysis_period_days=period_days,
            log_summary=LogSummary(
                total_logs=moods.total,
                stressed_anxious_tired_count=moods.negative,
                positive_mood_count=moods.positive,
            ),
            task_summary=TaskSummary(
                pending_in_progress_count=len(open_tasks),
                overdue_count=sum(1 for t in open_tasks if t.is_overdue(now)),
            ),
            event_summary=EventSummary(total_events=len(events_in)),
            stress_keyword_mentions=dict(stress),
        )

        reply = self._call_model(build_burnout_risk_request(payload))
        if reply is None:
            return self._fallback.burnout_risk(payload)
        return BurnoutReport(**reply.model_dump(), source=ReportSource.MODEL)

    # =========================================================================
    # Task completion
    # =========================================================================

    def analyze_task_completion(self, start: str, end: str, tasks: Sequence[Task]) -> TaskCompletionReport:
        """Completion figures for tasks due in the period."""
        period = parse_iso_range(start, end)
        due = filter_in_range(tasks, period.start, period.end, lambda t: t.due_date)
        if not due:
            return self._insufficient("task completion", insufficient_task_completion_report())

        now = self._clock.now()
        completed = sum(1 for t in due if t.status == TaskStatus.COMPLETED)
        span = self._span(period)
        payload = TaskCompletionInput(
            start_date=span.start,
            end_date=span.end,
            total_tasks_considered=len(due),
            completed_tasks=completed,
            in_progress_tasks=sum(1 for t in due if t.status == TaskStatus.IN_PROGRESS),
            pending_tasks=sum(1 for t in due if t.status == TaskStatus.PENDING),
            completion_rate=round(completed / len(due) * 100, 1),
            overdue_tasks=[t.title for t in due if t.is_overdue(now)][: self._max_entries],
        )

        reply = self._call_model(build_task_completion_request(payload))
        if reply is None:
            return self._fallback.task_completion(payload)
        return TaskCompletionReport(
            total_tasks_considered=payload.total_tasks_considered,
            completed_tasks=payload.completed_tasks,
            completion_rate=payload.completion_rate,
            overdue_tasks=payload.overdue_tasks,
            completion_summary=reply.completion_summary,
            source=ReportSource.MODEL,
        )

    # =========================================================================
    # Life balance
    # =========================================================================

    def assess_life_balance(
        self,
        start: str,
        end: str,
        logs: Sequence[LogEntry] = (),
        tasks: Sequence[Task] = (),
        events: Sequence[CalendarEvent] = (),
        notes: Sequence[Note] = (),
    ) -> LifeBalanceReport:
        """Share of categorized activity per life area."""
        period = parse_iso_range(start, end)
        texts: list[str | None] = [
            log.activity for log in filter_in_range(logs, period.start, period.end, lambda log: log.date)
        ]
        texts += [t.title for t in self._tasks_in_period(tasks, period)]
        texts += [e.title for e in filter_in_range(events, period.start, period.end, lambda e: e.start)]
        texts += [n.title for n in filter_in_range(notes, period.start, period.end, lambda n: n.created_at)]

        counts = count_life_areas(texts)
        categorized = sum(counts[area] for area in LIFE_AREAS)
        if categorized == 0:
            return self._insufficient("life balance", insufficient_life_balance_report())

        span = self._span(period)
        payload = LifeBalanceInput(
            start_date=span.start,
            end_date=span.end,
            activity_counts=counts,
            area_scores=[
                AreaScore(area=area, score=round(counts[area] / categorized * 100, 1)) for area in LIFE_AREAS
            ],
        )

        reply = self._call_model(build_life_balance_request(payload))
        if reply is None:
            return self._fallback.life_balance(payload)
        return LifeBalanceReport(
            area_scores=payload.area_scores,
            balance_summary=reply.balance_summary,
            neglected_areas=reply.neglected_areas,
            source=ReportSource.MODEL,
        )

    # =========================================================================
    # Diary summary
    # =========================================================================

    def summarize_diary_entries(
        self,
        start: str,
        end: str,
        logs: Sequence[LogEntry],
        frequency: DiaryFrequency | str = DiaryFrequency.WEEKLY,
    ) -> DiarySummaryReport:
        """Summary of diary entries written in the period.

        Raises:
            InvalidDateRangeError: On malformed dates.
            ValueError: If ``frequency`` is not weekly or monthly.
        """
        period = parse_iso_range(start, end)
        frequency = DiaryFrequency(frequency)
        span = self._span(period)
        diary_logs = sorted(
            (
                log
                for log in filter_in_range(logs, period.start, period.end, lambda log: log.date)
                if log.diary_entry and log.diary_entry.strip()
            ),
            key=lambda log: log.date,
        )
        if not diary_logs:
            return self._insufficient("diary summary", insufficient_diary_report(span))

        payload = DiarySummaryInput(
            start_date=span.start,
            end_date=span.end,
            frequency=frequency,
            entries=serialize_excerpts(diary_logs, (), self._max_entries, self._max_chars),
        )

        reply = self._call_model(build_diary_summary_request(payload))
        if reply is None:
            return self._fallback.diary_summary(diary_logs, span)
        return DiarySummaryReport(
            **reply.model_dump(),
            entry_count=len(diary_logs),
            date_range=span,
            source=ReportSource.MODEL,
        )

    # =========================================================================
    # Attention patterns
    # =========================================================================

    def analyze_attention_patterns(self, start: str, end: str, logs: Sequence[LogEntry]) -> AttentionReport:
        """Average focus, focus bands and high/low focus activities from rated daily logs.

        Only logs with a focus level count. Without any, a canned report is
        returned and the model is not called.
        """
        period = parse_iso_range(start, end)
        rated = [
            log
            for log in filter_in_range(logs, period.start, period.end, lambda log: log.date)
            if log.focus_level is not None
        ]
        if not rated:
            return self._insufficient("attention patterns", insufficient_attention_report())

        focus = count_focus_levels(rated)
        buckets = FocusBuckets(low=focus.low, moderate=focus.moderate, high=focus.high)
        span = self._span(period)
        payload = AttentionInput(
            start_date=span.start,
            end_date=span.end,
            rated_log_count=focus.rated,
            average_focus_level=focus.average,
            focus_buckets=buckets,
            baseline_quality_score=focus.quality_score,
            activity_focus=[
                ActivityFocus(activity=activity, average_focus_level=average, log_count=count)
                for activity, average, count in focus_by_activity(rated)
            ][: self._max_entries],
            daily_logs=serialize_logs(rated, self._max_entries, self._max_chars),
        )

        reply = self._call_model(build_attention_patterns_request(payload))
        if reply is None:
            return self._fallback.attention_patterns(payload)
        fields = reply.model_dump()
        if fields["attention_quality_score"] is None:
            fields["attention_quality_score"] = payload.baseline_quality_score
        return AttentionReport(
            **fields,
            average_focus_level=payload.average_focus_level,
            focus_buckets=buckets,
            rated_log_count=payload.rated_log_count,
            source=ReportSource.MODEL,
        )
