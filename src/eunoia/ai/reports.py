"""Structured inputs and outputs of the report flows.

Three families of models live here:

- ``*Input``: the aggregated, bounded payload serialized into a prompt. Only
  counts, totals, short titles and truncated excerpts ever reach the model.
- ``*Reply``: the part of a report the model is asked to write. The gateway
  validates the model's JSON against these.
- ``*Report``: what a flow returns. Always fully populated, and tagged with
  :class:`ReportSource` so callers can tell model output from fallbacks.

All models serialize with the camelCase keys of the stored JSON contract
(``riskLevel``, ``topSpendingCategories``...).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ReportSource(str, Enum):
    """Where a report's content came from."""

    MODEL = "model"
    FALLBACK = "fallback"
    INSUFFICIENT_DATA = "insufficient_data"


class ReportModel(BaseModel):
    """Base for every report payload: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Shared Pieces
# =============================================================================


class CategorySpending(ReportModel):
    category: str
    amount: float
    percentage: float


class AreaScore(ReportModel):
    area: str
    score: float = Field(..., ge=0, le=100)


class DateSpan(ReportModel):
    start: str
    end: str


class Excerpt(ReportModel):
    """A bounded slice of diary or note text."""

    date: str
    kind: str
    text: str
    mood: str | None = None


class EventDigest(ReportModel):
    title: str
    start: str
    end: str


class TaskDigest(ReportModel):
    title: str
    status: str
    due_date: str | None = None


class ExpenseDigest(ReportModel):
    category: str
    amount: float
    date: str


class ReminderDigest(ReportModel):
    title: str
    date_time: str


class NoteDigest(ReportModel):
    title: str
    created_at: str


class LogDigest(ReportModel):
    date: str
    activity: str
    mood: str | None = None
    focus_level: int | None = None
    diary_excerpt: str | None = None


# =============================================================================
# Expense Trends
# =============================================================================


class ExpenseTrendsInput(ReportModel):
    start_date: str
    end_date: str
    day_count: int
    expense_count: int
    total_spending: float
    average_daily_spending: float
    top_spending_categories: list[CategorySpending]


class ExpenseSummaryReply(ReportModel):
    spending_summary: str = Field(..., min_length=1)


class ExpenseTrendsReport(ExpenseSummaryReply):
    total_spending: float = Field(..., ge=0)
    average_daily_spending: float = Field(..., ge=0)
    top_spending_categories: list[CategorySpending]
    source: ReportSource


# =============================================================================
# Sentiment Trends
# =============================================================================


class Sentiment(str, Enum):
    POSITIVE = "Positive"
    NEGATIVE = "Negative"
    NEUTRAL = "Neutral"
    MIXED = "Mixed"


class SentimentInput(ReportModel):
    start_date: str
    end_date: str
    entries: list[Excerpt]


class SentimentReply(ReportModel):
    overall_sentiment: Sentiment
    sentiment_score: float = Field(..., ge=-1, le=1)
    positive_keywords: list[str] = Field(default_factory=list)
    negative_keywords: list[str] = Field(default_factory=list)
    analysis_summary: str = Field(..., min_length=1)


class SentimentReport(SentimentReply):
    entry_count: int = Field(..., ge=0)
    source: ReportSource


# =============================================================================
# Productivity Patterns
# =============================================================================


class ProductivityInput(ReportModel):
    start_date: str
    end_date: str
    calendar_events: list[EventDigest]
    tasks: list[TaskDigest]
    expenses: list[ExpenseDigest]
    reminders: list[ReminderDigest]
    notes: list[NoteDigest]
    daily_logs: list[LogDigest]
    additional_context: str | None = None


class ProductivityReply(ReportModel):
    peak_performance_times: str = Field(..., min_length=1)
    common_distractions_or_obstacles: str = Field(..., min_length=1)
    suggested_strategies: str = Field(..., min_length=1)
    overall_assessment: str = Field(..., min_length=1)


class ProductivityReport(ProductivityReply):
    source: ReportSource


# =============================================================================
# Burnout Risk
# =============================================================================


class RiskLevel(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    VERY_HIGH = "Very High"


class LogSummary(ReportModel):
    total_logs: int
    stressed_anxious_tired_count: int
    positive_mood_count: int


class TaskSummary(ReportModel):
    pending_in_progress_count: int
    overdue_count: int


class EventSummary(ReportModel):
    total_events: int


class BurnoutInput(ReportModel):
    analysis_period_days: int
    log_summary: LogSummary
    task_summary: TaskSummary
    event_summary: EventSummary
    stress_keyword_mentions: dict[str, int] = Field(default_factory=dict)


class BurnoutReply(ReportModel):
    risk_level: RiskLevel
    risk_score: int = Field(..., ge=0, le=100)
    assessment_summary: str = Field(..., min_length=1)
    contributing_factors: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class BurnoutReport(BurnoutReply):
    source: ReportSource


# =============================================================================
# Task Completion
# =============================================================================


class TaskCompletionInput(ReportModel):
    start_date: str
    end_date: str
    total_tasks_considered: int
    completed_tasks: int
    in_progress_tasks: int
    pending_tasks: int
    completion_rate: float
    overdue_tasks: list[str]


class TaskCompletionReply(ReportModel):
    completion_summary: str = Field(..., min_length=1)


class TaskCompletionReport(TaskCompletionReply):
    total_tasks_considered: int = Field(..., ge=0)
    completed_tasks: int = Field(..., ge=0)
    completion_rate: float = Field(..., ge=0, le=100)
    overdue_tasks: list[str]
    source: ReportSource


# =============================================================================
# Life Balance
# =============================================================================


class LifeBalanceInput(ReportModel):
    start_date: str
    end_date: str
    activity_counts: dict[str, int]
    area_scores: list[AreaScore]


class LifeBalanceReply(ReportModel):
    balance_summary: str = Field(..., min_length=1)
    neglected_areas: list[str] = Field(default_factory=list)


class LifeBalanceReport(LifeBalanceReply):
    area_scores: list[AreaScore]
    source: ReportSource


# =============================================================================
# Diary Summary
# =============================================================================


class DiaryFrequency(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class DiarySummaryInput(ReportModel):
    start_date: str
    end_date: str
    frequency: DiaryFrequency
    entries: list[Excerpt]


class DiarySummaryReply(ReportModel):
    summary: str = Field(..., min_length=1)
    key_events: list[str] = Field(default_factory=list)
    emotions: list[str] = Field(default_factory=list)
    reflections: list[str] = Field(default_factory=list)


class DiarySummaryReport(DiarySummaryReply):
    entry_count: int = Field(..., ge=0)
    date_range: DateSpan
    source: ReportSource


# =============================================================================
# Attention Patterns
# =============================================================================


class FocusBuckets(ReportModel):
    """Rated logs per focus band: low is 1-2, moderate is 3, high is 4-5."""

    low: int = Field(0, ge=0)
    moderate: int = Field(0, ge=0)
    high: int = Field(0, ge=0)


class ActivityFocus(ReportModel):
    activity: str
    average_focus_level: float
    log_count: int


class FocusPeriod(ReportModel):
    period_description: str = Field(..., min_length=1)
    avg_focus_level: float = Field(..., ge=1, le=5)
    activities: list[str] = Field(default_factory=list)
    contributing_factors: list[str] = Field(default_factory=list)


class AttentionInput(ReportModel):
    start_date: str
    end_date: str
    rated_log_count: int
    average_focus_level: float
    focus_buckets: FocusBuckets
    baseline_quality_score: int
    activity_focus: list[ActivityFocus]
    daily_logs: list[LogDigest]


class AttentionReply(ReportModel):
    overall_assessment: str = Field(..., min_length=1)
    high_focus_periods: list[FocusPeriod] = Field(default_factory=list)
    low_focus_periods: list[FocusPeriod] = Field(default_factory=list)
    attention_quality_score: int | None = Field(None, ge=0, le=100)
    insights: list[str] = Field(default_factory=list)
    suggestions_for_improvement: list[str] = Field(default_factory=list)


class AttentionReport(AttentionReply):
    attention_quality_score: int = Field(..., ge=0, le=100)
    average_focus_level: float = Field(..., ge=0, le=5)
    focus_buckets: FocusBuckets
    rated_log_count: int = Field(..., ge=0)
    source: ReportSource
