"""Rule-based report fallbacks.

When the model is unavailable, or replies with something that does not
match the expected schema, each report flow builds its result here instead.
Fallbacks work only from the aggregates the flow already computed, apply
simple threshold rules, and always return a fully populated report tagged
``ReportSource.FALLBACK``.

This module also holds the canned "not enough data" reports, tagged
``ReportSource.INSUFFICIENT_DATA``, which flows return without calling the
model at all.

Example:
    >>> analyzer = FallbackAnalyzer()
    >>> report = analyzer.burnout_risk(burnout_input)
    >>> report.risk_level
    <RiskLevel.MODERATE: 'Moderate'>
"""

from __future__ import annotations

import calendar
import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

from eunoia.ai.reports import (
    ActivityFocus,
    AreaScore,
    AttentionInput,
    AttentionReport,
    BurnoutInput,
    BurnoutReport,
    DateSpan,
    DiarySummaryReport,
    ExpenseTrendsInput,
    ExpenseTrendsReport,
    FocusBuckets,
    FocusPeriod,
    LifeBalanceInput,
    LifeBalanceReport,
    ProductivityReport,
    ReportSource,
    RiskLevel,
    Sentiment,
    SentimentReport,
    TaskCompletionInput,
    TaskCompletionReport,
)
from eunoia.analysis.keywords import (
    LIFE_AREAS,
    NEGATIVE_KEYWORDS,
    POSITIVE_KEYWORDS,
    MoodCounts,
    count_keywords,
    matched_keywords,
)
from eunoia.core.models import LogEntry

logger = logging.getLogger(__name__)


# =============================================================================
# Canned Texts
# =============================================================================


NO_EXPENSES_SUMMARY = "No expenses recorded for this period."
NO_ENTRIES_SUMMARY = "No diary entries or notes were found for this period, so no sentiment analysis was performed."
NO_DIARY_SUMMARY = "No diary entries were found for this period."
NO_TASKS_SUMMARY = "No tasks were due in this period."
NO_BALANCE_SUMMARY = (
    "Not enough categorized activity in this period to assess life balance. "
    "Log activities, tasks and events to see how your time is spread."
)
INSUFFICIENT_PRODUCTIVITY = "Insufficient data to analyze productivity patterns for this period."
NO_FOCUS_SUMMARY = (
    "No logs with focus levels were found for this period. "
    "Please log your focus (1-5) with activities to get an analysis."
)


@dataclass
class FallbackConfig:
    """Thresholds for the rule-based fallbacks.

    Attributes:
        moderate_overdue: Overdue tasks above this mean at least Moderate risk.
        high_overdue: Overdue tasks above this mean High risk.
        moderate_ratio: Negative-mood share above this means at least Moderate risk.
        high_ratio: Negative-mood share above this means High risk.
        mixed_band: Sentiment scores within +/- this band are Mixed or Neutral.
        neglect_threshold: Life areas scoring below this are neglected.
        high_focus: Activities averaging at least this focus are high-focus periods.
        low_focus: Activities averaging at most this focus are low-focus periods.
        max_listed: Cap on keyword/event lists in fallback reports.
    """

    moderate_overdue: int = 5
    high_overdue: int = 10
    moderate_ratio: float = 1 / 3
    high_ratio: float = 2 / 3
    mixed_band: float = 0.3
    neglect_threshold: float = 10.0
    high_focus: float = 4.0
    low_focus: float = 2.0
    max_listed: int = 5


# =============================================================================
# Insufficient-Data Reports
# =============================================================================


def insufficient_expense_report() -> ExpenseTrendsReport:
    return ExpenseTrendsReport(
        total_spending=0.0,
        average_daily_spending=0.0,
        top_spending_categories=[],
        spending_summary=NO_EXPENSES_SUMMARY,
        source=ReportSource.INSUFFICIENT_DATA,
    )


def insufficient_sentiment_report() -> SentimentReport:
    return SentimentReport(
        overall_sentiment=Sentiment.NEUTRAL,
        sentiment_score=0.0,
        positive_keywords=[],
        negative_keywords=[],
        analysis_summary=NO_ENTRIES_SUMMARY,
        entry_count=0,
        source=ReportSource.INSUFFICIENT_DATA,
    )


def insufficient_productivity_report() -> ProductivityReport:
    return ProductivityReport(
        peak_performance_times=INSUFFICIENT_PRODUCTIVITY,
        common_distractions_or_obstacles=INSUFFICIENT_PRODUCTIVITY,
        suggested_strategies="Log tasks, events and daily activities for a few days to see your patterns.",
        overall_assessment=INSUFFICIENT_PRODUCTIVITY,
        source=ReportSource.INSUFFICIENT_DATA,
    )


def insufficient_burnout_report(period_days: int) -> BurnoutReport:
    return BurnoutReport(
        risk_level=RiskLevel.LOW,
        risk_score=10,
        assessment_summary=(
            f"Insufficient recent data over the past {period_days} days to provide a detailed "
            "burnout risk assessment. Risk assessed as Low by default."
        ),
        contributing_factors=["Lack of recent activity data."],
        recommendations=[
            "Continue logging activities and moods for a better assessment.",
            "Check in with how you're feeling regularly.",
        ],
        source=ReportSource.INSUFFICIENT_DATA,
    )


def insufficient_task_completion_report() -> TaskCompletionReport:
    return TaskCompletionReport(
        total_tasks_considered=0,
        completed_tasks=0,
        completion_rate=0.0,
        overdue_tasks=[],
        completion_summary=NO_TASKS_SUMMARY,
        source=ReportSource.INSUFFICIENT_DATA,
    )


def insufficient_life_balance_report() -> LifeBalanceReport:
    return LifeBalanceReport(
        area_scores=[AreaScore(area=area, score=0.0) for area in LIFE_AREAS],
        balance_summary=NO_BALANCE_SUMMARY,
        neglected_areas=list(LIFE_AREAS),
        source=ReportSource.INSUFFICIENT_DATA,
    )


def insufficient_diary_report(date_range: DateSpan) -> DiarySummaryReport:
    return DiarySummaryReport(
        summary=NO_DIARY_SUMMARY,
        key_events=[],
        emotions=[],
        reflections=[],
        entry_count=0,
        date_range=date_range,
        source=ReportSource.INSUFFICIENT_DATA,
    )


def insufficient_attention_report() -> AttentionReport:
    return AttentionReport(
        overall_assessment=NO_FOCUS_SUMMARY,
        high_focus_periods=[],
        low_focus_periods=[],
        attention_quality_score=0,
        insights=["Log focus levels to understand your attention patterns better."],
        suggestions_for_improvement=["Start by logging your focus level for different activities throughout the day."],
        average_focus_level=0.0,
        focus_buckets=FocusBuckets(),
        rated_log_count=0,
        source=ReportSource.INSUFFICIENT_DATA,
    )


# =============================================================================
# Fallback Analyzer
# =============================================================================


class FallbackAnalyzer:
    """Builds reports from aggregates with fixed threshold rules.

    Args:
        config: Threshold configuration. Uses defaults if None.
    """

    def __init__(self, config: FallbackConfig | None = None) -> None:
        self.config = config or FallbackConfig()

    def expense_trends(self, payload: ExpenseTrendsInput) -> ExpenseTrendsReport:
        summary = (
            f"You spent {payload.total_spending:.2f} across {payload.expense_count} expense(s) "
            f"over {payload.day_count} day(s), about {payload.average_daily_spending:.2f} per day."
        )
        if payload.top_spending_categories:
            top = payload.top_spending_categories[0]
            summary += f" {top.category} was the largest category at {top.percentage:.1f}% of spending."
        return ExpenseTrendsReport(
            total_spending=payload.total_spending,
            average_daily_spending=payload.average_daily_spending,
            top_spending_categories=payload.top_spending_categories,
            spending_summary=summary,
            source=ReportSource.FALLBACK,
        )

    def sentiment_trends(self, texts: Sequence[str], moods: MoodCounts, entry_count: int) -> SentimentReport:
        """Score polarity as ``(positive - negative) / (positive + negative)``.

        Signals are keyword mentions in the texts plus logged moods.
        """
        positive = sum(count_keywords(texts, POSITIVE_KEYWORDS).values()) + moods.positive
        negative = sum(count_keywords(texts, NEGATIVE_KEYWORDS).values()) + moods.negative
        score = round((positive - negative) / (positive + negative), 2) if positive + negative else 0.0

        band = self.config.mixed_band
        if score >= band:
            sentiment = Sentiment.POSITIVE
        elif score <= -band:
            sentiment = Sentiment.NEGATIVE
        elif positive and negative:
            sentiment = Sentiment.MIXED
        else:
            sentiment = Sentiment.NEUTRAL

        return SentimentReport(
            overall_sentiment=sentiment,
            sentiment_score=score,
            positive_keywords=matched_keywords(texts, POSITIVE_KEYWORDS, self.config.max_listed),
            negative_keywords=matched_keywords(texts, NEGATIVE_KEYWORDS, self.config.max_listed),
            analysis_summary=(
                f"Across {entry_count} entries there were {positive} positive and {negative} negative "
                f"signals in wording and logged moods, so the overall tone reads as {sentiment.value.lower()}."
            ),
            entry_count=entry_count,
            source=ReportSource.FALLBACK,
        )

    def productivity_patterns(
        self,
        weekdays: Sequence[int],
        overdue_count: int,
        distraction_counts: Counter[str],
    ) -> ProductivityReport:
        """Peak days from activity weekdays (0 = Monday), obstacles from overdue and distraction counts."""
        by_day = Counter(weekdays).most_common(2)
        peak_days = [calendar.day_name[day] for day, _ in by_day]
        if peak_days:
            peak = f"Most activity was recorded on {' and '.join(peak_days)}."
        else:
            peak = "Not enough dated activity to identify peak times."

        obstacles: list[str] = []
        strategies: list[str] = []
        if overdue_count:
            obstacles.append(f"{overdue_count} overdue task(s)")
            strategies.append("Break overdue tasks into smaller steps and schedule them.")
        distractions = [k for k, _ in distraction_counts.most_common(self.config.max_listed)]
        if distractions:
            obstacles.append(f"diary mentions of {', '.join(distractions)}")
            strategies.append("Block out focused work time and silence notifications during it.")
        if peak_days:
            strategies.append(f"Plan demanding work for {peak_days[0]}s.")
        if not strategies:
            strategies.append("Keep logging daily activities to reveal clearer patterns.")

        obstacle_text = (
            f"Recurring obstacles: {'; '.join(obstacles)}."
            if obstacles
            else "No recurring obstacles stood out in the recorded data."
        )
        assessment = f"{len(weekdays)} dated activities were recorded in this period."
        if obstacles:
            assessment += " Addressing the obstacles above is the main opportunity for improvement."
        return ProductivityReport(
            peak_performance_times=peak,
            common_distractions_or_obstacles=obstacle_text,
            suggested_strategies=" ".join(strategies),
            overall_assessment=assessment,
            source=ReportSource.FALLBACK,
        )

    def burnout_risk(self, payload: BurnoutInput) -> BurnoutReport:
        """High if overdue > 10 or negative-mood ratio > 2/3; Moderate if > 5 or > 1/3; else Low."""
        cfg = self.config
        logs = payload.log_summary
        overdue = payload.task_summary.overdue_count
        negative_ratio = logs.stressed_anxious_tired_count / logs.total_logs if logs.total_logs else 0.0

        if overdue > cfg.high_overdue or negative_ratio > cfg.high_ratio:
            level, score = RiskLevel.HIGH, 65
        elif overdue > cfg.moderate_overdue or negative_ratio > cfg.moderate_ratio:
            level, score = RiskLevel.MODERATE, 40
        else:
            level, score = RiskLevel.LOW, 15

        factors: list[str] = []
        if overdue:
            factors.append(f"{overdue} overdue task(s)")
        if logs.stressed_anxious_tired_count:
            factors.append(
                f"{logs.stressed_anxious_tired_count} of {logs.total_logs} daily logs recorded stress, anxiety or tiredness"
            )
        if payload.task_summary.pending_in_progress_count >= cfg.high_overdue:
            factors.append(f"{payload.task_summary.pending_in_progress_count} open tasks")
        if payload.stress_keyword_mentions:
            mentioned = sorted(payload.stress_keyword_mentions, key=payload.stress_keyword_mentions.get, reverse=True)
            factors.append(f"Diary mentions of {', '.join(mentioned[: cfg.max_listed])}")
        if not factors:
            factors.append("No strong risk signals in the recorded data.")

        if level == RiskLevel.LOW:
            recommendations = [
                "Keep up your current routines.",
                "Continue logging moods to spot changes early.",
            ]
        else:
            recommendations = [
                "Prioritize overdue tasks and defer what can wait.",
                "Schedule short breaks during busy days.",
                "Make time for rest and an activity you enjoy.",
            ]

        return BurnoutReport(
            risk_level=level,
            risk_score=score,
            assessment_summary=(
                f"Over the past {payload.analysis_period_days} days, {overdue} task(s) were overdue and "
                f"{negative_ratio:.0%} of daily logs recorded a negative mood. "
                f"Based on these counts the estimated risk is {level.value}."
            ),
            contributing_factors=factors,
            recommendations=recommendations,
            source=ReportSource.FALLBACK,
        )

    def task_completion(self, payload: TaskCompletionInput) -> TaskCompletionReport:
        summary = (
            f"You completed {payload.completed_tasks} of {payload.total_tasks_considered} task(s) "
            f"due in this period ({payload.completion_rate:.1f}%)."
        )
        if payload.overdue_tasks:
            summary += f" {len(payload.overdue_tasks)} task(s) are overdue."
        else:
            summary += " Nothing is overdue."
        return TaskCompletionReport(
            total_tasks_considered=payload.total_tasks_considered,
            completed_tasks=payload.completed_tasks,
            completion_rate=payload.completion_rate,
            overdue_tasks=payload.overdue_tasks,
            completion_summary=summary,
            source=ReportSource.FALLBACK,
        )

    def life_balance(self, payload: LifeBalanceInput) -> LifeBalanceReport:
        neglected = [s.area for s in payload.area_scores if s.score < self.config.neglect_threshold]
        top = max(payload.area_scores, key=lambda s: s.score)
        summary = f"Most recorded activity was about {top.area} ({top.score:.0f}%)."
        if neglected:
            summary += f" {len(neglected)} area(s) received little attention."
        return LifeBalanceReport(
            area_scores=payload.area_scores,
            balance_summary=summary,
            neglected_areas=neglected,
            source=ReportSource.FALLBACK,
        )

    def diary_summary(self, logs: Sequence[LogEntry], date_range: DateSpan) -> DiarySummaryReport:
        """Key events from activities, emotions from logged moods."""
        limit = self.config.max_listed
        key_events = list(dict.fromkeys(log.activity for log in logs if log.activity))[:limit]
        mood_counts = Counter(log.mood.label for log in logs if log.mood)
        emotions = [label for label, _ in mood_counts.most_common(limit)]

        summary = f"{len(logs)} diary entries were written between {date_range.start} and {date_range.end}."
        if emotions:
            summary += f" The most common mood was {emotions[0]}."

        texts = [log.diary_entry or "" for log in logs]
        themes = matched_keywords(texts, (*POSITIVE_KEYWORDS, *NEGATIVE_KEYWORDS), limit)
        reflections = [f"Recurring words: {', '.join(themes)}."] if themes else []

        return DiarySummaryReport(
            summary=summary,
            key_events=key_events,
            emotions=emotions,
            reflections=reflections,
            entry_count=len(logs),
            date_range=date_range,
            source=ReportSource.FALLBACK,
        )

    def attention_patterns(self, payload: AttentionInput) -> AttentionReport:
        """High/low focus periods from per-activity averages; score is the average scaled to 0-100."""
        cfg = self.config

        def period(row: ActivityFocus) -> FocusPeriod:
            return FocusPeriod(
                period_description=f"{row.activity} ({row.log_count} rated log(s))",
                avg_focus_level=row.average_focus_level,
                activities=[row.activity],
            )

        high = [period(r) for r in payload.activity_focus if r.average_focus_level >= cfg.high_focus]
        low = [period(r) for r in reversed(payload.activity_focus) if r.average_focus_level <= cfg.low_focus]
        high, low = high[: cfg.max_listed], low[: cfg.max_listed]

        average = payload.average_focus_level
        if average >= cfg.high_focus:
            level = "generally high"
        elif average >= 3:
            level = "moderate"
        else:
            level = "generally low"
        buckets = payload.focus_buckets
        assessment = (
            f"Across {payload.rated_log_count} rated log(s) your average focus was {average:.1f} out of 5, "
            f"which is {level}. {buckets.high} log(s) were rated high (4-5) and {buckets.low} low (1-2)."
        )

        insights: list[str] = []
        if high:
            insights.append(f"Focus was highest during {high[0].activities[0]}.")
        if low:
            insights.append(f"Focus was lowest during {low[0].activities[0]}.")
        if buckets.high and buckets.low:
            insights.append("Focus varied noticeably between activities.")

        suggestions: list[str] = []
        if low:
            suggestions.append(
                f"Try shorter, time-boxed sessions for {low[0].activities[0]} and remove distractions first."
            )
        if high:
            suggestions.append(f"Protect time for {high[0].activities[0]}, where your focus is strongest.")
        if average < 3:
            suggestions.append("Plan short breaks between work blocks and silence notifications during them.")
        if not suggestions:
            suggestions.append("Keep logging focus levels to reveal clearer patterns.")

        return AttentionReport(
            overall_assessment=assessment,
            high_focus_periods=high,
            low_focus_periods=low,
            attention_quality_score=payload.baseline_quality_score,
            insights=insights,
            suggestions_for_improvement=suggestions,
            average_focus_level=average,
            focus_buckets=payload.focus_buckets,
            rated_log_count=payload.rated_log_count,
            source=ReportSource.FALLBACK,
        )
