"""Prompt templates for the 4Eunoia report flows.

This module is the SINGLE SOURCE of every prompt sent to the model. Each
report feature has:

- a registered :class:`PromptTemplate` (system instruction, user prompt with
  ``$placeholders``, expected output schema)
- a ``build_*_request`` function turning the feature's structured input into
  a :class:`CompletionRequest`

Records never go into a prompt as-is. The ``serialize_*`` helpers below
reduce them to short digests, capped in count, with free text truncated.

Example:
    >>> payload = BurnoutInput(analysis_period_days=14, ...)
    >>> request = build_burnout_risk_request(payload)
    >>> reply = gateway.complete(request)
"""

from __future__ import annotations

import json
import textwrap
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from string import Template
from typing import Any

from pydantic import BaseModel

from eunoia.ai.gateway import CompletionRequest
from eunoia.ai.reports import (
    AttentionInput,
    AttentionReply,
    BurnoutInput,
    BurnoutReply,
    DiarySummaryInput,
    DiarySummaryReply,
    EventDigest,
    Excerpt,
    ExpenseDigest,
    ExpenseSummaryReply,
    ExpenseTrendsInput,
    LifeBalanceInput,
    LifeBalanceReply,
    LogDigest,
    NoteDigest,
    ProductivityInput,
    ProductivityReply,
    ReminderDigest,
    SentimentInput,
    SentimentReply,
    TaskCompletionInput,
    TaskCompletionReply,
    TaskDigest,
)
from eunoia.core.models import CalendarEvent, Expense, LogEntry, Note, Reminder, Task


# =============================================================================
# Data Structures
# =============================================================================


@dataclass
class PromptTemplate:
    """Metadata and content for a prompt template.

    Attributes:
        id: Unique identifier (e.g., "burnout_risk_v1").
        version: Version string for tracking wording changes.
        system_instruction: Role and behavior instructions for the model.
        user_prompt_template: User prompt with ``$placeholder`` variables.
        output_schema: Expected JSON shape, shown to the model.
        required_variables: Variables that MUST be provided to ``render``.
        description: Human-readable purpose of the prompt.
    """

    id: str
    version: str
    system_instruction: str
    user_prompt_template: str
    output_schema: dict[str, Any] | None = None
    required_variables: set[str] = field(default_factory=set)
    description: str = ""

    def render(self, **variables: Any) -> tuple[str, str]:
        """Render the template.

        Returns:
            Tuple of (system_instruction, rendered_user_prompt).

        Raises:
            ValueError: If required variables are missing.
        """
        missing = self.validate_variables(variables)
        if missing:
            raise ValueError(f"Missing required variables for prompt '{self.id}': {missing}")
        rendered = Template(self.user_prompt_template).safe_substitute(variables)
        return self.system_instruction, rendered

    def validate_variables(self, variables: dict[str, Any]) -> list[str]:
        """List the required variables absent from ``variables``."""
        return sorted(self.required_variables - set(variables))


# =============================================================================
# System Instructions
# =============================================================================


WELLBEING_ASSISTANT_SYSTEM: str = textwrap.dedent(
    """
    You are a supportive personal productivity and wellbeing assistant.
    You help one person understand patterns in their own tasks, calendar,
    spending, moods and diary.

    Guidelines:
    - Base every observation on the data provided; do not invent events
    - Quote figures exactly as given; never recompute totals
    - Be concise, warm and practical
    - Give actionable suggestions, not diagnoses
    - Treat diary excerpts as private and do not repeat them verbatim
"""
).strip()


FINANCE_ASSISTANT_SYSTEM: str = textwrap.dedent(
    """
    You are a personal finance assistant. You describe spending patterns
    clearly and without judgement, using only the figures provided.
"""
).strip()


# =============================================================================
# Output Schemas
# =============================================================================


EXPENSE_TRENDS_SCHEMA: dict[str, Any] = {
    "spendingSummary": "string - 2-3 sentences on key spending trends and notable patterns",
}

SENTIMENT_TRENDS_SCHEMA: dict[str, Any] = {
    "overallSentiment": "Positive | Negative | Neutral | Mixed",
    "sentimentScore": "number between -1.0 (very negative) and 1.0 (very positive)",
    "positiveKeywords": ["string - up to 5 words or themes linked to positive feelings"],
    "negativeKeywords": ["string - up to 5 words or themes linked to negative feelings"],
    "analysisSummary": "string - 2-3 sentences on emotional trends over the period",
}

PRODUCTIVITY_PATTERNS_SCHEMA: dict[str, Any] = {
    "peakPerformanceTimes": "string - times or days the user appears most productive",
    "commonDistractionsOrObstacles": "string - recurring challenges",
    "suggestedStrategies": "string - 2-3 actionable strategies",
    "overallAssessment": "string - 1-2 sentences on strengths and areas to improve",
}

BURNOUT_RISK_SCHEMA: dict[str, Any] = {
    "riskLevel": "Low | Moderate | High | Very High",
    "riskScore": "integer 0-100",
    "assessmentSummary": "string - 2-3 sentences explaining the risk level",
    "contributingFactors": ["string - key factors observed in the data"],
    "recommendations": ["string - 2-3 actionable recommendations"],
}

TASK_COMPLETION_SCHEMA: dict[str, Any] = {
    "completionSummary": "string - 2-3 sentences on completion performance and overdue work",
}

LIFE_BALANCE_SCHEMA: dict[str, Any] = {
    "balanceSummary": "string - 2-3 sentences on how time is spread across life areas",
    "neglectedAreas": ["string - life areas that received little attention"],
}

DIARY_SUMMARY_SCHEMA: dict[str, Any] = {
    "summary": "string - a short narrative of the period",
    "keyEvents": ["string - notable events or activities"],
    "emotions": ["string - dominant emotions"],
    "reflections": ["string - insights or lessons the writer noted"],
}

ATTENTION_PATTERNS_SCHEMA: dict[str, Any] = {
    "overallAssessment": "string - 2-3 sentences on how consistent or variable focus was",
    "highFocusPeriods": [
        {
            "periodDescription": "string - kind of activity or time where focus is high (4-5)",
            "avgFocusLevel": "number 1-5, taken from the figures provided",
            "activities": ["string"],
            "contributingFactors": ["string - moods or diary context linked to this focus"],
        }
    ],
    "lowFocusPeriods": ["same shape as highFocusPeriods, for focus 1-2"],
    "attentionQualityScore": "integer 0-100, or omit when data is too sparse",
    "insights": ["string - 1-3 patterns observed"],
    "suggestionsForImprovement": ["string - 2-3 actionable suggestions"],
}


# =============================================================================
# Prompt Templates
# =============================================================================


EXPENSE_TRENDS_PROMPT = PromptTemplate(
    id="expense_trends_v1",
    version="1.0.0",
    description="Summarize spending over a period from locally computed totals.",
    system_instruction=FINANCE_ASSISTANT_SYSTEM,
    user_prompt_template=textwrap.dedent(
        """
        Analyze the user's expenses between $start_date and $end_date.

        ## Spending Figures (already computed)
        $input_json

        ## Task
        Write a brief spending summary (2-3 sentences) highlighting the key
        trends: which categories dominate, how the daily average looks, and
        anything notable about the distribution.

        Generate the output in the specified JSON format.
    """
    ).strip(),
    output_schema=EXPENSE_TRENDS_SCHEMA,
    required_variables={"start_date", "end_date", "input_json"},
)


SENTIMENT_TRENDS_PROMPT = PromptTemplate(
    id="sentiment_trends_v1",
    version="1.0.0",
    description="Assess emotional tone across diary entries and notes.",
    system_instruction=WELLBEING_ASSISTANT_SYSTEM,
    user_prompt_template=textwrap.dedent(
        """
        Analyze the sentiment of the user's diary entries and notes between
        $start_date and $end_date. There are $entry_count entries, in
        chronological order; long entries are truncated.

        ## Entries
        $input_json

        ## Task
        1. Determine the overall sentiment (Positive, Negative, Neutral, Mixed).
        2. Give a sentiment score from -1.0 (very negative) to 1.0 (very positive).
        3. List up to 5 keywords or themes associated with positive feelings.
        4. List up to 5 keywords or themes associated with negative feelings.
        5. Summarize the emotional trends in 2-3 sentences.

        Generate the output in the specified JSON format.
    """
    ).strip(),
    output_schema=SENTIMENT_TRENDS_SCHEMA,
    required_variables={"start_date", "end_date", "entry_count", "input_json"},
)


PRODUCTIVITY_PATTERNS_PROMPT = PromptTemplate(
    id="productivity_patterns_v1",
    version="1.0.0",
    description="Find productivity peaks, obstacles and strategies across all record kinds.",
    system_instruction=WELLBEING_ASSISTANT_SYSTEM,
    user_prompt_template=textwrap.dedent(
        """
        Analyze the user's productivity patterns for the period $start_date
        to $end_date.

        ## Data Summaries
        $input_json

        ## Task
        1. Peak Performance Times: identify times or days the user appears
           most productive (frequent logs, task completions, focused blocks).
        2. Common Distractions/Obstacles: identify recurring challenges
           (procrastination in the diary, overdue tasks, scattered calendar).
        3. Suggested Strategies: suggest 2-3 actionable strategies.
        4. Overall Assessment: 1-2 sentences on strengths and areas for
           improvement.

        Connect observations across data sources where possible, for example
        diary entries about feeling overwhelmed and overdue tasks.

        Generate the output in the specified JSON format.
    """
    ).strip(),
    output_schema=PRODUCTIVITY_PATTERNS_SCHEMA,
    required_variables={"start_date", "end_date", "input_json"},
)


BURNOUT_RISK_PROMPT = PromptTemplate(
    id="burnout_risk_v1",
    version="1.0.0",
    description="Estimate burnout risk from mood, task load and calendar counts.",
    system_instruction=WELLBEING_ASSISTANT_SYSTEM,
    user_prompt_template=textwrap.dedent(
        """
        Help the user understand their risk of burnout based on recent
        activity over the past $analysis_period_days days.

        ## Data Summary
        $input_json

        ## Task
        1. Estimate the Risk Level (Low, Moderate, High, Very High). Treat
           many negative mood logs, a heavy or overdue task load and a busy
           calendar as signs of higher risk, balanced against positive moods.
        2. Assign a Risk Score (0-100) matching the level
           (Low: 0-25, Moderate: 26-50, High: 51-75, Very High: 76-100).
        3. Write a brief Assessment Summary (2-3 sentences) explaining why.
        4. List the key Contributing Factors seen in the data.
        5. Provide 2-3 actionable Recommendations.

        Be cautious and provide actionable advice.
        Generate the output in the specified JSON format.
    """
    ).strip(),
    output_schema=BURNOUT_RISK_SCHEMA,
    required_variables={"analysis_period_days", "input_json"},
)


TASK_COMPLETION_PROMPT = PromptTemplate(
    id="task_completion_v1",
    version="1.0.0",
    description="Comment on task completion figures for a period.",
    system_instruction=WELLBEING_ASSISTANT_SYSTEM,
    user_prompt_template=textwrap.dedent(
        """
        Review the user's task completion for tasks due between $start_date
        and $end_date.

        ## Completion Figures (already computed)
        $input_json

        ## Task
        Write a 2-3 sentence summary of completion performance. Mention the
        completion rate and any overdue tasks, and suggest one improvement.

        Generate the output in the specified JSON format.
    """
    ).strip(),
    output_schema=TASK_COMPLETION_SCHEMA,
    required_variables={"start_date", "end_date", "input_json"},
)


LIFE_BALANCE_PROMPT = PromptTemplate(
    id="life_balance_v1",
    version="1.0.0",
    description="Assess how activity is spread across life areas.",
    system_instruction=WELLBEING_ASSISTANT_SYSTEM,
    user_prompt_template=textwrap.dedent(
        """
        Assess the user's life balance between $start_date and $end_date.
        Activities were grouped into life areas by keyword; the scores are
        each area's share (0-100) of all categorized activity.

        ## Life Area Figures
        $input_json

        ## Task
        1. Summarize in 2-3 sentences how attention is spread across areas.
        2. List the areas that appear neglected.

        Generate the output in the specified JSON format.
    """
    ).strip(),
    output_schema=LIFE_BALANCE_SCHEMA,
    required_variables={"start_date", "end_date", "input_json"},
)


DIARY_SUMMARY_PROMPT = PromptTemplate(
    id="diary_summary_v1",
    version="1.0.0",
    description="Summarize a week or month of diary entries.",
    system_instruction=WELLBEING_ASSISTANT_SYSTEM,
    user_prompt_template=textwrap.dedent(
        """
        Summarize the user's diary entries for this $frequency period,
        $start_date to $end_date. Entries are chronological and truncated.

        ## Entries
        $input_json

        ## Task
        1. Write a short summary of the period.
        2. List the key events or activities.
        3. List the dominant emotions.
        4. List any reflections or lessons the writer noted.

        Generate the output in the specified JSON format.
    """
    ).strip(),
    output_schema=DIARY_SUMMARY_SCHEMA,
    required_variables={"frequency", "start_date", "end_date", "input_json"},
)


ATTENTION_PATTERNS_PROMPT = PromptTemplate(
    id="attention_patterns_v1",
    version="1.0.0",
    description="Describe attention patterns from logged focus levels.",
    system_instruction=WELLBEING_ASSISTANT_SYSTEM,
    user_prompt_template=textwrap.dedent(
        """
        Analyze the user's reported focus levels from their daily logs between
        $start_date and $end_date. Focus is rated 1 (distracted) to 5 (flow
        state). Only logs with a focus level are included.

        ## Focus Figures (already computed)
        $input_json

        ## Task
        1. Overall Assessment: 2-3 sentences on whether focus was consistent
           or variable, and any general trend.
        2. High Focus Periods: up to 3 kinds of activity or times of day where
           focus is consistently 4 or 5, with their average focus and any
           contributing moods or diary context.
        3. Low Focus Periods: the same for focus consistently 1 or 2.
        4. Attention Quality Score: 0-100 from the average and its
           consistency. baselineQualityScore is the average scaled to 0-100.
        5. Insights: 1-3 patterns, for example moods that go with low focus.
        6. Suggestions: 2-3 specific ways to improve focus or manage
           low-attention periods.

        If few logs are rated, say so in the assessment and keep advice general.
        Generate the output in the specified JSON format.
    """
    ).strip(),
    output_schema=ATTENTION_PATTERNS_SCHEMA,
    required_variables={"start_date", "end_date", "input_json"},
)


# =============================================================================
# Registry
# =============================================================================


PROMPT_REGISTRY: dict[str, PromptTemplate] = {}


def register_prompt(template: PromptTemplate) -> None:
    """Register a prompt template in the global registry.

    Raises:
        ValueError: If a prompt with the same ID is already registered.
    """
    if template.id in PROMPT_REGISTRY:
        raise ValueError(f"Prompt '{template.id}' is already registered")
    PROMPT_REGISTRY[template.id] = template


def get_prompt(prompt_id: str) -> PromptTemplate:
    """Retrieve a prompt template by ID.

    Raises:
        KeyError: If no prompt with the given ID exists.
    """
    if prompt_id not in PROMPT_REGISTRY:
        available = ", ".join(sorted(PROMPT_REGISTRY.keys()))
        raise KeyError(f"Prompt '{prompt_id}' not found. Available prompts: {available}")
    return PROMPT_REGISTRY[prompt_id]


def list_prompts() -> list[PromptTemplate]:
    return sorted(PROMPT_REGISTRY.values(), key=lambda t: t.id)


def _register_builtin_prompts() -> None:
    for template in [
        EXPENSE_TRENDS_PROMPT,
        SENTIMENT_TRENDS_PROMPT,
        PRODUCTIVITY_PATTERNS_PROMPT,
        BURNOUT_RISK_PROMPT,
        TASK_COMPLETION_PROMPT,
        LIFE_BALANCE_PROMPT,
        DIARY_SUMMARY_PROMPT,
        ATTENTION_PATTERNS_PROMPT,
    ]:
        register_prompt(template)


_register_builtin_prompts()


# =============================================================================
# Helper Functions
# =============================================================================


def render_output_schema(schema: dict[str, Any]) -> str:
    """Convert a schema dict to a pretty JSON string for the prompt."""
    return json.dumps(schema, indent=2, ensure_ascii=False)


def render_input(payload: BaseModel) -> str:
    """Serialize a structured input model as camelCase JSON."""
    return payload.model_dump_json(by_alias=True, exclude_none=True, indent=2)


def truncate_text(text: str | None, max_chars: int) -> str:
    """Collapse whitespace and cut ``text`` to ``max_chars`` (ellipsis included)."""
    if not text:
        return ""
    flat = " ".join(text.split())
    if len(flat) <= max_chars:
        return flat
    return flat[: max(0, max_chars - 3)].rstrip() + "..."


def format_day(moment: datetime) -> str:
    return moment.date().isoformat()


def _latest(items: Sequence[Any], limit: int) -> Sequence[Any]:
    # Keep the last ``limit`` items of a chronological sequence
    return items[-limit:] if limit > 0 else []


def serialize_excerpts(
    logs: Iterable[LogEntry],
    notes: Iterable[Note] = (),
    max_entries: int = 40,
    max_chars: int = 400,
) -> list[Excerpt]:
    """Diary entries and note bodies as chronological, truncated excerpts.

    Logs without a diary entry and empty notes are skipped. When there are
    more than ``max_entries``, the most recent ones are kept.
    """
    dated: list[tuple[datetime, Excerpt]] = []
    for log in logs:
        if log.diary_entry and log.diary_entry.strip():
            dated.append(
                (
                    log.date,
                    Excerpt(
                        date=format_day(log.date),
                        kind="diary",
                        text=truncate_text(log.diary_entry, max_chars),
                        mood=log.mood.label if log.mood else None,
                    ),
                )
            )
    for note in notes:
        body = f"{note.title}: {note.content}" if note.content else note.title
        if body.strip():
            dated.append(
                (note.created_at, Excerpt(date=format_day(note.created_at), kind="note", text=truncate_text(body, max_chars)))
            )
    dated.sort(key=lambda pair: pair[0])
    return [excerpt for _, excerpt in _latest(dated, max_entries)]


def serialize_events(events: Iterable[CalendarEvent], max_entries: int = 40) -> list[EventDigest]:
    ordered = sorted(events, key=lambda e: e.start)
    return [
        EventDigest(title=truncate_text(e.title, 80), start=e.start.isoformat(), end=e.end.isoformat())
        for e in _latest(ordered, max_entries)
    ]


def serialize_tasks(tasks: Iterable[Task], max_entries: int = 40) -> list[TaskDigest]:
    return [
        TaskDigest(
            title=truncate_text(t.title, 80),
            status=t.status.value,
            due_date=t.due_date.isoformat() if t.due_date else None,
        )
        for t in list(tasks)[:max_entries]
    ]


def serialize_expenses(expenses: Iterable[Expense], max_entries: int = 40) -> list[ExpenseDigest]:
    ordered = sorted(expenses, key=lambda e: e.date)
    return [
        ExpenseDigest(category=e.category, amount=round(e.amount, 2), date=format_day(e.date))
        for e in _latest(ordered, max_entries)
    ]


def serialize_reminders(reminders: Iterable[Reminder], max_entries: int = 40) -> list[ReminderDigest]:
    ordered = sorted(reminders, key=lambda r: r.date_time)
    return [
        ReminderDigest(title=truncate_text(r.title, 80), date_time=r.date_time.isoformat())
        for r in _latest(ordered, max_entries)
    ]


def serialize_notes(notes: Iterable[Note], max_entries: int = 40) -> list[NoteDigest]:
    ordered = sorted(notes, key=lambda n: n.created_at)
    return [
        NoteDigest(title=truncate_text(n.title, 80), created_at=n.created_at.isoformat())
        for n in _latest(ordered, max_entries)
    ]


def serialize_logs(logs: Iterable[LogEntry], max_entries: int = 40, max_chars: int = 400) -> list[LogDigest]:
    ordered = sorted(logs, key=lambda log: log.date)
    return [
        LogDigest(
            date=log.date.isoformat(),
            activity=truncate_text(log.activity, 120),
            mood=log.mood.label if log.mood else None,
            focus_level=log.focus_level,
            diary_excerpt=truncate_text(log.diary_entry, max_chars) or None,
        )
        for log in _latest(ordered, max_entries)
    ]


# =============================================================================
# Request Builders
# =============================================================================


def _build_request(
    prompt_id: str,
    payload: BaseModel,
    output_model: type[BaseModel],
    **variables: Any,
) -> CompletionRequest:
    template = get_prompt(prompt_id)
    system, prompt = template.render(input_json=render_input(payload), **variables)
    return CompletionRequest(
        prompt_id=template.id,
        system_instruction=system,
        prompt=prompt,
        output_model=output_model,
        schema_hint=render_output_schema(template.output_schema) if template.output_schema else None,
    )


def build_expense_trends_request(payload: ExpenseTrendsInput) -> CompletionRequest:
    return _build_request(
        EXPENSE_TRENDS_PROMPT.id,
        payload,
        ExpenseSummaryReply,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )


def build_sentiment_trends_request(payload: SentimentInput) -> CompletionRequest:
    return _build_request(
        SENTIMENT_TRENDS_PROMPT.id,
        payload,
        SentimentReply,
        start_date=payload.start_date,
        end_date=payload.end_date,
        entry_count=len(payload.entries),
    )


def build_productivity_patterns_request(payload: ProductivityInput) -> CompletionRequest:
    return _build_request(
        PRODUCTIVITY_PATTERNS_PROMPT.id,
        payload,
        ProductivityReply,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )


def build_burnout_risk_request(payload: BurnoutInput) -> CompletionRequest:
    return _build_request(
        BURNOUT_RISK_PROMPT.id,
        payload,
        BurnoutReply,
        analysis_period_days=payload.analysis_period_days,
    )


def build_task_completion_request(payload: TaskCompletionInput) -> CompletionRequest:
    return _build_request(
        TASK_COMPLETION_PROMPT.id,
        payload,
        TaskCompletionReply,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )


def build_life_balance_request(payload: LifeBalanceInput) -> CompletionRequest:
    return _build_request(
        LIFE_BALANCE_PROMPT.id,
        payload,
        LifeBalanceReply,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )


def build_diary_summary_request(payload: DiarySummaryInput) -> CompletionRequest:
    return _build_request(
        DIARY_SUMMARY_PROMPT.id,
        payload,
        DiarySummaryReply,
        frequency=payload.frequency.value,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )


def build_attention_patterns_request(payload: AttentionInput) -> CompletionRequest:
    return _build_request(
        ATTENTION_PATTERNS_PROMPT.id,
        payload,
        AttentionReply,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
