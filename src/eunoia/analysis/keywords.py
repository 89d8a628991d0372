"""Keyword, mood and focus counting for daily logs and diary-style text.

These helpers only count. They produce the categorical summaries fed to the
report prompts and the rule-based fallbacks; actual sentiment judgement is
left to the model.

All matching is case-insensitive substring matching, so "Overwhelmed" and
"overwhelming" both count for "overwhelm".
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from eunoia.core.models import NEGATIVE_MOODS, POSITIVE_MOODS, LogEntry

# =============================================================================
# Keyword Sets
# =============================================================================

STRESS_KEYWORDS: tuple[str, ...] = (
    "overwhelm",
    "exhausted",
    "burnt out",
    "burned out",
    "burnout",
    "stressed",
    "deadline",
    "pressure",
    "can't cope",
)

POSITIVE_KEYWORDS: tuple[str, ...] = (
    "happy",
    "grateful",
    "calm",
    "productive",
    "excited",
    "proud",
    "relaxed",
    "accomplished",
    "enjoyed",
    "lovely",
    "good",
    "great",
)

NEGATIVE_KEYWORDS: tuple[str, ...] = (
    "sad",
    "angry",
    "frustrated",
    "stressed",
    "anxious",
    "tired",
    "overwhelm",
    "exhausted",
    "worried",
    "lonely",
    "bad",
)

DISTRACTION_KEYWORDS: tuple[str, ...] = (
    "distract",
    "interrupt",
    "procrastinat",
    "social media",
    "phone",
    "notification",
    "too many meetings",
    "context switch",
)

LIFE_AREAS: tuple[str, ...] = (
    "Work/Career",
    "Personal Growth",
    "Health/Wellness",
    "Social/Relationships",
    "Finance",
    "Hobbies/Leisure",
    "Responsibilities/Chores",
)

UNCATEGORIZED = "Uncategorized"

# First matching area wins, in LIFE_AREAS order
LIFE_AREA_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Work/Career": ("work", "project", "meeting", "report", "client", "job"),
    "Personal Growth": ("learn", "read", "course", "skill", "study"),
    "Health/Wellness": ("gym", "workout", "run", "yoga", "meditate", "doctor", "health", "sleep", "walk"),
    "Social/Relationships": ("friend", "family", "partner", "social", "call mom", "date night"),
    "Finance": ("budget", "finance", "bill", "expense", "invest"),
    "Hobbies/Leisure": ("hobby", "game", "movie", "music", "relax", "leisure", "watch"),
    "Responsibilities/Chores": ("chore", "errand", "clean", "grocery", "fix"),
}


# =============================================================================
# Counting
# =============================================================================


@dataclass(frozen=True)
class MoodCounts:
    """Mood tallies over a set of log entries.

    Attributes:
        total: Number of entries considered (with or without a mood).
        negative: Entries logged Stressed, Anxious or Tired.
        positive: Entries logged Happy, Calm or Productive.
    """

    total: int
    negative: int
    positive: int

    @property
    def negative_ratio(self) -> float:
        return self.negative / self.total if self.total else 0.0


def count_moods(logs: Iterable[LogEntry]) -> MoodCounts:
    total = negative = positive = 0
    for log in logs:
        total += 1
        if log.mood in NEGATIVE_MOODS:
            negative += 1
        elif log.mood in POSITIVE_MOODS:
            positive += 1
    return MoodCounts(total=total, negative=negative, positive=positive)


def count_keywords(texts: Iterable[str | None], keywords: Iterable[str]) -> Counter[str]:
    """Count, per keyword, how many texts mention it.

    Returns:
        Counter of keyword -> number of texts containing it. Keywords that
        never appear are absent.
    """
    keywords = [k.lower() for k in keywords]
    counts: Counter[str] = Counter()
    for text in texts:
        if not text:
            continue
        lowered = text.lower()
        for keyword in keywords:
            if keyword in lowered:
                counts[keyword] += 1
    return counts


def matched_keywords(texts: Iterable[str | None], keywords: Iterable[str], limit: int = 5) -> list[str]:
    """The most frequently mentioned keywords, most frequent first."""
    return [keyword for keyword, _ in count_keywords(texts, keywords).most_common(limit)]


def categorize_life_area(text: str | None) -> str:
    """Assign free text to one of :data:`LIFE_AREAS`, or ``Uncategorized``."""
    if not text:
        return UNCATEGORIZED
    lowered = text.lower()
    for area in LIFE_AREAS:
        if any(keyword in lowered for keyword in LIFE_AREA_KEYWORDS[area]):
            return area
    return UNCATEGORIZED


def count_life_areas(texts: Iterable[str | None]) -> dict[str, int]:
    """Tally texts per life area. Every area is present, zero or not."""
    counts = {area: 0 for area in (*LIFE_AREAS, UNCATEGORIZED)}
    for text in texts:
        counts[categorize_life_area(text)] += 1
    return counts


# =============================================================================
# Focus
# =============================================================================


@dataclass(frozen=True)
class FocusCounts:
    """Focus tallies over log entries that carry a focus level (1-5).

    Attributes:
        rated: Entries with a focus level.
        low: Entries rated 1 or 2.
        moderate: Entries rated 3.
        high: Entries rated 4 or 5.
        average: Mean focus level to 2 decimals, 0.0 when nothing is rated.
    """

    rated: int
    low: int
    moderate: int
    high: int
    average: float

    @property
    def quality_score(self) -> int:
        """Average focus scaled to 0-100."""
        return round(min(100.0, max(0.0, self.average * 20)))


def count_focus_levels(logs: Iterable[LogEntry]) -> FocusCounts:
    levels = [log.focus_level for log in logs if log.focus_level is not None]
    return FocusCounts(
        rated=len(levels),
        low=sum(1 for level in levels if level <= 2),
        moderate=sum(1 for level in levels if level == 3),
        high=sum(1 for level in levels if level >= 4),
        average=round(sum(levels) / len(levels), 2) if levels else 0.0,
    )


def focus_by_activity(logs: Iterable[LogEntry]) -> list[tuple[str, float, int]]:
    """Average focus per activity, as ``(activity, average, count)``.

    Activities are grouped case-insensitively under their first spelling and
    sorted by average descending, then by count descending. Unrated entries
    are skipped.
    """
    labels: dict[str, str] = {}
    levels: dict[str, list[int]] = {}
    for log in logs:
        if log.focus_level is None or not log.activity.strip():
            continue
        key = log.activity.strip().lower()
        labels.setdefault(key, log.activity.strip())
        levels.setdefault(key, []).append(log.focus_level)
    rows = [(labels[key], round(sum(values) / len(values), 2), len(values)) for key, values in levels.items()]
    return sorted(rows, key=lambda row: (-row[1], -row[2]))
