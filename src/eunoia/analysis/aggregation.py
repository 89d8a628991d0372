"""Date-range aggregation helpers.

Pure functions over record lists: interval filtering, sums, per-day
averages and category rankings. Report flows call these before anything is
sent to the model, so every figure in a report is computed here rather than
by the model.

Example:
    >>> period = parse_iso_range("2024-03-01T00:00:00Z", "2024-03-03T23:59:59Z")
    >>> food = filter_in_range(expenses, period.start, period.end, lambda e: e.date)
    >>> total = sum_amounts(food, lambda e: e.amount)
    >>> average(total, whole_days_inclusive(period.start, period.end))
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import NamedTuple, TypeVar

T = TypeVar("T")


class InvalidDateRangeError(ValueError):
    """A report was asked for a malformed or inverted date range."""

    pass


class DateRange(NamedTuple):
    start: datetime
    end: datetime


@dataclass(frozen=True)
class CategoryTotal:
    """One row of a category ranking.

    Attributes:
        category: Category label as recorded.
        amount: Total for the category, rounded to 2 decimals.
        percentage: Share of the overall total, rounded to 1 decimal.
    """

    category: str
    amount: float
    percentage: float


# =============================================================================
# Dates
# =============================================================================


def parse_iso_datetime(value: str, field_name: str = "date") -> datetime:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Date-only strings mean midnight UTC. Naive date-times are taken as UTC.

    Raises:
        InvalidDateRangeError: If ``value`` is not ISO-8601.
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidDateRangeError(f"{field_name} must be a non-empty ISO-8601 string")
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError as e:
        raise InvalidDateRangeError(f"{field_name} is not ISO-8601: {value!r}") from e
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_iso_range(start: str, end: str) -> DateRange:
    """Parse a start/end pair.

    Raises:
        InvalidDateRangeError: If either bound is malformed or ``end < start``.
    """
    period = DateRange(parse_iso_datetime(start, "start"), parse_iso_datetime(end, "end"))
    if period.end < period.start:
        raise InvalidDateRangeError("end must not be before start")
    return period


def whole_days_inclusive(start: datetime, end: datetime) -> int:
    """Number of calendar-length days covered by ``[start, end]``.

    Counts whole elapsed days plus one, so a range inside a single day is 1
    and March 1 00:00 to March 3 23:59 is 3. Inverted ranges give 0 or less.
    """
    return (end - start).days + 1


def filter_in_range(
    items: Iterable[T],
    start: datetime,
    end: datetime,
    date_selector: Callable[[T], datetime | None],
) -> list[T]:
    """Items whose selected date lies in ``[start, end]`` (both inclusive).

    Items whose selector returns None are skipped.
    """
    selected: list[T] = []
    for item in items:
        moment = date_selector(item)
        if moment is not None and start <= moment <= end:
            selected.append(item)
    return selected


# =============================================================================
# Numbers
# =============================================================================


def sum_amounts(items: Iterable[T], amount_selector: Callable[[T], float]) -> float:
    return sum((amount_selector(item) for item in items), 0.0)


def average(total: float, day_count: int) -> float:
    """Per-day average, never dividing by less than one day."""
    return total / max(1, day_count)


def group_and_rank_by_category(
    items: Sequence[T],
    category_selector: Callable[[T], str],
    amount_selector: Callable[[T], float],
    top_n: int | None = 5,
) -> list[CategoryTotal]:
    """Group amounts by category and rank the groups.

    Groups are sorted by total descending; equal totals keep the order in
    which their category was first seen. Percentages are 0 when the overall
    total is 0.

    Args:
        items: Records to group.
        category_selector: Returns the category label of a record.
        amount_selector: Returns the amount of a record.
        top_n: Keep only this many groups (None keeps all).

    Returns:
        Ranked category totals.

    Example:
        >>> rows = group_and_rank_by_category(expenses, lambda e: e.category, lambda e: e.amount)
        >>> rows[0].category
        'Food'
    """
    totals: dict[str, float] = {}
    for item in items:
        category = category_selector(item)
        totals[category] = totals.get(category, 0.0) + amount_selector(item)

    grand_total = sum(totals.values())
    # sorted() is stable under reverse=True, so ties keep first-seen order
    ranked = sorted(totals.items(), key=lambda pair: pair[1], reverse=True)
    if top_n is not None:
        ranked = ranked[:top_n]

    return [
        CategoryTotal(
            category=category,
            amount=round(amount, 2),
            percentage=round(amount / grand_total * 100, 1) if grand_total > 0 else 0.0,
        )
        for category, amount in ranked
    ]


def average_per_day(total: float, start: datetime, end: datetime) -> float:
    """``total`` averaged over the whole days of ``[start, end]``."""
    return average(total, whole_days_inclusive(start, end))
