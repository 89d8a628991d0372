"""Tests for eunoia.analysis: date-range aggregation and keyword counting."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from eunoia.analysis import (
    InvalidDateRangeError,
    average,
    average_per_day,
    filter_in_range,
    group_and_rank_by_category,
    parse_iso_range,
    sum_amounts,
    whole_days_inclusive,
)
from eunoia.analysis.aggregation import parse_iso_datetime
from eunoia.analysis.keywords import (
    LIFE_AREAS,
    STRESS_KEYWORDS,
    UNCATEGORIZED,
    categorize_life_area,
    count_keywords,
    count_focus_levels,
    count_life_areas,
    count_moods,
    focus_by_activity,
    matched_keywords,
)
from eunoia.core.models import LogEntry, Mood

UTC = timezone.utc


# =============================================================================
# Dates
# =============================================================================


class TestParseIso:
    def test_zulu_and_offsets(self):
        assert parse_iso_datetime("2024-03-01T10:00:00Z") == datetime(2024, 3, 1, 10, tzinfo=UTC)
        assert parse_iso_datetime("2024-03-01T12:00:00+02:00") == datetime(2024, 3, 1, 10, tzinfo=UTC)

    def test_date_only_is_midnight_utc(self):
        assert parse_iso_datetime("2024-03-01") == datetime(2024, 3, 1, tzinfo=UTC)

    @pytest.mark.parametrize("bad", ["", "yesterday", "2024-13-01", None, 20240301])
    def test_malformed(self, bad):
        with pytest.raises(InvalidDateRangeError):
            parse_iso_datetime(bad)

    def test_inverted_range(self):
        with pytest.raises(InvalidDateRangeError):
            parse_iso_range("2024-03-05", "2024-03-01")

    def test_invalid_range_is_value_error(self):
        with pytest.raises(ValueError):
            parse_iso_range("nope", "2024-03-01")


class TestWholeDays:
    def test_three_days(self):
        assert whole_days_inclusive(datetime(2024, 3, 1, tzinfo=UTC), datetime(2024, 3, 3, 23, 59, tzinfo=UTC)) == 3

    def test_same_day(self):
        start = datetime(2024, 3, 1, 8, tzinfo=UTC)
        assert whole_days_inclusive(start, start + timedelta(hours=4)) == 1


class TestFilterInRange:
    def test_bounds_inclusive(self):
        start = datetime(2024, 3, 1, tzinfo=UTC)
        end = datetime(2024, 3, 3, tzinfo=UTC)
        moments = [start - timedelta(seconds=1), start, start + timedelta(days=1), end, end + timedelta(seconds=1)]
        assert filter_in_range(moments, start, end, lambda m: m) == moments[1:4]

    def test_none_dates_skipped(self):
        start = datetime(2024, 3, 1, tzinfo=UTC)
        assert filter_in_range([None, start], start, start, lambda m: m) == [start]


# =============================================================================
# Numbers
# =============================================================================


class TestCategoryRanking:
    def test_food_before_transport(self, sample_expenses):
        rows = group_and_rank_by_category(sample_expenses, lambda e: e.category, lambda e: e.amount)

        assert [r.category for r in rows] == ["Food", "Transport"]
        assert rows[0].amount == pytest.approx(93.70)
        assert rows[1].amount == pytest.approx(55.00)
        assert sum(r.percentage for r in rows) == pytest.approx(100, abs=0.2)
        assert rows[0].percentage == pytest.approx(63.0)

    def test_average_over_three_days(self, sample_expenses):
        period = parse_iso_range("2024-03-01T00:00:00Z", "2024-03-03T23:59:59Z")
        total = sum_amounts(sample_expenses, lambda e: e.amount)
        assert total == pytest.approx(148.70)
        assert average_per_day(total, period.start, period.end) == pytest.approx(total / 3)

    def test_ties_keep_first_seen_order(self):
        items = [("B", 10.0), ("A", 10.0), ("C", 20.0)]
        rows = group_and_rank_by_category(items, lambda i: i[0], lambda i: i[1])
        assert [r.category for r in rows] == ["C", "B", "A"]

    def test_top_n(self):
        items = [(str(i), float(i)) for i in range(1, 9)]
        rows = group_and_rank_by_category(items, lambda i: i[0], lambda i: i[1], top_n=3)
        assert [r.category for r in rows] == ["8", "7", "6"]
        assert len(group_and_rank_by_category(items, lambda i: i[0], lambda i: i[1], top_n=None)) == 8

    def test_zero_total(self):
        rows = group_and_rank_by_category([("A", 0.0)], lambda i: i[0], lambda i: i[1])
        assert rows[0].percentage == 0.0

    def test_empty(self):
        assert group_and_rank_by_category([], lambda i: i, lambda i: 0.0) == []


class TestAverage:
    def test_never_divides_by_zero(self):
        assert average(10.0, 0) == 10.0
        assert average(10.0, -2) == 10.0
        assert average(9.0, 3) == 3.0


# =============================================================================
# Keywords
# =============================================================================


class TestKeywordCounting:
    def test_case_insensitive_substring(self):
        texts = ["Feeling OVERWHELMED today", "so overwhelming", None, "fine"]
        counts = count_keywords(texts, STRESS_KEYWORDS)
        assert counts["overwhelm"] == 2
        assert "deadline" not in counts

    def test_counts_texts_not_occurrences(self):
        assert count_keywords(["tired tired tired"], ["tired"])["tired"] == 1

    def test_matched_keywords_most_common_first(self):
        texts = ["deadline", "deadline and pressure", "pressure", "deadline"]
        assert matched_keywords(texts, STRESS_KEYWORDS) == ["deadline", "pressure"]

    def test_count_moods(self):
        now = datetime(2024, 3, 1, tzinfo=UTC)
        logs = [
            LogEntry(date=now, activity="a", mood=Mood.STRESSED),
            LogEntry(date=now, activity="b", mood=Mood.TIRED),
            LogEntry(date=now, activity="c", mood=Mood.HAPPY),
            LogEntry(date=now, activity="d", mood=Mood.NEUTRAL),
            LogEntry(date=now, activity="e"),
        ]
        moods = count_moods(logs)
        assert (moods.total, moods.negative, moods.positive) == (5, 2, 1)
        assert moods.negative_ratio == pytest.approx(0.4)

    def test_empty_mood_ratio(self):
        assert count_moods([]).negative_ratio == 0.0


class TestLifeAreas:
    @pytest.mark.parametrize(
        "text, area",
        [
            ("Client meeting", "Work/Career"),
            ("Yoga class", "Health/Wellness"),
            ("Dinner with friends", "Social/Relationships"),
            ("Pay electricity bill", "Finance"),
            ("Read a book", "Personal Growth"),
            ("Movie night", "Hobbies/Leisure"),
            ("Clean the kitchen", "Responsibilities/Chores"),
            ("Something else", UNCATEGORIZED),
            (None, UNCATEGORIZED),
        ],
    )
    def test_categorize(self, text, area):
        assert categorize_life_area(text) == area

    def test_count_includes_every_area(self):
        counts = count_life_areas(["Yoga", "Gym session", "???"])
        assert set(counts) == {*LIFE_AREAS, UNCATEGORIZED}
        assert counts["Health/Wellness"] == 2
        assert counts[UNCATEGORIZED] == 1


class TestFocusCounting:
    @pytest.fixture
    def logs(self):
        def log(activity, focus):
            return LogEntry(date=datetime(2024, 3, 1, tzinfo=UTC), activity=activity, focus_level=focus)

        return [log("Coding", 5), log("coding", 4), log("Meetings", 1), log("Email", 3), log("Walk", None)]

    def test_buckets_and_average(self, logs):
        focus = count_focus_levels(logs)

        assert (focus.rated, focus.low, focus.moderate, focus.high) == (4, 1, 1, 2)
        assert focus.average == pytest.approx(3.25)
        assert focus.quality_score == 65

    def test_nothing_rated(self):
        focus = count_focus_levels([LogEntry(date=datetime(2024, 3, 1, tzinfo=UTC), activity="Walk")])
        assert (focus.rated, focus.average, focus.quality_score) == (0, 0.0, 0)

    def test_by_activity(self, logs):
        assert focus_by_activity(logs) == [("Coding", 4.5, 2), ("Email", 3.0, 1), ("Meetings", 1.0, 1)]
