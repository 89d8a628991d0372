"""Pure aggregation and counting helpers used by the report flows."""

from eunoia.analysis.aggregation import (
    CategoryTotal,
    DateRange,
    InvalidDateRangeError,
    average,
    average_per_day,
    filter_in_range,
    group_and_rank_by_category,
    parse_iso_range,
    sum_amounts,
    whole_days_inclusive,
)

__all__ = [
    "CategoryTotal",
    "DateRange",
    "InvalidDateRangeError",
    "average",
    "average_per_day",
    "filter_in_range",
    "group_and_rank_by_category",
    "parse_iso_range",
    "sum_amounts",
    "whole_days_inclusive",
]
