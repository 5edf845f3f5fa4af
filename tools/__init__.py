"""
Tools Package
Recurrence rules and calendar helpers for the CareLedger engine
"""

from .clock import (
    parse_hhmm,
    normalize_hhmm,
    get_zone,
    utc_now,
    to_utc_naive,
    to_local,
    local_day_bounds,
    local_range_bounds,
    local_today
)

from .recurrence import (
    DailyRule,
    IntervalRule,
    AlternateDaysRule,
    WeeklyRule,
    RecurrenceRule,
    RULE_TYPES,
    is_due_on,
    due_times_on,
    evaluate_due_today,
    next_due_after,
    rule_from_dict,
    rule_to_dict
)

__all__ = [
    # Clock
    "parse_hhmm",
    "normalize_hhmm",
    "get_zone",
    "utc_now",
    "to_utc_naive",
    "to_local",
    "local_day_bounds",
    "local_range_bounds",
    "local_today",

    # Recurrence
    "DailyRule",
    "IntervalRule",
    "AlternateDaysRule",
    "WeeklyRule",
    "RecurrenceRule",
    "RULE_TYPES",
    "is_due_on",
    "due_times_on",
    "evaluate_due_today",
    "next_due_after",
    "rule_from_dict",
    "rule_to_dict"
]
