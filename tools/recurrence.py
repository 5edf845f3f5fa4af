"""
Recurrence Rules
Tagged recurrence variants for medications and routines, and the pure
evaluator that decides which days and clock times are due.
"""

from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union
from dataclasses import dataclass
from datetime import datetime, date, timedelta

from exceptions import ValidationError
from tools.clock import parse_hhmm, normalize_hhmm


MINUTES_PER_DAY = 24 * 60


def _require_int(value: Any, name: str) -> int:
    # bool is an int subclass; "true" is not a valid interval
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    return value


def _require_date(value: Any, name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            pass
    raise ValidationError(f"{name} must be an ISO date, got {value!r}")


# ==================== RULE VARIANTS ====================

@dataclass(frozen=True)
class DailyRule:
    """Fires every day, once per listed time"""
    times: Tuple[str, ...]

    kind: ClassVar[str] = "daily"

    def __post_init__(self):
        if isinstance(self.times, str) or not hasattr(self.times, "__iter__"):
            raise ValidationError("Daily rule times must be a list of 'HH:MM' strings")
        normalized = sorted({normalize_hhmm(t) for t in self.times})
        if not normalized:
            raise ValidationError("Daily rule needs at least one time")
        object.__setattr__(self, "times", tuple(normalized))


@dataclass(frozen=True)
class IntervalRule:
    """Fires every N hours within each day, starting at the anchor"""
    every_hours: int
    anchor: str

    kind: ClassVar[str] = "interval"

    def __post_init__(self):
        hours = _require_int(self.every_hours, "every_hours")
        if not 1 <= hours <= 24:
            raise ValidationError(f"every_hours must be between 1 and 24, got {hours}")
        object.__setattr__(self, "anchor", normalize_hhmm(self.anchor))


@dataclass(frozen=True)
class AlternateDaysRule:
    """Fires once every N calendar days, counting from the reference day"""
    every_days: int
    time: str
    reference_date: date

    kind: ClassVar[str] = "alternate_days"

    def __post_init__(self):
        days = _require_int(self.every_days, "every_days")
        if days < 1:
            raise ValidationError(f"every_days must be at least 1, got {days}")
        object.__setattr__(self, "time", normalize_hhmm(self.time))
        object.__setattr__(
            self, "reference_date", _require_date(self.reference_date, "reference_date")
        )


@dataclass(frozen=True)
class WeeklyRule:
    """Fires on the listed ISO weekdays (Mon=1 .. Sun=7)"""
    days_of_week: Tuple[int, ...]
    time: str

    kind: ClassVar[str] = "weekly"

    def __post_init__(self):
        if isinstance(self.days_of_week, (str, int)) or not hasattr(self.days_of_week, "__iter__"):
            raise ValidationError("days_of_week must be a list of weekdays")
        days = sorted({_require_int(d, "days_of_week") for d in self.days_of_week})
        if not days:
            raise ValidationError("Weekly rule needs at least one weekday")
        if days[0] < 1 or days[-1] > 7:
            raise ValidationError(f"Weekdays must be between 1 (Mon) and 7 (Sun), got {days}")
        object.__setattr__(self, "days_of_week", tuple(days))
        object.__setattr__(self, "time", normalize_hhmm(self.time))


RecurrenceRule = Union[DailyRule, IntervalRule, AlternateDaysRule, WeeklyRule]

RULE_TYPES = (DailyRule, IntervalRule, AlternateDaysRule, WeeklyRule)


# ==================== EVALUATION ====================

def is_due_on(rule: RecurrenceRule, target_date: date) -> bool:
    """Whether the rule has at least one occurrence on ``target_date``"""
    if isinstance(rule, (DailyRule, IntervalRule)):
        return True
    if isinstance(rule, AlternateDaysRule):
        elapsed = (target_date - rule.reference_date).days
        return elapsed >= 0 and elapsed % rule.every_days == 0
    if isinstance(rule, WeeklyRule):
        return target_date.isoweekday() in rule.days_of_week
    raise TypeError(f"Unsupported recurrence rule: {rule!r}")


def _interval_times(rule: IntervalRule) -> List[str]:
    anchor = parse_hhmm(rule.anchor)
    start = anchor.hour * 60 + anchor.minute
    step = rule.every_hours * 60
    return [
        f"{minutes // 60:02d}:{minutes % 60:02d}"
        for minutes in range(start, MINUTES_PER_DAY, step)
    ]


def due_times_on(rule: RecurrenceRule, target_date: date) -> List[str]:
    """
    Clock times ('HH:MM', ascending) the rule is due on ``target_date``.

    Empty when the rule is not due that day.
    """
    if not is_due_on(rule, target_date):
        return []
    if isinstance(rule, DailyRule):
        return list(rule.times)
    if isinstance(rule, IntervalRule):
        return _interval_times(rule)
    return [rule.time]


def evaluate_due_today(rule: RecurrenceRule, target_date: date) -> Dict[str, Any]:
    """Due flag and due times of a rule for one day"""
    times = due_times_on(rule, target_date)
    return {"due": bool(times), "times": times}


def next_due_after(rule: RecurrenceRule, moment: datetime) -> Optional[datetime]:
    """
    First due instant strictly after ``moment``.

    ``moment`` is a naive local wall time; the result is on the same clock.
    """
    start_day = moment.date()
    horizon = 8
    if isinstance(rule, AlternateDaysRule):
        start_day = max(start_day, rule.reference_date)
        horizon = rule.every_days + 1

    for offset in range(horizon):
        day = start_day + timedelta(days=offset)
        for hhmm in due_times_on(rule, day):
            candidate = datetime.combine(day, parse_hhmm(hhmm))
            if candidate > moment:
                return candidate
    return None


# ==================== SERIALIZATION ====================

# Legacy weekday numbering is 0=Sunday .. 6=Saturday
_LEGACY_WEEKDAY_TO_ISO = {0: 7, 1: 1, 2: 2, 3: 3, 4: 4, 5: 5, 6: 6}


def _get(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    raise ValidationError(f"Missing recurrence field: {keys[0]}")


def _from_legacy(data: Dict[str, Any], default_reference_date: Optional[date]) -> RecurrenceRule:
    tipo = data.get("tipo")
    if tipo == "diario":
        times = data.get("horarios")
        if times is None and data.get("horario"):
            times = [data["horario"]]
        return DailyRule(times=tuple(times or ()))
    if tipo == "intervalo":
        return IntervalRule(
            every_hours=_get(data, "intervalo_horas"),
            anchor=_get(data, "inicio", "horario"),
        )
    if tipo == "dias_alternados":
        reference = data.get("data_referencia") or default_reference_date
        if reference is None:
            raise ValidationError("dias_alternados rule needs a reference date")
        return AlternateDaysRule(
            every_days=_get(data, "intervalo_dias"),
            time=_get(data, "horario"),
            reference_date=reference,
        )
    if tipo == "semanal":
        legacy_days = _get(data, "dias_da_semana")
        if isinstance(legacy_days, (str, int)):
            raise ValidationError("dias_da_semana must be a list")
        days = []
        for day in legacy_days:
            _require_int(day, "dias_da_semana")
            if day not in _LEGACY_WEEKDAY_TO_ISO:
                raise ValidationError(f"Legacy weekday must be between 0 and 6, got {day}")
            days.append(_LEGACY_WEEKDAY_TO_ISO[day])
        return WeeklyRule(days_of_week=tuple(days), time=_get(data, "horario"))
    raise ValidationError(f"Unknown frequency type: {tipo!r}")


def rule_from_dict(
    data: Dict[str, Any],
    default_reference_date: Optional[date] = None
) -> RecurrenceRule:
    """
    Build a rule from its JSON form.

    Accepts the canonical ``kind`` format and the dashboard's legacy ``tipo``
    format. ``default_reference_date`` fills in the reference day of
    alternate-day rules that do not carry one (usually the item's start day).
    """
    if not isinstance(data, dict):
        raise ValidationError("Recurrence rule must be an object")

    if "kind" not in data:
        if "tipo" in data:
            return _from_legacy(data, default_reference_date)
        raise ValidationError("Recurrence rule has no 'kind'")

    kind = data["kind"]
    if kind == DailyRule.kind:
        times = _get(data, "times")
        return DailyRule(times=tuple(times) if isinstance(times, list) else times)
    if kind == IntervalRule.kind:
        return IntervalRule(every_hours=_get(data, "every_hours"), anchor=_get(data, "anchor"))
    if kind == AlternateDaysRule.kind:
        reference = data.get("reference_date") or default_reference_date
        if reference is None:
            raise ValidationError("alternate_days rule needs a reference_date")
        return AlternateDaysRule(
            every_days=_get(data, "every_days"),
            time=_get(data, "time"),
            reference_date=reference,
        )
    if kind == WeeklyRule.kind:
        days = _get(data, "days_of_week")
        return WeeklyRule(
            days_of_week=tuple(days) if isinstance(days, list) else days,
            time=_get(data, "time"),
        )
    raise ValidationError(f"Unknown recurrence kind: {kind!r}")


def rule_to_dict(rule: RecurrenceRule) -> Dict[str, Any]:
    """Canonical JSON form of a rule"""
    if isinstance(rule, DailyRule):
        return {"kind": rule.kind, "times": list(rule.times)}
    if isinstance(rule, IntervalRule):
        return {"kind": rule.kind, "every_hours": rule.every_hours, "anchor": rule.anchor}
    if isinstance(rule, AlternateDaysRule):
        return {
            "kind": rule.kind,
            "every_days": rule.every_days,
            "time": rule.time,
            "reference_date": rule.reference_date.isoformat(),
        }
    if isinstance(rule, WeeklyRule):
        return {"kind": rule.kind, "days_of_week": list(rule.days_of_week), "time": rule.time}
    raise TypeError(f"Unsupported recurrence rule: {rule!r}")


__all__ = [
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
    "rule_to_dict",
]
