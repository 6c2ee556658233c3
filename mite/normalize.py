"""
Coercion and validation of caller supplied parameters.

Every mapping that goes on the wire (time entry filters, entity payloads)
runs through :func:`normalize`. It never raises on its own: problems are
collected in order and the caller decides, via
:meth:`Normalized.resolve`, whether they abort the call (strict) or the
offending entries are simply dropped.
"""
from __future__ import annotations
import re
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import MO, TU, WE, TH, FR, SA, SU, relativedelta
from pydantic import BaseModel, Field

from mite.exceptions import InvalidArgumentError
from mite.types import AT_KEYWORDS

_INT_RE = re.compile(r"[+-]?\d+")

_RELATIVE_DAYS = {"now": 0, "today": 0, "yesterday": -1, "tomorrow": 1}
_OFFSET_RE = re.compile(r"([+-]?\d+)\s*(day|week|month|year)s?(\s+ago)?")
_WEEKDAY_RE = re.compile(
    r"(?:(last|next|this)\s+)?(monday|tuesday|wednesday|thursday|friday|saturday|sunday)"
)
_WEEKDAYS = {
    "monday": MO,
    "tuesday": TU,
    "wednesday": WE,
    "thursday": TH,
    "friday": FR,
    "saturday": SA,
    "sunday": SU,
}

_TRUE_VALUES = ("1", "true", "on", "yes")
_FALSE_VALUES = ("0", "false", "off", "no", "")

# Returned by a rule to leave the key out without reporting a problem
DROP = object()

Rule = Callable[[str, Any], Any]


class FieldError(Exception):
    """A single invalid value. ``fallback`` is kept when not strict."""
    def __init__(self, message: str, fallback: Any = DROP):
        self.fallback = fallback
        super().__init__(message)


class Normalized(BaseModel):
    values: Dict[str, Any] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)

    def resolve(self, strict: bool = False) -> Dict[str, Any]:
        """Return the values, raising on the first problem when strict."""
        if strict and self.errors:
            raise InvalidArgumentError(self.errors[0])
        return self.values


def to_bool(value: Any) -> Optional[bool]:
    """Parse a boolean-ish value, None if it is not one."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        return None
    if isinstance(value, str):
        v = value.strip().lower()
        if v in _TRUE_VALUES:
            return True
        if v in _FALSE_VALUES:
            return False
    return None


def bool_literal(value: bool) -> str:
    return "true" if value else "false"


def to_int(value: Any, minimum: int = 0) -> Optional[int]:
    """Parse an integer >= minimum, None otherwise. Booleans are rejected."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if isinstance(value, str):
        if not _INT_RE.fullmatch(value.strip()):
            return None
        value = int(value.strip())
    if not isinstance(value, int) or value < minimum:
        return None
    return value


def _relative_date(text: str, today: date) -> Optional[date]:
    """
    Resolve relative expressions against ``today``.

    Understands now/today/yesterday/tomorrow, offsets such as "-1 week",
    "+3 days" or "2 months ago", and weekdays with an optional
    last/next/this modifier. Anything else returns None.
    """
    text = " ".join(text.lower().split())

    if text in _RELATIVE_DAYS:
        return today + timedelta(days=_RELATIVE_DAYS[text])

    match = _OFFSET_RE.fullmatch(text)
    if match:
        amount = int(match.group(1))
        if match.group(3):
            amount = -amount
        unit = match.group(2)
        if unit == "day":
            return today + timedelta(days=amount)
        if unit == "week":
            return today + timedelta(weeks=amount)
        if unit == "month":
            return today + relativedelta(months=amount)
        return today + relativedelta(years=amount)

    match = _WEEKDAY_RE.fullmatch(text)
    if match:
        modifier, weekday = match.group(1), _WEEKDAYS[match.group(2)]
        # last/next never resolve to today itself
        if modifier == "last":
            return today + relativedelta(days=-1, weekday=weekday(-1))
        if modifier == "next":
            return today + relativedelta(days=1, weekday=weekday(+1))
        return today + relativedelta(weekday=weekday(+1))

    return None


def to_date(value: Any, today: Optional[date] = None) -> Optional[str]:
    """Format a date, datetime, relative expression or parseable string as YYYY-MM-DD."""
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    if not isinstance(value, str) or not value.strip():
        return None
    relative = _relative_date(value, today or date.today())
    if relative is not None:
        return relative.strftime("%Y-%m-%d")
    try:
        return date_parser.parse(value).strftime("%Y-%m-%d")
    except (ValueError, OverflowError):
        return None


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return isinstance(value, str) and value == ""


def normalize(
    data: Mapping[str, Any],
    rules: Mapping[str, Rule],
    *,
    label: str = "",
    report_unknown: bool = False,
    skip_none: bool = False,
) -> Normalized:
    """
    Apply ``rules`` to ``data`` key by key.

    Keys without a rule are dropped, and reported when ``report_unknown``.
    A rule returns the wire value, :data:`DROP`, or raises
    :class:`FieldError`.
    """
    result = Normalized()
    for key, value in data.items():
        rule = rules.get(key)
        if rule is None:
            if report_unknown:
                result.errors.append(f"{label}: {key}: is not supported")
            continue

        if value is None and skip_none:
            continue

        try:
            wire = rule(key, value)
        except FieldError as exc:
            result.errors.append(str(exc))
            if exc.fallback is not DROP:
                result.values[key] = exc.fallback
            continue

        if wire is DROP:
            continue
        result.values[key] = wire
    return result


# ----------------------------------------------------------------------
# Time entry filter rules
# ----------------------------------------------------------------------
def _non_empty(rule: Rule) -> Rule:
    def wrapped(key: str, value: Any) -> Any:
        if is_empty(value):
            raise FieldError(f"Filter: {key}: no values provided")
        return rule(key, value)
    return wrapped


def _filter_billable(key: str, value: Any) -> str:
    parsed = to_bool(value)
    if parsed is None:
        raise FieldError(
            f"Filter: {key}: {value} is not one of true or false or their abbreviations"
        )
    return bool_literal(parsed)


def _filter_ids(key: str, value: Any) -> str:
    if isinstance(value, str):
        values = value.replace(" ", "").split(",")
    elif isinstance(value, (list, tuple, set)):
        values = list(value)
    else:
        values = [value]
    valid = [v for v in (to_int(v, minimum=1) for v in values) if v is not None]
    joined = ",".join(str(v) for v in valid)
    if len(valid) != len(values):
        raise FieldError(
            f"Filter: {key}: no valid values provided or some of the value are invalid",
            fallback=joined if valid else DROP,
        )
    return joined


def _filter_date(key: str, value: Any) -> str:
    parsed = to_date(value)
    if parsed is None:
        raise FieldError(f"Filter: {key}: {value} is not a valid date")
    return parsed


def _filter_at(key: str, value: Any) -> str:
    if isinstance(value, str) and value in AT_KEYWORDS:
        return value
    parsed = to_date(value)
    if parsed is None:
        raise FieldError(f"Filter: {key}: {value} is not a valid date or keyword")
    return parsed


def _filter_note(key: str, value: Any) -> Any:
    return value


TIME_ENTRY_FILTER_RULES: Dict[str, Rule] = {
    "customer_id": _non_empty(_filter_ids),
    "project_id": _non_empty(_filter_ids),
    "service_id": _non_empty(_filter_ids),
    "user_id": _non_empty(_filter_ids),
    "billable": _non_empty(_filter_billable),
    "note": _non_empty(_filter_note),
    "at": _non_empty(_filter_at),
    "from": _non_empty(_filter_date),
    "to": _non_empty(_filter_date),
}


# ----------------------------------------------------------------------
# Entity field rules
# ----------------------------------------------------------------------
def passthrough(key: str, value: Any) -> Any:
    return value


def name_field(message: str) -> Rule:
    """Name must not be empty; other values are sent as text."""
    def rule(key: str, value: Any) -> str:
        if is_empty(value):
            raise FieldError(message)
        return value if isinstance(value, str) else str(value)
    return rule


def int_field(label: str) -> Rule:
    def rule(key: str, value: Any) -> int:
        parsed = to_int(value)
        if parsed is None:
            raise FieldError(f"{label}: expected int >= 0 got: {value}")
        return parsed
    return rule


def enum_field(label: str, choices: tuple) -> Rule:
    def rule(key: str, value: Any) -> str:
        if value not in choices:
            expected = ", ".join(f'"{c}"' for c in choices)
            raise FieldError(f"{label}: expected one of {expected} got: {value}")
        return value
    return rule


def bool_field(label: str, lenient: bool = False) -> Rule:
    """Coerce to a "true"/"false" literal; lenient fields drop bad values."""
    def rule(key: str, value: Any) -> Any:
        parsed = to_bool(value)
        if parsed is None:
            if lenient:
                return DROP
            raise FieldError(f"{label}: expected true or false got: {value}")
        return bool_literal(parsed)
    return rule


def collection_field(label: str) -> Rule:
    def rule(key: str, value: Any) -> Any:
        if not isinstance(value, (list, dict)):
            raise FieldError(f"{label}: expected array with count >= 0 got: {value}")
        return value
    return rule


def date_field(key: str, value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return value
