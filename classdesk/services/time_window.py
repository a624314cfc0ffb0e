# classdesk/services/time_window.py
"""
Time window resolution for reports.

Every report endpoint accepts either explicit ``from``/``to`` calendar dates
or one symbolic range token. This module turns them into a single inclusive
``TimeWindow`` so no endpoint carries its own range switch.

Dates are naive calendar dates. ``today`` is injectable so resolution is
pure and testable.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple, Union

from ..core.constants import ALL_FILTER_VALUE
from ..core.enums import RangeToken
from ..core.exceptions import ValidationException

DateInput = Union[date, str, None]


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive ``[start, end]`` date interval; both ``None`` means unbounded."""

    start: Optional[date] = None
    end: Optional[date] = None

    @property
    def is_bounded(self) -> bool:
        return self.start is not None and self.end is not None

    def contains(self, value: date) -> bool:
        if not self.is_bounded:
            return True
        assert self.start is not None and self.end is not None
        return self.start <= value <= self.end

    def datetime_bounds(self) -> Tuple[Optional[datetime], Optional[datetime]]:
        """
        Half-open timestamp bounds ``[start 00:00, end + 1 day 00:00)``.

        Used for timestamp columns such as fee ``created_at`` so that the
        whole of the last day is included.
        """
        if not self.is_bounded:
            return None, None
        assert self.start is not None and self.end is not None
        return (
            datetime.combine(self.start, time.min),
            datetime.combine(self.end + timedelta(days=1), time.min),
        )

    def to_dict(self) -> dict:
        return {
            "from": self.start.isoformat() if self.start else None,
            "to": self.end.isoformat() if self.end else None,
        }


UNBOUNDED = TimeWindow()


def _parse_date(value: DateInput, field: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValidationException(
            f"Invalid {field} date: expected YYYY-MM-DD",
            details={"field": field, "value": value},
        ) from exc


def week_bounds(today: date) -> Tuple[date, date]:
    """Sunday through Saturday of the week containing ``today``."""
    days_since_sunday = (today.weekday() + 1) % 7
    start = today - timedelta(days=days_since_sunday)
    return start, start + timedelta(days=6)


def month_bounds(today: date) -> Tuple[date, date]:
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


def quarter_bounds(today: date) -> Tuple[date, date]:
    """First through last day of the 3-month block (Jan-Mar, Apr-Jun, ...) containing ``today``."""
    first_month = ((today.month - 1) // 3) * 3 + 1
    last_month = first_month + 2
    last_day = calendar.monthrange(today.year, last_month)[1]
    return date(today.year, first_month, 1), date(today.year, last_month, last_day)


def year_bounds(today: date) -> Tuple[date, date]:
    return date(today.year, 1, 1), date(today.year, 12, 31)


_TOKEN_RESOLVERS = {
    RangeToken.THIS_WEEK: week_bounds,
    RangeToken.THIS_MONTH: month_bounds,
    RangeToken.THIS_QUARTER: quarter_bounds,
    RangeToken.THIS_YEAR: year_bounds,
}


def resolve_time_window(
    from_date: DateInput = None,
    to_date: DateInput = None,
    range_token: Optional[str] = None,
    today: Optional[date] = None,
) -> TimeWindow:
    """
    Resolve explicit bounds or a range token into a ``TimeWindow``.

    Explicit bounds win over a token. Nothing supplied (or the token
    ``all``) yields the unbounded window.

    Raises:
        ValidationException: only one explicit bound, ``from`` after ``to``,
            a malformed date, or an unrecognised range token
    """
    start = _parse_date(from_date, "from")
    end = _parse_date(to_date, "to")

    if start is not None or end is not None:
        if start is None or end is None:
            raise ValidationException(
                "Both 'from' and 'to' are required when filtering by explicit dates",
                details={"from": str(from_date) if from_date else None, "to": str(to_date) if to_date else None},
            )
        if start > end:
            raise ValidationException(
                "'from' must not be after 'to'",
                details={"from": start.isoformat(), "to": end.isoformat()},
            )
        return TimeWindow(start, end)

    token = (range_token or "").strip().lower()
    if not token or token == ALL_FILTER_VALUE:
        return UNBOUNDED

    try:
        resolver = _TOKEN_RESOLVERS[RangeToken(token)]
    except ValueError as exc:
        raise ValidationException(
            f"Unknown range '{range_token}'",
            details={"range": range_token, "allowed": [t.value for t in RangeToken]},
        ) from exc

    start, end = resolver(today or date.today())
    return TimeWindow(start, end)
