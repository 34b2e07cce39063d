import calendar
from datetime import date, timedelta
from typing import NamedTuple, Optional


ROLLING_WINDOW_DAYS = 90
DEFAULT_RANGE = "month"

RANGE_LABELS = {
    "week": "This week",
    "month": "This month",
    "3months": "Last 3 months",
}


class DateRange(NamedTuple):
    start: date
    end: date


def month_bounds(year: int, month: int) -> DateRange:
    last_day = calendar.monthrange(year, month)[1]
    return DateRange(date(year, month, 1), date(year, month, last_day))


def week_bounds(today: date, week_start: int = calendar.SUNDAY) -> DateRange:
    """Week enclosing ``today``; ``week_start`` uses ``calendar`` numbering."""
    offset = (today.weekday() - week_start) % 7
    start = today - timedelta(days=offset)
    return DateRange(start, start + timedelta(days=6))


def resolve_range(
    token: Optional[str],
    today: Optional[date] = None,
    week_start: int = calendar.SUNDAY,
) -> DateRange:
    today = today or date.today()
    if token == "week":
        return week_bounds(today, week_start)
    if token == "3months":
        return DateRange(today - timedelta(days=ROLLING_WINDOW_DAYS), today)
    # "month" and anything unrecognised
    return month_bounds(today.year, today.month)


def range_label(token: Optional[str]) -> str:
    return RANGE_LABELS.get(token or DEFAULT_RANGE, RANGE_LABELS[DEFAULT_RANGE])
