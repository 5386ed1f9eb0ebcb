"""
Deposit date and payout week calculations.

- Deposit date = policy effective date + N business days (default 3)
- Payout weeks run Monday 00:00:00 through Sunday 23:59:59, local calendar

All functions are pure; datetimes are reduced to their calendar date
without any timezone conversion.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Union

DEPOSIT_OFFSET_BUSINESS_DAYS = 3

# date.weekday(): Monday=0 ... Sunday=6
SATURDAY = 5
DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class WeekBounds:
    start: date
    end: date

    @property
    def start_at(self) -> datetime:
        return datetime.combine(self.start, time.min)

    @property
    def end_at(self) -> datetime:
        return datetime.combine(self.end, time.max)

    def __contains__(self, value: DateLike) -> bool:
        return self.start <= _as_date(value) <= self.end


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def is_business_day(value: DateLike) -> bool:
    return _as_date(value).weekday() < SATURDAY


def add_business_days(start: DateLike, days: int) -> date:
    """
    Add business days to a date, skipping Saturdays and Sundays.

    The start date itself is never counted, so Friday + 3 is Wednesday.
    """
    if days < 0:
        raise ValueError("days must be non-negative")

    result = _as_date(start)
    added = 0
    while added < days:
        result += timedelta(days=1)
        if is_business_day(result):
            added += 1
    return result


def deposit_date_for(effective_date: DateLike, offset: int = DEPOSIT_OFFSET_BUSINESS_DAYS) -> date:
    """
    Date the commission of a policy becomes payable.

    Never a weekend: with a zero offset a Saturday or Sunday effective
    date pays on the following Monday.
    """
    result = add_business_days(effective_date, offset)
    while not is_business_day(result):
        result += timedelta(days=1)
    return result


def week_start(value: DateLike) -> date:
    """Monday of the week containing the date."""
    day = _as_date(value)
    return day - timedelta(days=day.weekday())


def week_bounds(value: DateLike) -> WeekBounds:
    start = week_start(value)
    return WeekBounds(start=start, end=start + timedelta(days=6))


def week_dates(start: DateLike) -> List[date]:
    """The seven dates of the week starting at start (Monday first)."""
    first = _as_date(start)
    return [first + timedelta(days=i) for i in range(7)]


def day_name(value: DateLike) -> str:
    return DAY_NAMES[_as_date(value).weekday()]


def previous_week(start: DateLike) -> date:
    return week_start(start) - timedelta(days=7)


def next_week(start: DateLike) -> date:
    return week_start(start) + timedelta(days=7)


def is_current_week(start: DateLike, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return week_start(start) == week_start(today)


def format_week_range(start: date, end: date) -> str:
    """
    Human readable week range.

    "Jan 13 - 19, 2025" within one month, "Jan 27 - Feb 2, 2025" across two.
    """
    start_month = MONTH_ABBR[start.month - 1]
    end_month = MONTH_ABBR[end.month - 1]
    if start_month == end_month:
        return f"{start_month} {start.day} - {end.day}, {end.year}"
    return f"{start_month} {start.day} - {end_month} {end.day}, {end.year}"


def parse_week_start(value: Optional[str], today: Optional[date] = None) -> date:
    """
    Parse a YYYY-MM-DD query value into the Monday of its week.

    Missing values mean the current week. Raises ValueError on bad input.
    """
    if not value:
        return week_start(today or date.today())
    try:
        parsed = date.fromisoformat(value.strip())
    except ValueError:
        raise ValueError(f"Invalid week start {value!r}, expected YYYY-MM-DD")
    return week_start(parsed)
