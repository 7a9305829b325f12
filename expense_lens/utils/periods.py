"""Calendar helpers for month-based analytics.

All calculations use naive datetimes in the process-local calendar.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Tuple

from expense_lens.models import ExpenseRecord

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


@dataclass(frozen=True)
class DayWindow:
    """Half-open interval ``[start, end)`` covering one calendar day."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end

    def as_tuple(self) -> Tuple[datetime, datetime]:
        return (self.start, self.end)


def as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def start_of_day(value: date | datetime) -> datetime:
    return datetime.combine(as_date(value), time.min)


def day_window(value: date | datetime) -> DayWindow:
    start = start_of_day(value)
    return DayWindow(start=start, end=start + timedelta(days=1))


def month_start(value: date | datetime) -> date:
    """Return the first day of the month containing ``value``."""

    return as_date(value).replace(day=1)


def month_end(value: date | datetime) -> date:
    """Return the last day of the month for ``value``."""

    day = as_date(value)
    if day.month == 12:
        return date(day.year, 12, 31)
    first_next_month = date(day.year, day.month + 1, 1)
    return first_next_month - timedelta(days=1)


def is_same_month(left: date | datetime, right: date | datetime) -> bool:
    return (left.year, left.month) == (right.year, right.month)


def filter_to_month(
    expenses: Iterable[ExpenseRecord],
    reference_date: date | datetime,
) -> list[ExpenseRecord]:
    """Keep expenses dated in the same year and month as ``reference_date``.

    Undated expenses never belong to a month.
    """

    return [
        expense
        for expense in expenses
        if expense.date is not None and is_same_month(expense.date, reference_date)
    ]


def format_month(value: date | datetime) -> str:
    """Render a month label such as ``February 2026``."""

    return f"{MONTH_NAMES[value.month - 1]} {value.year}"


def parse_month(value: str | date) -> date:
    """Parse ``YYYY-MM`` (or a full ISO date) into the first day of that month."""

    if isinstance(value, date):
        return month_start(value)
    text = value.strip()
    try:
        if len(text) == 7:
            return datetime.strptime(text, "%Y-%m").date()
        return month_start(datetime.strptime(text, "%Y-%m-%d").date())
    except ValueError as exc:
        raise ValueError("Month must be in YYYY-MM format.") from exc


def parse_date(value: str | date) -> date:
    """Parse a date string in ISO format to :class:`date`."""

    if isinstance(value, date):
        return as_date(value)
    return datetime.strptime(value, "%Y-%m-%d").date()


__all__ = [
    "DayWindow",
    "as_date",
    "day_window",
    "filter_to_month",
    "format_month",
    "is_same_month",
    "month_end",
    "month_start",
    "parse_date",
    "parse_month",
    "start_of_day",
]
