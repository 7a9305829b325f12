"""Backward-looking daily spending series."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Callable, Iterable, List

from expense_lens.models import ExpenseRecord
from expense_lens.utils.currency import AmountNormalizer
from expense_lens.utils.periods import DayWindow, day_window, is_same_month, month_end

DEFAULT_DAYS = 7


def series_end(reference_month: date | datetime, now: datetime) -> datetime:
    """Last moment covered by the series for ``reference_month``.

    The current month ends at ``now``; any other month ends on its last day.
    """

    if is_same_month(reference_month, now):
        return now
    return datetime.combine(month_end(reference_month), time.min)


def day_windows(end: datetime, days: int) -> List[DayWindow]:
    """``days`` consecutive day windows ending on the day of ``end``, oldest first."""

    last_day = end.date()
    return [day_window(last_day - timedelta(days=offset)) for offset in reversed(range(days))]


def daily_series(
    expenses: Iterable[ExpenseRecord],
    reference_month: date | datetime,
    days: int = DEFAULT_DAYS,
    normalizer: AmountNormalizer | None = None,
    now: datetime | Callable[[], datetime] | None = None,
) -> List[float]:
    """Sum expenses per calendar day for the last ``days`` days of the month.

    ``expenses`` is expected to be filtered to ``reference_month`` already;
    anything dated outside the produced windows is ignored.
    """

    if days <= 0:
        return []
    if now is None:
        current = datetime.now()
    elif callable(now):
        current = now()
    else:
        current = now
    normalize = normalizer or AmountNormalizer.raw()
    dated = [expense for expense in expenses if expense.date is not None]

    series: List[float] = []
    for window in day_windows(series_end(reference_month, current), days):
        total = 0.0
        for expense in dated:
            if not window.contains(expense.date):  # type: ignore[arg-type]
                continue
            amount = normalize(expense)
            if amount is not None:
                total += amount
        series.append(total)
    return series


__all__ = ["DEFAULT_DAYS", "daily_series", "day_windows", "series_end"]
