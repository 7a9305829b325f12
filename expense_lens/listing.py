"""Browsing helpers for the expense list and the dashboard figures."""

from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Literal, Tuple

from expense_lens.models import ExpenseRecord
from expense_lens.utils.currency import AmountNormalizer, sum_amounts
from expense_lens.utils.periods import is_same_month

ALL_CATEGORIES = "All"
LIST_CATEGORIES: tuple[str, ...] = (
    ALL_CATEGORIES,
    "Food",
    "Transport",
    "Shopping",
    "Entertainment",
    "Bills",
    "Others",
)

SortKey = Literal["Date", "Amount"]


def filter_and_sort(
    expenses: Iterable[ExpenseRecord],
    *,
    category: str = ALL_CATEGORIES,
    sort: SortKey = "Date",
    now: datetime | None = None,
) -> List[ExpenseRecord]:
    """Apply the list screen's category filter and sort order.

    ``"Amount"`` sorts by amount, largest first. ``"Date"`` sorts newest first
    and treats undated expenses as happening ``now``.
    """

    items = list(expenses)
    if category != ALL_CATEGORIES:
        items = [expense for expense in items if (expense.category or "") == category]
    if sort == "Amount":
        items.sort(key=lambda expense: expense.amount, reverse=True)
    elif sort == "Date":
        reference = now or datetime.now()
        items.sort(key=lambda expense: expense.date or reference, reverse=True)
    else:
        raise ValueError("sort must be one of: Date, Amount")
    return items


def group_by_date(expenses: Iterable[ExpenseRecord]) -> List[Tuple[date, List[ExpenseRecord]]]:
    """Group by calendar day, newest day first; undated expenses fall under ``date.min``."""

    groups: Dict[date, List[ExpenseRecord]] = {}
    for expense in expenses:
        key = expense.date.date() if expense.date is not None else date.min
        groups.setdefault(key, []).append(expense)
    return sorted(groups.items(), key=lambda item: item[0], reverse=True)


def group_by_category(
    expenses: Iterable[ExpenseRecord],
    *,
    now: datetime | None = None,
) -> List[Tuple[str, List[ExpenseRecord]]]:
    """Group by category (alphabetical); each group is ordered newest first."""

    reference = now or datetime.now()
    groups: Dict[str, List[ExpenseRecord]] = {}
    for expense in expenses:
        groups.setdefault(expense.category_key, []).append(expense)
    return [
        (name, sorted(items, key=lambda expense: expense.date or reference, reverse=True))
        for name, items in sorted(groups.items())
    ]


class Dashboard:
    """Headline spending figures across all expenses."""

    def __init__(
        self,
        expenses_provider: Callable[[], Iterable[ExpenseRecord]],
        *,
        normalizer_provider: Callable[[], AmountNormalizer] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._expenses_provider = expenses_provider
        self._normalizer_provider = normalizer_provider or AmountNormalizer.raw
        self._clock = clock

    @property
    def todays_spending(self) -> float:
        today = self._clock().date()
        todays = (
            expense
            for expense in self._expenses_provider()
            if expense.date is not None and expense.date.date() == today
        )
        return sum_amounts(todays, self._normalizer_provider())

    @property
    def this_month_spending(self) -> float:
        now = self._clock()
        this_month = (
            expense
            for expense in self._expenses_provider()
            if expense.date is not None and is_same_month(expense.date, now)
        )
        return sum_amounts(this_month, self._normalizer_provider())


__all__ = [
    "ALL_CATEGORIES",
    "LIST_CATEGORIES",
    "Dashboard",
    "filter_and_sort",
    "group_by_category",
    "group_by_date",
]
