"""Monthly summary figures and the reactive analytics view."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Sequence

from expense_lens.analytics.categories import CATEGORY_ORDER, category_totals, slices_from_totals
from expense_lens.analytics.series import DEFAULT_DAYS, daily_series
from expense_lens.models import DEFAULT_CURRENCY, CategorySlice, ExpenseRecord
from expense_lens.utils.currency import AmountNormalizer, sum_amounts
from expense_lens.utils.logger import get_logger
from expense_lens.utils.periods import filter_to_month, format_month, month_start

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from expense_lens.rates.store import ExchangeRateStore
    from expense_lens.repository import ExpenseRepository, RepositoryEvent

LOGGER = get_logger(__name__)

NO_TOP_CATEGORY = "none"


def _tie_break_key(name: str) -> tuple[int, str]:
    if name in CATEGORY_ORDER:
        return (CATEGORY_ORDER.index(name), "")
    return (len(CATEGORY_ORDER), name)


def top_category(totals: Dict[str, float]) -> str:
    """Category with the largest total.

    Ties go to the category listed first in :data:`CATEGORY_ORDER`, then to
    the alphabetically first one.
    """

    if not totals or sum(totals.values()) <= 0:
        return NO_TOP_CATEGORY
    best = max(totals.values())
    leaders = [name for name, value in totals.items() if value == best]
    return min(leaders, key=_tie_break_key)


def average_daily_spend(series: Sequence[float]) -> float:
    if not series:
        return 0.0
    return sum(series) / len(series)


def total_for(
    expenses: Iterable[ExpenseRecord],
    normalizer: AmountNormalizer | None = None,
) -> float:
    return sum_amounts(expenses, normalizer)


@dataclass(frozen=True)
class MonthlySnapshot:
    """Aggregates computed for one month from one repository snapshot."""

    month: date
    expenses: List[ExpenseRecord]
    normalizer: AmountNormalizer
    totals: Dict[str, float] = field(default_factory=dict)
    slices: List[CategorySlice] = field(default_factory=list)
    total: float = 0.0
    top_category: str = NO_TOP_CATEGORY


def build_snapshot(
    expenses: Iterable[ExpenseRecord],
    month: date | datetime,
    normalizer: AmountNormalizer | None = None,
) -> MonthlySnapshot:
    normalize = normalizer or AmountNormalizer.raw()
    filtered = filter_to_month(expenses, month)
    totals = category_totals(filtered, normalize)
    return MonthlySnapshot(
        month=month_start(month),
        expenses=filtered,
        normalizer=normalize,
        totals=totals,
        slices=slices_from_totals(totals),
        total=total_for(filtered, normalize),
        top_category=top_category(totals),
    )


class MonthlyAnalytics:
    """Analytics for the selected month, kept current as data changes.

    The aggregates are recomputed from scratch whenever the repository reports
    a change, the rate store swaps a table, or another month is selected.
    With a rate store attached, amounts are normalised into ``home_currency``
    once the store is ready; until then only expenses already in
    ``home_currency`` are counted.
    """

    def __init__(
        self,
        repository: "ExpenseRepository",
        rate_store: "ExchangeRateStore | None" = None,
        *,
        home_currency: str = DEFAULT_CURRENCY,
        selected_month: date | datetime | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.repository = repository
        self.rate_store = rate_store
        self.home_currency = home_currency
        self._clock = clock
        self._selected_month = month_start(selected_month or clock())
        self._all_expenses: List[ExpenseRecord] = []
        self._unsubscribers = [repository.subscribe(self._on_repository_changed)]
        if rate_store is not None:
            self._unsubscribers.append(rate_store.subscribe(self._on_rates_changed))
        self._snapshot = self._reload()

    # -- recomputation --------------------------------------------------

    def _normalizer(self) -> AmountNormalizer:
        if self.rate_store is None:
            return AmountNormalizer.raw()
        return AmountNormalizer.for_rates(
            self.rate_store.latest_rates,
            self.home_currency,
            ready=self.rate_store.is_ready,
        )

    def _reload(self) -> MonthlySnapshot:
        self._all_expenses = self.repository.list_all()
        return self._recompute()

    def _recompute(self) -> MonthlySnapshot:
        self._snapshot = build_snapshot(self._all_expenses, self._selected_month, self._normalizer())
        LOGGER.debug(
            "Recomputed analytics for %s: %s expenses, total %.2f",
            self.month_label,
            len(self._snapshot.expenses),
            self._snapshot.total,
        )
        return self._snapshot

    def _on_repository_changed(self, event: "RepositoryEvent") -> None:
        self._snapshot = self._reload()

    def _on_rates_changed(self, kind: str) -> None:
        if kind in {"latest", "symbols"}:
            self._snapshot = self._recompute()

    def refresh(self) -> None:
        self._snapshot = self._reload()

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    # -- selection ------------------------------------------------------

    @property
    def selected_month(self) -> date:
        return self._selected_month

    @selected_month.setter
    def selected_month(self, value: date | datetime) -> None:
        self.select_month(value)

    def select_month(self, value: date | datetime) -> None:
        month = month_start(value)
        if month == self._selected_month:
            return
        self._selected_month = month
        self._snapshot = self._recompute()

    @property
    def month_label(self) -> str:
        return format_month(self._selected_month)

    # -- read accessors -------------------------------------------------

    @property
    def is_ready(self) -> bool:
        return self.rate_store is not None and self.rate_store.is_ready

    @property
    def filtered_expenses(self) -> List[ExpenseRecord]:
        return list(self._snapshot.expenses)

    @property
    def category_totals(self) -> Dict[str, float]:
        return dict(self._snapshot.totals)

    @property
    def category_slices(self) -> List[CategorySlice]:
        return list(self._snapshot.slices)

    @property
    def top_category(self) -> str:
        return self._snapshot.top_category

    @property
    def total_this_month(self) -> float:
        return self._snapshot.total

    def daily_series(self, days: int = DEFAULT_DAYS) -> List[float]:
        return daily_series(
            self._snapshot.expenses,
            self._selected_month,
            days,
            normalizer=self._snapshot.normalizer,
            now=self._clock,
        )

    def average_daily_spend(self, days: int = DEFAULT_DAYS) -> float:
        return average_daily_spend(self.daily_series(days))


__all__ = [
    "NO_TOP_CATEGORY",
    "MonthlyAnalytics",
    "MonthlySnapshot",
    "average_daily_spend",
    "build_snapshot",
    "top_category",
    "total_for",
]
