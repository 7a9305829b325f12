"""Category totals and percentage slices."""

from __future__ import annotations

from typing import Dict, Iterable, List

from expense_lens.models import CategorySlice, ExpenseRecord
from expense_lens.utils.currency import AmountNormalizer

CATEGORY_ORDER: tuple[str, ...] = (
    "Food",
    "Shopping",
    "Transport",
    "Entertainment",
    "Bills",
    "Others",
)

CATEGORY_COLORS: dict[str, str] = {
    "Shopping": "green",
    "Food": "orange",
    "Transport": "blue",
    "Entertainment": "red",
    "Bills": "purple",
    "Others": "gray",
}
FALLBACK_COLOR = "gray"

NO_DATA_LABEL = "No Data"
NO_DATA_SLICE = CategorySlice(name=NO_DATA_LABEL, percent=1.0, color_key=FALLBACK_COLOR)


def color_for(category: str | None) -> str:
    return CATEGORY_COLORS.get(category or "", FALLBACK_COLOR)


def category_totals(
    expenses: Iterable[ExpenseRecord],
    normalizer: AmountNormalizer | None = None,
) -> Dict[str, float]:
    """Sum amounts per category; uncategorised expenses land in ``Others``."""

    normalize = normalizer or AmountNormalizer.raw()
    totals: Dict[str, float] = {}
    for expense in expenses:
        amount = normalize(expense)
        if amount is None:
            continue
        key = expense.category_key
        totals[key] = totals.get(key, 0.0) + amount
    return totals


def ordered_categories(totals: Dict[str, float]) -> List[str]:
    """Canonical categories first, then any others alphabetically.

    Categories whose total is zero are left out.
    """

    canonical = [name for name in CATEGORY_ORDER if totals.get(name, 0.0) != 0]
    extras = sorted(
        name for name, value in totals.items() if name not in CATEGORY_ORDER and value != 0
    )
    return canonical + extras


def slices_from_totals(totals: Dict[str, float]) -> List[CategorySlice]:
    grand_total = sum(totals.values())
    if grand_total <= 0:
        return [NO_DATA_SLICE]
    return [
        CategorySlice(name=name, percent=totals[name] / grand_total, color_key=color_for(name))
        for name in ordered_categories(totals)
    ]


def aggregate(
    expenses: Iterable[ExpenseRecord],
    normalizer: AmountNormalizer | None = None,
) -> List[CategorySlice]:
    """Return the category breakdown for ``expenses`` as ordered slices."""

    return slices_from_totals(category_totals(expenses, normalizer))


__all__ = [
    "CATEGORY_COLORS",
    "CATEGORY_ORDER",
    "FALLBACK_COLOR",
    "NO_DATA_LABEL",
    "NO_DATA_SLICE",
    "aggregate",
    "category_totals",
    "color_for",
    "ordered_categories",
    "slices_from_totals",
]
