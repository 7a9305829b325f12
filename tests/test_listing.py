from __future__ import annotations

from datetime import date, datetime

import pytest

from expense_lens.listing import Dashboard, filter_and_sort, group_by_category, group_by_date
from expense_lens.models import ExpenseRecord
from expense_lens.utils.currency import AmountNormalizer

NOW = datetime(2026, 1, 20, 15, 30)

EXPENSES = [
    ExpenseRecord(id="a", amount=40.0, category="Food", date=datetime(2026, 1, 20, 9)),
    ExpenseRecord(id="b", amount=15.0, category="Transport", date=datetime(2026, 1, 18, 8)),
    ExpenseRecord(id="c", amount=90.0, category="Food", date=datetime(2025, 12, 30, 19)),
    ExpenseRecord(id="d", amount=5.0, category=None, date=None),
    ExpenseRecord(id="e", amount=10.0, category="Food", date=datetime(2026, 1, 20, 13), currency="USD"),
]


def _ids(records) -> list[str]:
    return [record.id for record in records]


def test_sort_by_date_treats_undated_as_now() -> None:
    assert _ids(filter_and_sort(EXPENSES, now=NOW)) == ["d", "e", "a", "b", "c"]


def test_sort_by_amount_largest_first() -> None:
    assert _ids(filter_and_sort(EXPENSES, sort="Amount", now=NOW)) == ["c", "a", "b", "e", "d"]


def test_category_filter() -> None:
    assert _ids(filter_and_sort(EXPENSES, category="Food", now=NOW)) == ["e", "a", "c"]
    assert filter_and_sort(EXPENSES, category="Bills", now=NOW) == []


def test_unknown_sort_is_rejected() -> None:
    with pytest.raises(ValueError):
        filter_and_sort(EXPENSES, sort="Category")  # type: ignore[arg-type]


def test_group_by_date() -> None:
    groups = group_by_date(EXPENSES)

    assert [day for day, _ in groups] == [
        date(2026, 1, 20),
        date(2026, 1, 18),
        date(2025, 12, 30),
        date.min,
    ]
    assert _ids(groups[0][1]) == ["a", "e"]


def test_group_by_category() -> None:
    groups = group_by_category(EXPENSES, now=NOW)

    assert [name for name, _ in groups] == ["Food", "Others", "Transport"]
    assert _ids(groups[0][1]) == ["e", "a", "c"]


def test_dashboard_raw_totals() -> None:
    dashboard = Dashboard(lambda: EXPENSES, clock=lambda: NOW)

    assert dashboard.todays_spending == 50.0
    assert dashboard.this_month_spending == 65.0


def test_dashboard_uses_current_normalizer() -> None:
    normalizer = AmountNormalizer.for_rates({"USD": 1.25, "INR": 100.0}, "INR", ready=True)
    dashboard = Dashboard(
        lambda: EXPENSES,
        normalizer_provider=lambda: normalizer,
        clock=lambda: NOW,
    )

    assert dashboard.todays_spending == pytest.approx(40.0 + 800.0)
    assert dashboard.this_month_spending == pytest.approx(40.0 + 15.0 + 800.0)
