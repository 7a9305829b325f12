from __future__ import annotations

from datetime import date, datetime

import pytest

from expense_lens.analytics.summary import NO_TOP_CATEGORY, MonthlyAnalytics, top_category
from expense_lens.db.key_value import InMemoryKeyValueStore
from expense_lens.rates.store import ExchangeRateStore
from expense_lens.repository import ExpenseRepository


@pytest.fixture
def repository() -> ExpenseRepository:
    repo = ExpenseRepository()
    repo.add_expense(100, "Food", datetime(2026, 1, 5))
    repo.add_expense(50, "Food", datetime(2026, 1, 6))
    repo.add_expense(25, None, datetime(2026, 1, 6))
    return repo


def test_top_category_picks_largest_total() -> None:
    assert top_category({"Food": 150, "Others": 25}) == "Food"


def test_top_category_ties_prefer_canonical_then_alphabetical() -> None:
    assert top_category({"Bills": 10, "Food": 10}) == "Food"
    assert top_category({"Rent": 10, "Others": 10}) == "Others"
    assert top_category({"Zoo": 10, "Gifts": 10}) == "Gifts"


def test_top_category_sentinel_for_empty_totals() -> None:
    assert top_category({}) == NO_TOP_CATEGORY
    assert top_category({"Food": 0}) == NO_TOP_CATEGORY


def test_scenario_a_month_summary(repository: ExpenseRepository, clock) -> None:
    analytics = MonthlyAnalytics(repository, selected_month=date(2026, 1, 1), clock=clock)

    assert analytics.category_totals == {"Food": 150, "Others": 25}
    assert [slice_.name for slice_ in analytics.category_slices] == ["Food", "Others"]
    assert analytics.category_slices[0].percent == pytest.approx(0.857, abs=1e-3)
    assert analytics.top_category == "Food"
    assert analytics.total_this_month == 175
    assert analytics.month_label == "January 2026"


def test_scenario_b_empty_month(repository: ExpenseRepository, clock) -> None:
    analytics = MonthlyAnalytics(repository, selected_month=date(2025, 11, 1), clock=clock)

    assert [(s.name, s.percent) for s in analytics.category_slices] == [("No Data", 1.0)]
    assert analytics.top_category == NO_TOP_CATEGORY
    assert analytics.total_this_month == 0
    assert analytics.daily_series(7) == [0, 0, 0, 0, 0, 0, 0]
    assert analytics.average_daily_spend(7) == 0


def test_average_matches_series_mean(repository: ExpenseRepository, clock) -> None:
    analytics = MonthlyAnalytics(repository, selected_month=date(2026, 1, 1), clock=clock)

    for days in (1, 7, 16, 20):
        series = analytics.daily_series(days)
        assert analytics.average_daily_spend(days) == pytest.approx(sum(series) / days)
    assert sum(analytics.daily_series(20)) == analytics.total_this_month


def test_recomputes_after_repository_changes(repository: ExpenseRepository, clock) -> None:
    analytics = MonthlyAnalytics(repository, selected_month=date(2026, 1, 1), clock=clock)

    record = repository.add_expense(500, "Bills", datetime(2026, 1, 19))
    assert analytics.total_this_month == 675
    assert analytics.top_category == "Bills"

    repository.update_expense(record.id, amount=5.0)
    assert analytics.total_this_month == 180

    repository.delete_expense(record.id)
    assert analytics.total_this_month == 175


def test_selecting_month_recomputes(repository: ExpenseRepository, clock) -> None:
    analytics = MonthlyAnalytics(repository, clock=clock)
    repository.add_expense(12, "Transport", datetime(2025, 12, 31, 8))

    assert analytics.selected_month == date(2026, 1, 1)
    analytics.selected_month = datetime(2025, 12, 15)

    assert analytics.selected_month == date(2025, 12, 1)
    assert analytics.total_this_month == 12
    assert analytics.daily_series(3) == [0, 0, 12]


def test_closed_view_stops_listening(repository: ExpenseRepository, clock) -> None:
    analytics = MonthlyAnalytics(repository, selected_month=date(2026, 1, 1), clock=clock)
    analytics.close()

    repository.add_expense(1000, "Food", datetime(2026, 1, 7))

    assert analytics.total_this_month == 175


def test_scenario_e_degraded_then_converted(fake_client, clock) -> None:
    repo = ExpenseRepository()
    repo.add_expense(100, "Food", datetime(2026, 1, 5), currency="INR")
    repo.add_expense(50, "Shopping", datetime(2026, 1, 6), currency="USD")
    store = ExchangeRateStore(fake_client, InMemoryKeyValueStore(), clock=clock)
    analytics = MonthlyAnalytics(repo, store, home_currency="INR", clock=clock)

    assert not analytics.is_ready
    assert analytics.total_this_month == 100
    assert analytics.category_totals == {"Food": 100}

    store.load_latest()
    assert not analytics.is_ready
    assert analytics.total_this_month == 100

    store.load_symbols()
    assert analytics.is_ready
    assert analytics.total_this_month == pytest.approx(100 + 50 / 1.1 * 90.0)
    assert analytics.top_category == "Shopping"
