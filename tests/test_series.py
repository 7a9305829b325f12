from __future__ import annotations

from datetime import date, datetime

import pytest

from expense_lens.analytics.series import daily_series, series_end
from expense_lens.analytics.summary import average_daily_spend, total_for
from expense_lens.models import ExpenseRecord
from expense_lens.utils.periods import filter_to_month

NOW = datetime(2026, 1, 20, 15, 30)


def _expense(amount: float, when: datetime | None) -> ExpenseRecord:
    return ExpenseRecord(id=f"{amount}-{when}", amount=amount, category="Food", date=when)


@pytest.fixture
def january() -> list[ExpenseRecord]:
    return filter_to_month(
        [
            _expense(40, datetime(2026, 1, 13, 12)),
            _expense(20, datetime(2026, 1, 14, 10)),
            _expense(30, datetime(2026, 1, 20, 9)),
            _expense(5, datetime(2026, 1, 20, 23)),
            _expense(99, None),
        ],
        NOW,
    )


def test_current_month_ends_today(january: list[ExpenseRecord]) -> None:
    assert daily_series(january, date(2026, 1, 1), 7, now=NOW) == [20, 0, 0, 0, 0, 0, 35]


def test_series_length_matches_days(january: list[ExpenseRecord]) -> None:
    for days in (1, 7, 30, 45):
        assert len(daily_series(january, date(2026, 1, 1), days, now=NOW)) == days


def test_non_positive_days_give_empty_series(january: list[ExpenseRecord]) -> None:
    assert daily_series(january, date(2026, 1, 1), 0, now=NOW) == []
    assert average_daily_spend([]) == 0


def test_whole_elapsed_month_matches_total(january: list[ExpenseRecord]) -> None:
    series = daily_series(january, date(2026, 1, 1), 20, now=NOW)

    assert sum(series) == pytest.approx(total_for(january))
    assert total_for(january) == 95


def test_past_month_ends_on_last_day() -> None:
    december = [
        _expense(10, datetime(2025, 12, 31, 22)),
        _expense(7, datetime(2025, 12, 25, 0, 0)),
        _expense(3, datetime(2025, 12, 24, 23, 59)),
    ]

    assert series_end(date(2025, 12, 1), NOW) == datetime(2025, 12, 31)
    assert daily_series(december, date(2025, 12, 1), 7, now=NOW) == [7, 0, 0, 0, 0, 0, 10]


def test_clock_callable_is_supported(january: list[ExpenseRecord]) -> None:
    assert daily_series(january, date(2026, 1, 1), 1, now=lambda: NOW) == [35]


def test_average_includes_zero_days(january: list[ExpenseRecord]) -> None:
    series = daily_series(january, date(2026, 1, 1), 7, now=NOW)

    assert average_daily_spend(series) == pytest.approx(55 / 7)
    assert average_daily_spend(series) == pytest.approx(sum(series) / 7)
