from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from expense_lens.db.memory_backend import InMemoryBackend
from expense_lens.db.sqlite_backend import SQLiteBackend
from expense_lens.analytics.summary import MonthlyAnalytics
from expense_lens.models import ExpenseRecord
from expense_lens.repository import ExpenseRepository, RepositoryEvent


@pytest.fixture(params=["memory", "sqlite"])
def repository(request, tmp_path):
    if request.param == "memory":
        backend = InMemoryBackend()
    else:
        backend = SQLiteBackend(tmp_path / "expenses.db")
    repo = ExpenseRepository(backend)
    yield repo
    repo.close()


def test_add_expense_assigns_id_and_defaults(repository: ExpenseRepository) -> None:
    record = repository.add_expense(25, "Food", datetime(2026, 1, 5, 12, 0), currency="usd")

    assert record.id
    assert record.amount == 25.0
    assert record.currency == "USD"
    assert repository.get(record.id) == record
    assert repository.list_all() == [record]


def test_default_currency_is_inr(repository: ExpenseRepository) -> None:
    record = repository.add_expense(10)

    assert record.currency == "INR"
    assert record.category_key == "Others"


@pytest.mark.parametrize(
    "amount", [-1, "12", None, True, float("nan"), float("inf"), float("-inf")]
)
def test_invalid_amounts_are_rejected(repository: ExpenseRepository, amount) -> None:
    with pytest.raises(ValueError):
        repository.add_expense(amount)
    assert repository.list_all() == []


def test_list_all_is_newest_first_with_undated_last(repository: ExpenseRepository) -> None:
    undated = repository.add_expense(1)
    old = repository.add_expense(2, date=datetime(2026, 1, 1))
    first = repository.add_expense(3, date=datetime(2026, 1, 9))
    second = repository.add_expense(4, date=datetime(2026, 1, 9))

    assert [record.id for record in repository.list_all()] == [
        first.id,
        second.id,
        old.id,
        undated.id,
    ]


def test_update_expense(repository: ExpenseRepository) -> None:
    record = repository.add_expense(10, "Food", datetime(2026, 1, 5))

    updated = repository.update_expense(record.id, amount=12, currency="eur", note="dinner")

    assert updated == record.with_changes(amount=12.0, currency="EUR", note="dinner")
    assert repository.get(record.id) == updated


def test_update_rejects_unknown_id_and_fields(repository: ExpenseRepository) -> None:
    record = repository.add_expense(10)

    with pytest.raises(KeyError):
        repository.update_expense("missing", amount=1)
    with pytest.raises(ValueError, match="Unsupported fields: id"):
        repository.update_expense(record.id, id="other")
    with pytest.raises(ValueError):
        repository.update_expense(record.id, amount=-5)


def test_delete_expense(repository: ExpenseRepository) -> None:
    record = repository.add_expense(10)

    repository.delete_expense(record.id)

    assert repository.get(record.id) is None
    with pytest.raises(KeyError):
        repository.delete_expense(record.id)


def test_listeners_receive_committed_changes(repository: ExpenseRepository) -> None:
    events: list[RepositoryEvent] = []
    seen_counts: list[int] = []

    def listener(event: RepositoryEvent) -> None:
        events.append(event)
        seen_counts.append(len(repository.list_all()))

    unsubscribe = repository.subscribe(listener)
    record = repository.add_expense(10)
    repository.update_expense(record.id, note="taxi")
    repository.delete_expense(record.id)
    unsubscribe()
    repository.add_expense(5)

    assert [event.kind for event in events] == ["created", "updated", "deleted"]
    assert {event.expense_id for event in events} == {record.id}
    assert seen_counts == [1, 1, 0]


def test_failed_mutation_does_not_notify(repository: ExpenseRepository) -> None:
    events: list[RepositoryEvent] = []
    repository.subscribe(events.append)

    with pytest.raises(ValueError):
        repository.add_expense(-3)
    with pytest.raises(KeyError):
        repository.delete_expense("missing")

    assert events == []


def test_in_memory_backend_rejects_duplicates() -> None:
    record = ExpenseRecord(id="e1", amount=1.0)
    backend = InMemoryBackend([record])

    with pytest.raises(ValueError):
        backend.insert(record)
    with pytest.raises(KeyError):
        backend.update(ExpenseRecord(id="e2", amount=1.0))


def test_non_finite_amount_never_reaches_subscribed_analytics(repository: ExpenseRepository) -> None:
    repository.add_expense(20, "Food", datetime(2026, 1, 5))
    analytics = MonthlyAnalytics(
        repository, selected_month=date(2026, 1, 1), clock=lambda: datetime(2026, 1, 20)
    )

    with pytest.raises(ValueError):
        repository.add_expense(float("nan"), "Food", datetime(2026, 1, 6))

    assert analytics.top_category == "Food"
    assert analytics.total_this_month == 20.0
    analytics.close()


def test_aware_dates_are_stored_as_naive_local_time(repository: ExpenseRepository) -> None:
    aware = datetime(2026, 1, 10, 12, 0, tzinfo=timezone(timedelta(hours=5)))
    naive = repository.add_expense(5, "Food", datetime(2026, 1, 9, 8, 0))
    converted = repository.add_expense(7, "Bills", aware)

    assert converted.date is not None and converted.date.tzinfo is None
    assert converted.date == aware.astimezone().replace(tzinfo=None)
    assert {record.id for record in repository.list_all()} == {naive.id, converted.id}

    analytics = MonthlyAnalytics(
        repository, selected_month=date(2026, 1, 1), clock=lambda: datetime(2026, 1, 20)
    )
    assert sum(analytics.daily_series(31)) == 12.0
    analytics.close()


def test_update_converts_aware_date(repository: ExpenseRepository) -> None:
    record = repository.add_expense(5, "Food", datetime(2026, 1, 9, 8, 0))
    aware = datetime(2026, 1, 11, 23, 30, tzinfo=timezone.utc)

    updated = repository.update_expense(record.id, date=aware)

    assert updated.date == aware.astimezone().replace(tzinfo=None)
    assert repository.get(record.id).date.tzinfo is None
