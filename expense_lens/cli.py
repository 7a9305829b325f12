"""Command line interface for recording expenses and viewing monthly analytics."""

from __future__ import annotations

import argparse
from datetime import datetime
from typing import Sequence

from expense_lens import ExpenseLens
from expense_lens.db import DEFAULT_SQLITE_DB_PATH
from expense_lens.listing import ALL_CATEGORIES, filter_and_sort
from expense_lens.models import DEFAULT_CURRENCY
from expense_lens.rates.store import LoadState
from expense_lens.utils.logger import get_logger
from expense_lens.utils.periods import parse_date, parse_month

LOGGER = get_logger(__name__)

__all__ = ["build_parser", "parse_args", "main"]


def _parse_when(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            "Date must be YYYY-MM-DD or YYYY-MM-DDTHH:MM"
        ) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="expense-lens", description=__doc__)
    parser.add_argument(
        "--db",
        dest="db_path",
        default=str(DEFAULT_SQLITE_DB_PATH),
        help="SQLite database path",
    )
    parser.add_argument(
        "--currency",
        dest="home_currency",
        default=DEFAULT_CURRENCY,
        help="Home currency used for totals",
    )
    parser.add_argument("--access-key", dest="access_key", help="Exchange rate API access key")
    subparsers = parser.add_subparsers(dest="command", required=True)

    add = subparsers.add_parser("add", help="Record an expense")
    add.add_argument("amount", type=float)
    add.add_argument("--category", default=None)
    add.add_argument("--date", dest="when", type=_parse_when, default=None)
    add.add_argument("--expense-currency", dest="expense_currency", default=DEFAULT_CURRENCY)
    add.add_argument("--payment-method", dest="payment_method", default=None)
    add.add_argument("--note", default=None)

    listing = subparsers.add_parser("list", help="List expenses")
    listing.add_argument("--category", default=ALL_CATEGORIES)
    listing.add_argument("--sort", choices=("Date", "Amount"), default="Date")

    delete = subparsers.add_parser("delete", help="Delete an expense by id")
    delete.add_argument("expense_id")

    summary = subparsers.add_parser("summary", help="Show analytics for a month")
    summary.add_argument("--month", type=parse_month, default=None, help="Month (YYYY-MM)")
    summary.add_argument("--days", type=int, default=7)
    summary.add_argument(
        "--load-rates",
        action="store_true",
        help="Fetch rates and symbols that are not cached yet before summarising",
    )

    rates = subparsers.add_parser("rates", help="Show exchange rates")
    rates.add_argument("kind", choices=("latest", "symbols", "historical"))
    rates.add_argument("--date", dest="day", type=parse_date, default=None)
    rates.add_argument("--refresh", action="store_true")
    rates.add_argument("--search", default="")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _report_state(label: str, state: LoadState) -> int:
    if state.is_error:
        print(f"{label}: {state.message}")
        return 1
    return 0


def _run_add(app: ExpenseLens, args: argparse.Namespace) -> int:
    record = app.repository.add_expense(
        args.amount,
        args.category,
        args.when or datetime.now(),
        payment_method=args.payment_method,
        note=args.note,
        currency=args.expense_currency,
    )
    print(record.id)
    return 0


def _run_list(app: ExpenseLens, args: argparse.Namespace) -> int:
    for expense in filter_and_sort(app.repository.list_all(), category=args.category, sort=args.sort):
        when = expense.date.strftime("%Y-%m-%d %H:%M") if expense.date else "-"
        print(
            f"{expense.id}  {when}  {expense.category_key:<14} "
            f"{expense.amount:>12.2f} {expense.currency_code}  {expense.note or ''}".rstrip()
        )
    return 0


def _run_delete(app: ExpenseLens, args: argparse.Namespace) -> int:
    try:
        app.repository.delete_expense(args.expense_id)
    except KeyError:
        print(f"No expense with id {args.expense_id}")
        return 1
    return 0


def _run_summary(app: ExpenseLens, args: argparse.Namespace) -> int:
    if args.load_rates:
        app.rate_store.load_symbols()
        app.rate_store.load_latest()
    analytics = app.analytics(args.month)
    try:
        if not analytics.is_ready:
            print(
                f"Exchange rates not loaded; totals include {app.home_currency} expenses only."
            )
        print(analytics.month_label)
        for slice_ in analytics.category_slices:
            print(f"  {slice_.name:<14} {slice_.percent:6.1%}")
        series = analytics.daily_series(args.days)
        print("Daily: " + ", ".join(f"{value:.2f}" for value in series))
        print(f"Top category: {analytics.top_category}")
        print(f"Average daily spend: {analytics.average_daily_spend(args.days):.2f} {app.home_currency}")
        print(f"Total this month: {analytics.total_this_month:.2f} {app.home_currency}")
    finally:
        analytics.close()
    return 0


def _run_rates(app: ExpenseLens, args: argparse.Namespace) -> int:
    store = app.rate_store
    if args.kind == "symbols":
        state = store.refresh_symbols() if args.refresh else store.load_symbols()
        for code, name in store.filter_symbols(args.search):
            print(f"{code}  {name}")
        return _report_state("Symbols", state)
    if args.kind == "latest":
        state = store.refresh_latest() if args.refresh else store.load_latest()
        rows = store.filter_rates(args.search)
    else:
        if args.day is not None:
            state = store.select_date(args.day)
        else:
            state = store.refresh_historical() if args.refresh else store.load_historical()
        rows = store.filter_historical(args.search)
    for code, rate in rows:
        print(f"{code}  {rate:.6f}")
    return _report_state("Rates", state)


_COMMANDS = {
    "add": _run_add,
    "list": _run_list,
    "delete": _run_delete,
    "summary": _run_summary,
    "rates": _run_rates,
}


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    with ExpenseLens(
        args.db_path,
        home_currency=args.home_currency,
        access_key=args.access_key,
    ) as app:
        return _COMMANDS[args.command](app, args)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
