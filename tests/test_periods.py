import unittest
from datetime import date, datetime

from expense_lens.models import ExpenseRecord
from expense_lens.utils.periods import (
    day_window,
    filter_to_month,
    format_month,
    is_same_month,
    month_end,
    month_start,
    parse_month,
)


class PeriodTests(unittest.TestCase):
    def test_month_bounds(self) -> None:
        self.assertEqual(month_start(datetime(2024, 2, 17, 9)), date(2024, 2, 1))
        self.assertEqual(month_end(date(2024, 2, 17)), date(2024, 2, 29))
        self.assertEqual(month_end(date(2025, 12, 3)), date(2025, 12, 31))

    def test_same_month_requires_year_and_month(self) -> None:
        self.assertTrue(is_same_month(date(2026, 1, 1), datetime(2026, 1, 31, 23, 59)))
        self.assertFalse(is_same_month(date(2026, 1, 1), date(2025, 1, 1)))

    def test_filter_to_month_drops_undated_and_other_months(self) -> None:
        expenses = [
            ExpenseRecord(id="a", amount=1, date=datetime(2026, 1, 5)),
            ExpenseRecord(id="b", amount=2, date=datetime(2025, 1, 5)),
            ExpenseRecord(id="c", amount=3, date=datetime(2026, 2, 1)),
            ExpenseRecord(id="d", amount=4, date=None),
        ]

        filtered = filter_to_month(expenses, date(2026, 1, 20))

        self.assertEqual([expense.id for expense in filtered], ["a"])

    def test_day_window_is_half_open(self) -> None:
        window = day_window(datetime(2026, 1, 6, 18))

        self.assertTrue(window.contains(datetime(2026, 1, 6)))
        self.assertTrue(window.contains(datetime(2026, 1, 6, 23, 59, 59)))
        self.assertFalse(window.contains(datetime(2026, 1, 7)))

    def test_month_labels(self) -> None:
        self.assertEqual(format_month(date(2026, 2, 1)), "February 2026")
        self.assertEqual(parse_month("2026-02"), date(2026, 2, 1))
        self.assertEqual(parse_month("2026-02-14"), date(2026, 2, 1))
        with self.assertRaises(ValueError):
            parse_month("Feb 2026")


if __name__ == "__main__":
    unittest.main()
