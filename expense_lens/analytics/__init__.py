"""Month-scoped spending analytics."""

from __future__ import annotations

from expense_lens.analytics.categories import (
    CATEGORY_ORDER,
    NO_DATA_LABEL,
    aggregate,
    category_totals,
)
from expense_lens.analytics.series import daily_series
from expense_lens.analytics.summary import (
    NO_TOP_CATEGORY,
    MonthlyAnalytics,
    average_daily_spend,
    top_category,
    total_for,
)

__all__ = [
    "CATEGORY_ORDER",
    "NO_DATA_LABEL",
    "NO_TOP_CATEGORY",
    "MonthlyAnalytics",
    "aggregate",
    "average_daily_spend",
    "category_totals",
    "daily_series",
    "top_category",
    "total_for",
]
