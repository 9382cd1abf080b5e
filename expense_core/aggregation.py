"""Read-only views derived from the expense collection.

Every function here is pure: it takes the collection (and a selector where
needed) and returns a fresh value. Amounts are summed with plain float
addition; rounding happens only in :func:`format_amount`.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional

from .models import (
    CATEGORIES,
    DashboardState,
    Expense,
    coerce_number,
    month_key,
    today_iso,
    year_key,
)
from .validators import budget_limit

__all__ = [
    "DashboardSummary",
    "budget_exceeded",
    "daily_series_for_month",
    "filter_by_month",
    "format_amount",
    "month_key",
    "monthly_series_all_time",
    "summarize",
    "total_all",
    "total_for_date",
    "total_for_month",
    "totals_by_category_for_month",
    "visible_expenses",
    "year_key",
    "yearly_series_all_time",
]


def _sum_amounts(records: Iterable[Expense]) -> float:
    return sum((coerce_number(record.amount) for record in records), 0.0)


def _grouped(records: Iterable[Expense], key: Callable[[Expense], str]) -> Dict[str, float]:
    totals: Dict[str, float] = defaultdict(float)
    for record in records:
        totals[key(record)] += coerce_number(record.amount)
    # ISO keys sort lexicographically in chronological order.
    return {label: totals[label] for label in sorted(totals)}


def filter_by_month(collection: Iterable[Expense], month: str) -> List[Expense]:
    return [record for record in collection if month_key(record.date) == month]


def total_for_date(collection: Iterable[Expense], day: str) -> float:
    return _sum_amounts(record for record in collection if record.date == day)


def total_for_month(collection: Iterable[Expense], month: str) -> float:
    return _sum_amounts(filter_by_month(collection, month))


def total_all(collection: Iterable[Expense]) -> float:
    return _sum_amounts(collection)


def totals_by_category_for_month(collection: Iterable[Expense], month: str) -> Dict[str, float]:
    """Per-category totals for ``month``; every category is present, zero if unused."""
    totals = {category: 0.0 for category in CATEGORIES}
    for record in filter_by_month(collection, month):
        if record.category in totals:
            totals[record.category] += coerce_number(record.amount)
    return totals


def daily_series_for_month(collection: Iterable[Expense], month: str) -> Dict[str, float]:
    return _grouped(filter_by_month(collection, month), lambda record: record.date)


def monthly_series_all_time(collection: Iterable[Expense]) -> Dict[str, float]:
    return _grouped(collection, lambda record: month_key(record.date))


def yearly_series_all_time(collection: Iterable[Expense]) -> Dict[str, float]:
    return _grouped(collection, lambda record: year_key(record.date))


def budget_exceeded(month_total: float, limit: object) -> bool:
    """True only for a positive limit that ``month_total`` strictly exceeds.

    String limits (as stored) are coerced; blank or non-numeric ones count
    as unset.
    """
    if isinstance(limit, str) or limit is None:
        numeric_limit = budget_limit(limit)
    else:
        numeric_limit = coerce_number(limit)
    return numeric_limit > 0 and coerce_number(month_total) > numeric_limit


def visible_expenses(collection: Iterable[Expense], month: str) -> List[Expense]:
    """Month-filtered records in display order (newest date first)."""
    return sorted(filter_by_month(collection, month), key=lambda record: record.date, reverse=True)


def format_amount(value: object, currency: str) -> str:
    return f"{currency} {coerce_number(value):.2f}"


@dataclass(frozen=True)
class DashboardSummary:
    month: str
    currency: str
    total_today: float
    total_month: float
    total_all_time: float
    by_category: Dict[str, float]
    budget_limit: float
    budget_exceeded: bool

    def to_dict(self) -> Dict[str, object]:
        def fmt(value: float) -> str:
            return format_amount(value, self.currency)

        return {
            "month": self.month,
            "currency": self.currency,
            "total_today": self.total_today,
            "total_month": self.total_month,
            "total_all_time": self.total_all_time,
            "by_category": dict(self.by_category),
            "budget_limit": self.budget_limit,
            "budget_exceeded": self.budget_exceeded,
            "formatted": {
                "total_today": fmt(self.total_today),
                "total_month": fmt(self.total_month),
                "total_all_time": fmt(self.total_all_time),
                "budget_limit": fmt(self.budget_limit),
            },
        }


def summarize(state: DashboardState, today: Optional[date] = None) -> DashboardSummary:
    expenses = state.expenses
    month_total = total_for_month(expenses, state.filter_month)
    return DashboardSummary(
        month=state.filter_month,
        currency=state.preferences.currency,
        total_today=total_for_date(expenses, today_iso(today)),
        total_month=month_total,
        total_all_time=total_all(expenses),
        by_category=totals_by_category_for_month(expenses, state.filter_month),
        budget_limit=budget_limit(state.preferences.monthly_budget),
        budget_exceeded=budget_exceeded(month_total, state.preferences.monthly_budget),
    )
