from datetime import date

import pytest

from expense_core.aggregation import (
    budget_exceeded,
    daily_series_for_month,
    format_amount,
    monthly_series_all_time,
    summarize,
    total_all,
    total_for_date,
    total_for_month,
    totals_by_category_for_month,
    visible_expenses,
    yearly_series_all_time,
)
from expense_core.models import CATEGORIES, DashboardState, Expense, Preferences


def test_total_for_date_matches_exact_day(sample_expenses):
    assert total_for_date(sample_expenses, "2024-03-01") == 10.0
    assert total_for_date(sample_expenses, "2024-03-03") == 0.0


def test_total_for_month_uses_month_prefix(sample_expenses):
    assert total_for_month(sample_expenses, "2024-03") == 15.0
    assert total_for_month(sample_expenses, "2024-02") == 20.0
    assert total_for_month(sample_expenses, "2022-01") == 0.0


def test_total_all(sample_expenses):
    assert total_all(sample_expenses) == 42.5
    assert total_all([]) == 0.0


def test_non_numeric_amounts_count_as_zero():
    records = [
        Expense(id=1, amount="abc", date="2024-03-01", category="Food"),  # type: ignore[arg-type]
        Expense(id=2, amount=3.0, date="2024-03-01", category="Food"),
    ]
    assert total_all(records) == 3.0
    assert daily_series_for_month(records, "2024-03") == {"2024-03-01": 3.0}


def test_category_totals_always_list_every_category(sample_expenses):
    totals = totals_by_category_for_month(sample_expenses, "2024-03")
    assert list(totals) == list(CATEGORIES)
    assert totals["Food"] == 10.0
    assert totals["Travel"] == 5.0
    assert totals["Rent"] == 0.0

    empty = totals_by_category_for_month([], "2024-03")
    assert set(empty) == set(CATEGORIES)
    assert all(value == 0.0 for value in empty.values())


def test_daily_series_is_chronological():
    records = [
        Expense(id=2, amount=5.0, date="2024-03-02", category="Food"),
        Expense(id=1, amount=10.0, date="2024-03-01", category="Food"),
    ]
    series = daily_series_for_month(records, "2024-03")
    assert list(series.keys()) == ["2024-03-01", "2024-03-02"]
    assert list(series.values()) == [10.0, 5.0]


def test_daily_series_merges_same_day(sample_expenses):
    extra = sample_expenses + (Expense(id=9, amount=2.5, date="2024-03-01", category="Other"),)
    assert daily_series_for_month(extra, "2024-03")["2024-03-01"] == 12.5


def test_monthly_and_yearly_series(sample_expenses):
    assert monthly_series_all_time(sample_expenses) == {
        "2023-12": 7.5,
        "2024-02": 20.0,
        "2024-03": 15.0,
    }
    yearly = yearly_series_all_time(sample_expenses)
    assert list(yearly) == ["2023", "2024"]
    assert yearly["2024"] == 35.0


@pytest.mark.parametrize(
    "total, limit, expected",
    [
        (150.25, 100, True),
        (100, 100, False),
        (99.99, 100, False),
        (1_000, 0, False),
        (1_000, -5, False),
        (1_000, None, False),
        (150.25, "100", True),
        (150.25, "", False),
        (150.25, "lots", False),
    ],
)
def test_budget_exceeded(total, limit, expected):
    assert budget_exceeded(total, limit) is expected


def test_visible_expenses_sorted_newest_first(sample_expenses):
    visible = visible_expenses(sample_expenses, "2024-03")
    assert [expense.date for expense in visible] == ["2024-03-02", "2024-03-01"]


def test_format_amount_rounds_for_display():
    assert format_amount(42.5, "£") == "£ 42.50"
    assert format_amount(1 / 3, "$") == "$ 0.33"
    assert format_amount("junk", "€") == "€ 0.00"


def test_summarize(sample_expenses):
    state = DashboardState(
        expenses=sample_expenses,
        preferences=Preferences(currency="$", monthly_budget="12"),
        filter_month="2024-03",
    )
    summary = summarize(state, today=date(2024, 3, 2))
    assert summary.total_today == 5.0
    assert summary.total_month == 15.0
    assert summary.total_all_time == 42.5
    assert summary.budget_limit == 12.0
    assert summary.budget_exceeded is True
    payload = summary.to_dict()
    assert payload["formatted"]["total_month"] == "$ 15.00"
    assert set(payload["by_category"]) == set(CATEGORIES)
