import pytest

from expense_core.charts import chart_data, render_chart
from expense_core.exceptions import ValidationError

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def test_daily_chart_uses_month_filter(sample_expenses):
    data = chart_data("daily", sample_expenses, "2024-03")
    assert data.title == "Daily Spend"
    assert data.labels == ["2024-03-01", "2024-03-02"]
    assert data.values == [10.0, 5.0]


def test_monthly_and_yearly_charts_span_everything(sample_expenses):
    assert chart_data("monthly", sample_expenses, "2024-03").labels == ["2023-12", "2024-02", "2024-03"]
    assert chart_data("yearly", sample_expenses, "2024-03").values == [7.5, 35.0]


def test_category_chart_skips_empty_categories(sample_expenses):
    data = chart_data("category", sample_expenses, "2024-03")
    assert data.labels == ["Food", "Travel"]
    assert data.values == [10.0, 5.0]


def test_unknown_chart_kind(sample_expenses):
    with pytest.raises(ValidationError):
        chart_data("radar", sample_expenses, "2024-03")


@pytest.mark.parametrize("kind", ["daily", "monthly", "yearly", "category"])
def test_render_chart_png(sample_expenses, kind):
    image = render_chart(chart_data(kind, sample_expenses, "2024-03"), currency="£")
    assert image.startswith(PNG_MAGIC)


def test_render_empty_chart():
    image = render_chart(chart_data("daily", [], "2024-03"))
    assert image.startswith(PNG_MAGIC)
