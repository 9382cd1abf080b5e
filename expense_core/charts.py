"""Chart series and PNG rendering for the dashboard views."""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from matplotlib.figure import Figure

from .aggregation import (
    daily_series_for_month,
    monthly_series_all_time,
    totals_by_category_for_month,
    yearly_series_all_time,
)
from .exceptions import ValidationError
from .models import CATEGORIES, Expense

CHART_KINDS: Tuple[str, ...] = ("daily", "monthly", "yearly", "category")

_TITLES: Dict[str, str] = {
    "daily": "Daily Spend",
    "monthly": "Monthly Spend",
    "yearly": "Yearly Spend",
    "category": "By Category",
}

ACCENT = "#0ea5e9"


@dataclass(frozen=True)
class ChartData:
    kind: str
    title: str
    labels: List[str]
    values: List[float]

    def to_dict(self) -> Dict[str, object]:
        return {
            "kind": self.kind,
            "title": self.title,
            "labels": list(self.labels),
            "values": list(self.values),
        }


def chart_data(kind: str, collection: Iterable[Expense], month: str) -> ChartData:
    """Build the labels/values pair behind one dashboard chart.

    ``daily`` and ``category`` honour the month filter; ``monthly`` and
    ``yearly`` always span the whole collection. The category chart only
    lists categories that have spending.
    """
    records = list(collection)
    if kind == "daily":
        series = daily_series_for_month(records, month)
    elif kind == "monthly":
        series = monthly_series_all_time(records)
    elif kind == "yearly":
        series = yearly_series_all_time(records)
    elif kind == "category":
        totals = totals_by_category_for_month(records, month)
        series = {category: totals[category] for category in CATEGORIES if totals[category] > 0}
    else:
        raise ValidationError(f"chart must be one of: {', '.join(CHART_KINDS)}")
    return ChartData(kind=kind, title=_TITLES[kind], labels=list(series), values=list(series.values()))


def render_chart(data: ChartData, currency: str = "") -> bytes:
    """Render ``data`` to PNG bytes."""
    fig = Figure(figsize=(8, 5))
    ax = fig.add_subplot(111)
    ax.set_title(data.title, fontsize=14, fontweight="bold")

    if not data.labels:
        ax.text(0.5, 0.5, "No data", ha="center", va="center")
        ax.set_axis_off()
    elif data.kind == "category":
        ax.pie(data.values, labels=data.labels, autopct="%1.0f%%", startangle=90)
        ax.axis("equal")
    elif data.kind == "daily":
        ax.plot(data.labels, data.values, marker="o", linewidth=2, color=ACCENT)
        ax.tick_params(axis="x", labelrotation=45)
    else:
        ax.bar(data.labels, data.values, color=ACCENT)
        ax.tick_params(axis="x", labelrotation=45)

    if data.labels and data.kind != "category" and currency:
        ax.set_ylabel(f"Amount ({currency})")

    fig.tight_layout()
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=100)
    return buf.getvalue()
