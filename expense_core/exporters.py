"""CSV, Excel and PDF renderers for the expense collection.

Each exporter returns the rendered document, or ``None`` when there is
nothing to export so callers can skip producing a file.
"""

from __future__ import annotations

import io
import logging
import textwrap
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd
from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.figure import Figure
from matplotlib.lines import Line2D

from .aggregation import budget_exceeded, format_amount, total_all, total_for_month
from .exceptions import ValidationError
from .models import Expense
from .validators import budget_limit

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["Date", "Category", "Note", "Amount"]

EXPORT_FORMATS: Dict[str, Tuple[str, str]] = {
    "csv": ("expenses.csv", "text/csv"),
    "xlsx": ("expenses.xlsx", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"),
    "pdf": ("expenses.pdf", "application/pdf"),
}

# Report geometry in millimetres on an A4 page.
PAGE_WIDTH_MM = 210.0
PAGE_HEIGHT_MM = 297.0
MARGIN_MM = 14.0
ROW_LIMIT_MM = 270.0
NOTE_WRAP_CHARS = 45


def _frame(expenses: Sequence[Expense]) -> pd.DataFrame:
    rows = [
        {
            "Date": expense.date,
            "Category": expense.category,
            "Note": expense.note or "",
            "Amount": expense.amount,
        }
        for expense in expenses
    ]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def _plain_number(value: float) -> str:
    """Whole amounts without a trailing ``.0``; others in shortest round-trip form."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def export_csv(expenses: Iterable[Expense]) -> Optional[str]:
    """Delimited text with minimal quoting (doubled quotes inside quoted fields)."""
    records = list(expenses)
    if not records:
        return None
    frame = _frame(records)
    frame["Amount"] = frame["Amount"].map(_plain_number)
    return frame.to_csv(index=False, lineterminator="\n")


def export_excel(expenses: Iterable[Expense]) -> Optional[bytes]:
    records = list(expenses)
    if not records:
        return None
    buf = io.BytesIO()
    _frame(records).to_excel(buf, sheet_name="Expenses", index=False, engine="openpyxl")
    return buf.getvalue()


class _ReportPage:
    """One A4 page addressed in millimetres from the top-left corner."""

    def __init__(self) -> None:
        self.figure = Figure(figsize=(8.27, 11.69))

    def text(self, x_mm: float, y_mm: float, value: str, size: float, **kwargs: object) -> None:
        kwargs.setdefault("va", "baseline")
        self.figure.text(x_mm / PAGE_WIDTH_MM, 1 - y_mm / PAGE_HEIGHT_MM, value, fontsize=size, **kwargs)

    def rule(self, y_mm: float) -> None:
        y = 1 - y_mm / PAGE_HEIGHT_MM
        self.figure.add_artist(
            Line2D(
                [MARGIN_MM / PAGE_WIDTH_MM, 1 - MARGIN_MM / PAGE_WIDTH_MM],
                [y, y],
                transform=self.figure.transFigure,
                color="black",
                linewidth=0.5,
            )
        )


def _summary_lines(
    expenses: Sequence[Expense],
    *,
    currency: str,
    month: str,
    monthly_budget: str,
    generated_at: datetime,
) -> List[str]:
    month_total = total_for_month(expenses, month)
    lines = [
        f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
        f"Currency: {currency}",
        f"Month Filter: {month}",
        f"Total (All Time): {format_amount(total_all(expenses), currency)}",
        f"Total (This Month): {format_amount(month_total, currency)}",
    ]
    limit = budget_limit(monthly_budget)
    if limit > 0:
        status = "Exceeded" if budget_exceeded(month_total, limit) else "Within"
        lines.append(f"Budget: {format_amount(limit, currency)} ({status})")
    return lines


def export_pdf(
    expenses: Iterable[Expense],
    *,
    currency: str,
    month: str,
    monthly_budget: str = "",
    generated_at: Optional[datetime] = None,
) -> Optional[bytes]:
    """Paginated report: summary block, then one row per expense."""
    records = list(expenses)
    if not records:
        return None
    generated_at = generated_at or datetime.now()

    pages: List[_ReportPage] = []
    page = _ReportPage()
    pages.append(page)

    page.text(PAGE_WIDTH_MM / 2, 16, "Expense Report", 16, ha="center")
    y = 26.0
    for line in _summary_lines(
        records,
        currency=currency,
        month=month,
        monthly_budget=monthly_budget,
        generated_at=generated_at,
    ):
        page.text(MARGIN_MM, y, line, 10)
        y += 6

    y = 68.0
    page.text(MARGIN_MM, y, "Date", 11)
    page.text(46, y, "Category", 11)
    page.text(86, y, "Note", 11)
    page.text(PAGE_WIDTH_MM - 26, y, "Amount", 11, ha="right")
    y += 4
    page.rule(y)
    y += 6

    for expense in records:
        if y > ROW_LIMIT_MM:
            page = _ReportPage()
            pages.append(page)
            y = 20.0
        note_lines = textwrap.wrap(expense.note or "", NOTE_WRAP_CHARS) or [""]
        page.text(MARGIN_MM, y, expense.date, 9)
        page.text(46, y, expense.category, 9)
        for offset, note_line in enumerate(note_lines):
            page.text(86, y + offset * 4, note_line, 9)
        page.text(PAGE_WIDTH_MM - 26, y, f"{expense.amount:.2f}", 9, ha="right")
        y += 6 + (len(note_lines) - 1) * 4

    buf = io.BytesIO()
    with PdfPages(buf, metadata={"Title": "Expense Report"}) as pdf:
        for report_page in pages:
            pdf.savefig(report_page.figure)
    logger.debug("Rendered PDF report with %d rows over %d pages", len(records), len(pages))
    return buf.getvalue()


def render_export(
    fmt: str,
    expenses: Iterable[Expense],
    *,
    currency: str,
    month: str,
    monthly_budget: str = "",
) -> Optional[bytes]:
    """Dispatch to the exporter for ``fmt`` and return encoded bytes."""
    if fmt == "csv":
        text = export_csv(expenses)
        return text.encode("utf-8") if text is not None else None
    if fmt == "xlsx":
        return export_excel(expenses)
    if fmt == "pdf":
        return export_pdf(expenses, currency=currency, month=month, monthly_budget=monthly_budget)
    raise ValidationError(f"export format must be one of: {', '.join(EXPORT_FORMATS)}")
