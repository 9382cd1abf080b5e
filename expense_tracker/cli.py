"""Console interface for the expense dashboard."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

from expense_core.aggregation import DashboardSummary, format_amount
from expense_core.charts import CHART_KINDS
from expense_core.exceptions import PersistenceError, ValidationError
from expense_core.exporters import EXPORT_FORMATS
from expense_core.models import CATEGORIES, CURRENCIES, THEMES, Expense
from expense_core.services import DashboardService, DashboardStore
from expense_core.storage import JSONStorage


def _parse_date(value: str) -> str:
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"Invalid date '{value}'. Expected format YYYY-MM-DD."
        ) from exc


def _parse_amount(value: str) -> str:
    try:
        amount = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("Amount must be a numeric value") from exc
    if amount <= 0:
        raise argparse.ArgumentTypeError("Amount must be greater than zero")
    return value


def _load_service(data_dir: Path) -> DashboardService:
    return DashboardService(DashboardStore(JSONStorage(data_dir)))


def _format_expense(expense: Expense, currency: str) -> str:
    return (
        f"[{expense.id}] {expense.date} {expense.category:<13} "
        f"{format_amount(expense.amount, currency):>12}  {expense.note or '-'}"
    )


def _format_summary(summary: DashboardSummary) -> str:
    def fmt(value: float) -> str:
        return format_amount(value, summary.currency)

    lines = [
        f"Month: {summary.month}",
        f"  Today:      {fmt(summary.total_today)}",
        f"  This month: {fmt(summary.total_month)}",
        f"  All time:   {fmt(summary.total_all_time)}",
    ]
    if summary.budget_limit > 0:
        status = "EXCEEDED" if summary.budget_exceeded else "within budget"
        lines.append(f"  Budget:     {fmt(summary.budget_limit)} ({status})")
    lines.append("  By category:")
    for category, total in summary.by_category.items():
        lines.append(f"    {category:<13} {fmt(total)}")
    return "\n".join(lines)


def handle_expense(args: argparse.Namespace, service: DashboardService) -> None:
    currency = service.preferences.currency
    if args.command == "add":
        payload = {
            "amount": args.amount,
            "date": args.date or date.today().isoformat(),
            "category": args.category,
            "note": args.note,
        }
        expense = service.add(payload)
        print("Expense added:\n" + _format_expense(expense, currency))
    elif args.command == "list":
        expenses = service.visible(args.month)
        if not expenses:
            print("No expenses found.")
            return
        total = sum(expense.amount for expense in expenses)
        print(f"Found {len(expenses)} expenses (total {format_amount(total, currency)}):")
        for expense in expenses:
            print(_format_expense(expense, currency))
    elif args.command == "delete":
        service.remove(args.id)
        print(f"Expense {args.id} deleted.")


def handle_prefs(args: argparse.Namespace, service: DashboardService) -> None:
    if args.command == "currency":
        service.set_currency(args.value)
    elif args.command == "budget":
        service.set_budget(args.value)
    elif args.command == "theme":
        service.set_theme(args.value)
    prefs = service.preferences
    print(f"Currency: {prefs.currency}")
    print(f"Monthly budget: {prefs.monthly_budget or '-'}")
    print(f"Theme: {prefs.theme}")


def handle_export(args: argparse.Namespace, service: DashboardService) -> None:
    document = service.export(args.format, args.month)
    if document is None:
        print("No expenses to export.")
        return
    output = args.output or Path(EXPORT_FORMATS[args.format][0])
    output.write_bytes(document)
    print(f"Exported {args.format.upper()} to {output}")


def handle_chart(args: argparse.Namespace, service: DashboardService) -> None:
    output = args.output or Path(f"{args.kind}.png")
    output.write_bytes(service.chart_png(args.kind, args.month))
    print(f"Chart written to {output}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Expense Dashboard CLI")
    parser.add_argument(
        "--data-dir",
        default="data",
        type=Path,
        help="Directory to store JSON data (default: ./data)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="entity", required=True)

    expense_parser = subparsers.add_parser("expense", help="Manage expenses")
    expense_sub = expense_parser.add_subparsers(dest="command", required=True)

    expense_add = expense_sub.add_parser("add", help="Add a new expense")
    expense_add.add_argument("amount", type=_parse_amount)
    expense_add.add_argument("category", choices=CATEGORIES)
    expense_add.add_argument("--date", type=_parse_date, help="Defaults to today")
    expense_add.add_argument("--note", default="")

    expense_list = expense_sub.add_parser("list", help="List expenses for a month")
    expense_list.add_argument("--month", help="YYYY-MM (default: current month)")

    expense_delete = expense_sub.add_parser("delete", help="Delete an expense")
    expense_delete.add_argument("id", type=int)

    summary_parser = subparsers.add_parser("summary", help="Show totals and budget status")
    summary_parser.add_argument("--month", help="YYYY-MM (default: current month)")

    prefs_parser = subparsers.add_parser("prefs", help="Show or change preferences")
    prefs_sub = prefs_parser.add_subparsers(dest="command", required=True)
    prefs_sub.add_parser("show", help="Show current preferences")
    prefs_sub.add_parser("currency", help="Set the currency symbol").add_argument(
        "value", choices=list(CURRENCIES)
    )
    prefs_sub.add_parser("budget", help="Set the monthly budget ('' clears it)").add_argument("value")
    prefs_sub.add_parser("theme", help="Set the theme").add_argument("value", choices=THEMES)

    export_parser = subparsers.add_parser("export", help="Export all expenses")
    export_parser.add_argument("format", choices=list(EXPORT_FORMATS))
    export_parser.add_argument("--output", type=Path)
    export_parser.add_argument("--month", help="Month shown in the PDF summary")

    chart_parser = subparsers.add_parser("chart", help="Render a chart to PNG")
    chart_parser.add_argument("kind", choices=CHART_KINDS)
    chart_parser.add_argument("--output", type=Path)
    chart_parser.add_argument("--month", help="YYYY-MM for daily and category charts")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        service = _load_service(args.data_dir)
        if args.entity == "expense":
            handle_expense(args, service)
        elif args.entity == "summary":
            print(_format_summary(service.summary(args.month)))
        elif args.entity == "prefs":
            handle_prefs(args, service)
        elif args.entity == "export":
            handle_export(args, service)
        elif args.entity == "chart":
            handle_chart(args, service)
        else:  # pragma: no cover - argparse should prevent this
            parser.error(f"Unknown entity: {args.entity}")
            return 2
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Could not write output: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
