"""Data models for the expense dashboard domain."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, Optional, Tuple

__all__ = [
    "CATEGORIES",
    "CURRENCIES",
    "THEMES",
    "DEFAULT_CURRENCY",
    "DEFAULT_BUDGET",
    "DEFAULT_THEME",
    "DashboardState",
    "Expense",
    "ExpenseForm",
    "Preferences",
    "coerce_number",
    "month_key",
    "today_iso",
    "year_key",
]

CATEGORIES: Tuple[str, ...] = (
    "Food",
    "Travel",
    "Shopping",
    "Rent",
    "Bills",
    "Entertainment",
    "Other",
)

# Symbol -> label shown next to it in selectors.
CURRENCIES: Dict[str, str] = {
    "£": "GBP",
    "$": "USD",
    "€": "EUR",
    "₨": "PKR",
}

THEMES: Tuple[str, ...] = ("light", "dark", "system")

DEFAULT_CURRENCY = "£"
DEFAULT_BUDGET = ""
DEFAULT_THEME = "system"


def today_iso(today: Optional[date] = None) -> str:
    """Return the given (or current) date as ``YYYY-MM-DD``."""
    return (today or date.today()).isoformat()


def month_key(value: str) -> str:
    return value[:7]


def year_key(value: str) -> str:
    return value[:4]


def coerce_number(value: object) -> float:
    """Best-effort numeric conversion; anything unusable becomes 0.0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip() or 0)
        except ValueError:
            return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


@dataclass(frozen=True)
class Expense:
    id: int
    amount: float
    date: str
    category: str
    note: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the expense to JSON-friendly natives."""
        return {
            "id": self.id,
            "amount": self.amount,
            "date": self.date,
            "category": self.category,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Expense":
        """Hydrate an Expense from JSON-native data.

        Unusable amounts load as zero so a single bad row never hides the
        rest of the collection. Missing ``id`` or ``date`` raise ``KeyError``
        and ids that are not JSON integers raise ``ValueError``; callers
        skip such rows.
        """
        raw_id = data["id"]
        if isinstance(raw_id, bool) or not isinstance(raw_id, int):
            raise ValueError(f"id must be an integer, got {raw_id!r}")
        raw_date = data["date"]
        if not isinstance(raw_date, str) or not raw_date:
            raise ValueError("date must be a non-empty string")
        return cls(
            id=raw_id,
            amount=coerce_number(data.get("amount")),
            date=raw_date,
            category=str(data.get("category") or ""),
            note=str(data.get("note") or ""),
        )


@dataclass(frozen=True)
class Preferences:
    currency: str = DEFAULT_CURRENCY
    monthly_budget: str = DEFAULT_BUDGET
    theme: str = DEFAULT_THEME

    def to_dict(self) -> Dict[str, str]:
        return {
            "currency": self.currency,
            "monthly_budget": self.monthly_budget,
            "theme": self.theme,
        }


@dataclass(frozen=True)
class ExpenseForm:
    """Transient fields of the add-expense form."""

    amount: str = ""
    date: str = ""
    category: str = CATEGORIES[0]
    note: str = ""

    @classmethod
    def blank(cls, today: Optional[date] = None) -> "ExpenseForm":
        return cls(date=today_iso(today))


@dataclass(frozen=True)
class DashboardState:
    expenses: Tuple[Expense, ...] = ()
    preferences: Preferences = field(default_factory=Preferences)
    form: ExpenseForm = field(default_factory=ExpenseForm)
    filter_month: str = ""

    @classmethod
    def initial(
        cls,
        expenses: Tuple[Expense, ...] = (),
        preferences: Optional[Preferences] = None,
        today: Optional[date] = None,
    ) -> "DashboardState":
        return cls(
            expenses=tuple(expenses),
            preferences=preferences or Preferences(),
            form=ExpenseForm.blank(today),
            filter_month=month_key(today_iso(today)),
        )

    def evolve(self, **changes: Any) -> "DashboardState":
        return replace(self, **changes)
