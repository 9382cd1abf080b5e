"""Framework-agnostic state transitions and persistence for the dashboard."""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .aggregation import DashboardSummary, summarize, visible_expenses
from .charts import ChartData, chart_data, render_chart
from .exceptions import PersistenceError, ValidationError
from .exporters import render_export
from .models import (
    CURRENCIES,
    DEFAULT_BUDGET,
    DEFAULT_CURRENCY,
    DEFAULT_THEME,
    THEMES,
    DashboardState,
    Expense,
    ExpenseForm,
    Preferences,
)
from .storage import JSONStorage
from .validators import (
    parse_amount,
    validate_budget,
    validate_category,
    validate_currency,
    validate_iso_date,
    validate_month_key,
    validate_note,
    validate_theme,
)

logger = logging.getLogger(__name__)

IdFactory = Callable[[], int]


class ExpenseIdGenerator:
    """Monotonic integer ids seeded from wall-clock milliseconds.

    Two ids handed out within the same millisecond still differ: the next id
    is always at least one greater than the previous.
    """

    def __init__(self, last_id: int = 0, now_ms: Optional[Callable[[], int]] = None) -> None:
        self._last = last_id
        self._now_ms = now_ms or (lambda: time.time_ns() // 1_000_000)

    def __call__(self) -> int:
        self._last = max(self._now_ms(), self._last + 1)
        return self._last


def validate_candidate(candidate: Mapping[str, object]) -> Dict[str, object]:
    """Return normalised expense fields or raise ``ValidationError``."""
    return {
        "amount": parse_amount(candidate.get("amount"), "amount"),
        "date": validate_iso_date(candidate.get("date"), "date"),
        "category": validate_category(candidate.get("category")),
        "note": validate_note(candidate.get("note")),
    }


def _append_record(
    state: DashboardState, fields: Mapping[str, object], expense_id: int, today: Optional[date]
) -> DashboardState:
    expense = Expense(id=expense_id, **fields)  # type: ignore[arg-type]
    return state.evolve(expenses=state.expenses + (expense,), form=ExpenseForm.blank(today))


def add_expense(
    state: DashboardState,
    candidate: Mapping[str, object],
    *,
    id_factory: IdFactory,
    today: Optional[date] = None,
) -> DashboardState:
    """Append ``candidate`` and clear the form; invalid candidates leave ``state`` as is."""
    try:
        fields = validate_candidate(candidate)
    except ValidationError as exc:
        logger.debug("Rejected expense candidate: %s", exc)
        return state
    return _append_record(state, fields, id_factory(), today)


def remove_expense(state: DashboardState, expense_id: int) -> DashboardState:
    remaining = tuple(expense for expense in state.expenses if expense.id != expense_id)
    if len(remaining) == len(state.expenses):
        return state
    return state.evolve(expenses=remaining)


class DashboardStore:
    """Durable home of the expense collection and the three preferences.

    Every entry loads independently; anything missing or malformed falls
    back to its default. Write failures are logged and otherwise ignored.
    """

    EXPENSES = "expenses.json"
    CURRENCY = "currency.json"
    BUDGET = "budget.json"
    THEME = "theme.json"

    def __init__(self, storage: JSONStorage) -> None:
        self._storage = storage

    def load(self) -> Tuple[Tuple[Expense, ...], Preferences]:
        expenses = self._load_expenses()
        preferences = Preferences(
            currency=self._load_choice(self.CURRENCY, CURRENCIES, DEFAULT_CURRENCY),
            monthly_budget=self._load_budget(),
            theme=self._load_choice(self.THEME, THEMES, DEFAULT_THEME),
        )
        return expenses, preferences

    def save(self, expenses: Iterable[Expense], preferences: Preferences) -> None:
        self.save_expenses(expenses)
        self.save_preferences(preferences)

    def save_expenses(self, expenses: Iterable[Expense]) -> None:
        self._write(self.EXPENSES, [expense.to_dict() for expense in expenses])

    def save_preferences(self, preferences: Preferences) -> None:
        self._write(self.CURRENCY, preferences.currency)
        self._write(self.BUDGET, preferences.monthly_budget)
        self._write(self.THEME, preferences.theme)

    # Internal helpers -----------------------------------------------------
    def _read(self, resource: str) -> object:
        try:
            return self._storage.load(resource)
        except PersistenceError as exc:
            logger.warning("Falling back to default for %s: %s", resource, exc)
            return None

    def _write(self, resource: str, payload: object) -> None:
        try:
            self._storage.save(resource, payload)
        except PersistenceError as exc:
            logger.warning("Could not save %s: %s", resource, exc)

    def _load_expenses(self) -> Tuple[Expense, ...]:
        raw = self._read(self.EXPENSES)
        if raw is None:
            return ()
        if not isinstance(raw, list):
            logger.warning("Ignoring %s: expected a list, got %s", self.EXPENSES, type(raw).__name__)
            return ()

        expenses: List[Expense] = []
        seen = set()
        for item in raw:
            if not isinstance(item, dict):
                logger.warning("Skipping malformed expense entry %r", item)
                continue
            try:
                expense = Expense.from_dict(item)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed expense entry %r: %s", item, exc)
                continue
            if expense.id in seen:
                logger.warning("Skipping duplicate expense id %s", expense.id)
                continue
            seen.add(expense.id)
            expenses.append(expense)
        return tuple(expenses)

    def _load_choice(self, resource: str, allowed: Iterable[str], default: str) -> str:
        raw = self._read(resource)
        if raw is None:
            return default
        if isinstance(raw, str) and raw in allowed:
            return raw
        logger.warning("Ignoring unknown value %r in %s", raw, resource)
        return default

    def _load_budget(self) -> str:
        raw = self._read(self.BUDGET)
        if raw is None:
            return DEFAULT_BUDGET
        if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
            logger.warning("Ignoring malformed budget %r", raw)
            return DEFAULT_BUDGET
        return str(raw).strip()


class DashboardService:
    """Owns the dashboard state and persists it after every change."""

    def __init__(
        self,
        store: DashboardStore,
        *,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[IdFactory] = None,
    ) -> None:
        self._store = store
        self._clock = clock or datetime.now
        expenses, preferences = store.load()  # Hydrate in-memory state on construction.
        last_id = max((expense.id for expense in expenses), default=0)
        self._next_id = id_factory or ExpenseIdGenerator(last_id)
        self._state = DashboardState.initial(expenses, preferences, today=self._today())

    # Public API -----------------------------------------------------------
    @property
    def state(self) -> DashboardState:
        return self._state

    @property
    def preferences(self) -> Preferences:
        return self._state.preferences

    def add(self, payload: Mapping[str, object]) -> Expense:
        """Validate and append an expense; raises ``ValidationError`` on bad input."""
        fields = validate_candidate(payload)
        self._state = _append_record(self._state, fields, self._next_id(), self._today())
        self._store.save_expenses(self._state.expenses)
        expense = self._state.expenses[-1]
        logger.info("Added expense %s (%s %.2f on %s)", expense.id, expense.category, expense.amount, expense.date)
        return expense

    def remove(self, expense_id: int) -> None:
        updated = remove_expense(self._state, expense_id)
        if updated is self._state:
            logger.debug("Expense %s not present; nothing to remove", expense_id)
            return
        self._state = updated
        self._store.save_expenses(self._state.expenses)
        logger.info("Removed expense %s", expense_id)

    def set_currency(self, currency: object) -> Preferences:
        return self._update_preferences(currency=validate_currency(currency))

    def set_budget(self, budget: object) -> Preferences:
        return self._update_preferences(monthly_budget=validate_budget(budget))

    def set_theme(self, theme: object) -> Preferences:
        return self._update_preferences(theme=validate_theme(theme))

    def update_preferences(self, changes: Mapping[str, object]) -> Preferences:
        """Apply any of ``currency``, ``monthly_budget`` and ``theme`` at once."""
        validated: Dict[str, str] = {}
        if "currency" in changes:
            validated["currency"] = validate_currency(changes["currency"])
        if "monthly_budget" in changes:
            validated["monthly_budget"] = validate_budget(changes["monthly_budget"])
        if "theme" in changes:
            validated["theme"] = validate_theme(changes["theme"])
        return self._update_preferences(**validated)

    def set_filter_month(self, month: object) -> None:
        self._state = self._state.evolve(filter_month=validate_month_key(month))

    def summary(self, month: Optional[str] = None) -> DashboardSummary:
        return summarize(self._view(month), today=self._today())

    def visible(self, month: Optional[str] = None) -> List[Expense]:
        return visible_expenses(self._state.expenses, self._view(month).filter_month)

    def chart(self, kind: str, month: Optional[str] = None) -> ChartData:
        return chart_data(kind, self._state.expenses, self._view(month).filter_month)

    def chart_png(self, kind: str, month: Optional[str] = None) -> bytes:
        return render_chart(self.chart(kind, month), currency=self.preferences.currency)

    def export(self, fmt: str, month: Optional[str] = None) -> Optional[bytes]:
        """Rendered export document, or ``None`` when there are no expenses."""
        view = self._view(month)
        return render_export(
            fmt,
            view.expenses,
            currency=view.preferences.currency,
            month=view.filter_month,
            monthly_budget=view.preferences.monthly_budget,
        )

    # Internal helpers -----------------------------------------------------
    def _today(self) -> date:
        return self._clock().date()

    def _view(self, month: Optional[str]) -> DashboardState:
        if month is None:
            return self._state
        return self._state.evolve(filter_month=validate_month_key(month))

    def _update_preferences(self, **changes: str) -> Preferences:
        if changes:
            preferences = replace(self._state.preferences, **changes)
            self._state = self._state.evolve(preferences=preferences)
            self._store.save_preferences(preferences)
            logger.info("Updated preferences: %s", ", ".join(sorted(changes)))
        return self._state.preferences

