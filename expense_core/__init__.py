"""Core business logic package for the expense dashboard."""

from .models import DashboardState, Expense, ExpenseForm, Preferences
from .services import DashboardService, DashboardStore, add_expense, remove_expense
from .storage import JSONStorage
from .exceptions import PersistenceError, ValidationError

__all__ = [
    "DashboardState",
    "Expense",
    "ExpenseForm",
    "Preferences",
    "DashboardService",
    "DashboardStore",
    "add_expense",
    "remove_expense",
    "JSONStorage",
    "PersistenceError",
    "ValidationError",
]
