from datetime import datetime

import pytest

from expense_core.models import Expense
from expense_core.services import DashboardService, DashboardStore
from expense_core.storage import JSONStorage

FIXED_NOW = datetime(2024, 3, 15, 12, 0, 0)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def storage(tmp_path):
    return JSONStorage(tmp_path / "data")


@pytest.fixture
def store(storage):
    return DashboardStore(storage)


@pytest.fixture
def service(store, clock):
    return DashboardService(store, clock=clock)


@pytest.fixture
def sample_expenses():
    return (
        Expense(id=1, amount=10.0, date="2024-03-01", category="Food", note="Groceries"),
        Expense(id=2, amount=5.0, date="2024-03-02", category="Travel", note=""),
        Expense(id=3, amount=20.0, date="2024-02-10", category="Bills", note="Power"),
        Expense(id=4, amount=7.5, date="2023-12-31", category="Food", note="NYE"),
    )
