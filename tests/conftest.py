"""Shared fixtures for Split Ledger tests."""

from datetime import date, datetime

import pytest

from splitledger.config import get_settings
from splitledger.models.ledger import Category, Expense, User


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached; make every test read the environment anew."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def users():
    return [
        User(id=1, name="Anna", email="anna@example.com"),
        User(id=2, name="Ben"),
    ]


@pytest.fixture
def categories():
    return [
        Category(id=1, name="Groceries"),
        Category(id=2, name="Health"),
        Category(id=3, name="Rent"),
    ]


@pytest.fixture
def make_expense():
    """Factory for Expense models with sensible defaults."""
    counter = {"id": 0}

    def _make(**overrides) -> Expense:
        counter["id"] += 1
        values = {
            "id": counter["id"],
            "payer_id": 1,
            "amount": "10.00",
            "category_id": 1,
            "incurred_date": date(2025, 3, 10),
            "split_type": "50-50",
            "recorded_at": datetime(2025, 3, 10, 12, 0, counter["id"]),
        }
        values.update(overrides)
        return Expense(**values)

    return _make
