"""
Tests for expense validation.

Errors block saving; warnings are shown but allow it.
"""

from datetime import date
from decimal import Decimal

import pytest

from splitledger.config import AppSettings
from splitledger.models.ledger import ExpenseCreate, User
from splitledger.validation import ExpenseValidator


TODAY = date(2025, 3, 10)


@pytest.fixture
def validator():
    return ExpenseValidator(AppSettings(max_expense_amount=1000, future_date_tolerance_days=1))


def draft(**overrides) -> ExpenseCreate:
    values = {
        "payer_id": 1,
        "amount": Decimal("25.00"),
        "category_id": 1,
        "incurred_date": TODAY,
        "description": "Hofer/Spar",
    }
    values.update(overrides)
    return ExpenseCreate(**values)


def issue_types(result):
    return {(i.field, i.issue_type, i.severity) for i in result.issues}


class TestReferenceChecks:
    """Payer and category must exist."""

    def test_valid_draft(self, validator, users, categories):
        result = validator.validate(draft(), users, categories, today=TODAY)
        assert result.is_valid
        assert result.issues == []

    def test_unknown_payer(self, validator, users, categories):
        result = validator.validate(draft(payer_id=99), users, categories, today=TODAY)
        assert not result.is_valid
        assert ("payer_id", "unknown_reference", "error") in issue_types(result)

    def test_unknown_category(self, validator, users, categories):
        result = validator.validate(draft(category_id=99), users, categories, today=TODAY)
        assert not result.is_valid
        assert ("category_id", "unknown_reference", "error") in issue_types(result)


class TestSanityChecks:
    """Warnings that don't block saving."""

    def test_zero_amount(self, validator, users, categories):
        result = validator.validate(draft(amount=0), users, categories, today=TODAY)
        assert result.is_valid
        assert ("amount", "suspicious_value", "warning") in issue_types(result)

    def test_high_amount(self, validator, users, categories):
        result = validator.validate(draft(amount=Decimal("1500")), users, categories, today=TODAY)
        assert result.is_valid
        assert any("unusually high" in w for w in result.warnings)

    def test_future_date(self, validator, users, categories):
        result = validator.validate(
            draft(incurred_date=date(2025, 3, 20)), users, categories, today=TODAY
        )
        assert ("incurred_date", "future_date", "warning") in issue_types(result)

    def test_tomorrow_is_tolerated(self, validator, users, categories):
        result = validator.validate(
            draft(incurred_date=date(2025, 3, 11)), users, categories, today=TODAY
        )
        assert result.issues == []

    def test_payer_outside_participants(self, validator, users, categories):
        everyone = users + [User(id=3, name="Guest")]
        result = validator.validate(draft(payer_id=3), everyone, categories, today=TODAY)
        assert result.is_valid
        assert ("payer_id", "outside_participants", "warning") in issue_types(result)

    def test_duplicate(self, validator, users, categories, make_expense):
        existing = [make_expense(
            payer_id=1,
            amount="25.00",
            incurred_date=TODAY,
            description="hofer/spar",
        )]
        result = validator.validate(draft(), users, categories, existing, today=TODAY)
        assert result.is_valid
        assert ("duplicate", "potential_duplicate", "warning") in issue_types(result)

    def test_different_payer_is_not_duplicate(self, validator, users, categories, make_expense):
        existing = [make_expense(payer_id=2, amount="25.00", incurred_date=TODAY,
                                 description="Hofer/Spar")]
        result = validator.validate(draft(), users, categories, existing, today=TODAY)
        assert result.issues == []


class TestSummary:
    """Form messages."""

    def test_clean_summary(self, validator, users, categories):
        result = validator.validate(draft(), users, categories, today=TODAY)
        assert validator.get_user_friendly_summary(result) == "✅ All checks passed."

    def test_error_summary(self, validator, users, categories):
        result = validator.validate(draft(payer_id=99), users, categories, today=TODAY)
        summary = validator.get_user_friendly_summary(result)
        assert summary.startswith("❌")
        assert "Payer 99 is not a known user" in summary

    def test_warning_summary(self, validator, users, categories):
        result = validator.validate(draft(amount=0), users, categories, today=TODAY)
        summary = validator.get_user_friendly_summary(result)
        assert "Amount is zero" in summary
        assert "You can still save" in summary
