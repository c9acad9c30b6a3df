"""
Expense Validation

DESIGN DECISION: Validation happens in two stages, like any record a
person types in by hand:

STAGE 1 - REFERENCES:
- The payer must be a known user
- The category must be a known category
Failing either is an error; the store would accept the row but the
ledger could never attribute it.

STAGE 2 - SANITY:
- Zero amounts
- Dates in the future
- Unusually large amounts
- A payer outside the two participants (contributes nothing)
- Likely duplicates of an existing expense
These are warnings; the user may still save.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for human review.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from splitledger.config import AppSettings, get_settings
from splitledger.models.ledger import (
    Category,
    Expense,
    ExpenseCreate,
    User,
    ValidationIssue,
    ValidationResult,
)
from splitledger.settlement.engine import participants


class ExpenseValidator:
    """Validates an expense draft against the current ledger."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_references(
        self,
        draft: ExpenseCreate,
        users: list[User],
        categories: list[Category],
    ) -> list[ValidationIssue]:
        issues = []

        if not any(user.id == draft.payer_id for user in users):
            issues.append(ValidationIssue(
                field="payer_id",
                issue_type="unknown_reference",
                message=f"Payer {draft.payer_id} is not a known user",
                severity="error",
                suggested_fix="Pick who paid from the list of users",
            ))

        if not any(category.id == draft.category_id for category in categories):
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="unknown_reference",
                message=f"Category {draft.category_id} does not exist",
                severity="error",
                suggested_fix="Pick an existing category or add a new one first",
            ))

        return issues

    def _validate_sanity(
        self,
        draft: ExpenseCreate,
        users: list[User],
        existing: list[Expense],
        today: date,
    ) -> list[ValidationIssue]:
        issues = []

        if draft.amount == 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message="Amount is zero",
                severity="warning",
                suggested_fix="Enter what was paid",
            ))

        max_amount = Decimal(str(self._settings.max_expense_amount))
        if draft.amount > max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({draft.amount:,.2f}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if draft.incurred_date > max_future_date:
            issues.append(ValidationIssue(
                field="incurred_date",
                issue_type="future_date",
                message=f"Date ({draft.incurred_date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        user1_id, user2_id = participants(users)
        known = any(user.id == draft.payer_id for user in users)
        if known and draft.payer_id not in (user1_id, user2_id):
            issues.append(ValidationIssue(
                field="payer_id",
                issue_type="outside_participants",
                message="Payer is not one of the two people sharing the balance",
                severity="warning",
                suggested_fix="This expense will not change the balance",
            ))

        for expense in existing:
            if (
                expense.payer_id == draft.payer_id
                and expense.amount == draft.amount
                and expense.incurred_date == draft.incurred_date
                and expense.description.lower() == draft.description.lower()
            ):
                issues.append(ValidationIssue(
                    field="duplicate",
                    issue_type="potential_duplicate",
                    message=(
                        f"An expense of {expense.amount:,.2f} on "
                        f"{expense.incurred_date} is already recorded"
                    ),
                    severity="warning",
                    suggested_fix="Please verify this isn't a duplicate entry",
                ))
                break

        return issues

    def validate(
        self,
        draft: ExpenseCreate,
        users: list[User],
        categories: list[Category],
        existing: Optional[list[Expense]] = None,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run both validation stages.

        Args:
            draft: The expense about to be saved
            users: Known users
            categories: Known categories
            existing: Current expenses, for duplicate detection
            today: Reference date (defaults to date.today())

        Returns:
            ValidationResult with all issues found
        """
        all_issues = self._validate_references(draft, users, categories)
        all_issues.extend(self._validate_sanity(
            draft,
            users,
            existing or [],
            today or date.today(),
        ))

        warnings = [i.message for i in all_issues if i.severity == "warning"]
        is_valid = not any(i.severity == "error" for i in all_issues)

        return ValidationResult(
            is_valid=is_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """Summary shown above the expense form."""
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []

        if result.has_errors:
            lines.append("❌ This expense can't be saved yet:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        if result.is_valid:
            lines.append("")
            lines.append("You can still save, but please double-check.")

        return "\n".join(lines).strip()
