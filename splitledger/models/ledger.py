"""
Core Data Models for Split Ledger

These models define the schemas for everything read from and written
to the shared ledger. They are designed to:
1. Accept the loose shapes the REST store actually returns
2. Serialize back to the store's column names
3. Carry derived results (balances, skip reports) as immutable values

DESIGN DECISION: Stored records are parsed leniently (aliases, nested
relations, stripped strings) because the store is shared with other
clients. Records the user creates are parsed strictly.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class SplitType(str, Enum):
    """
    How a shared expense is apportioned between the two participants.

    EVEN_SPLIT: each owes half, so the non-payer owes amount / 2.
    PAYER_COVERS_OTHER: the purchase was entirely for the other person,
    so the non-payer owes the full amount.
    """
    EVEN_SPLIT = "50-50"
    PAYER_COVERS_OTHER = "100-other"

    @classmethod
    def from_token(cls, token: Any) -> Optional["SplitType"]:
        """
        Map a stored split token to a SplitType.

        Tokens are trimmed and lowercased first. Returns None for
        anything unrecognised (including None).
        """
        if token is None:
            return None
        if isinstance(token, SplitType):
            return token
        return SPLIT_TOKEN_SYNONYMS.get(str(token).strip().lower())


# Canonical tokens plus the spellings seen in stored data
SPLIT_TOKEN_SYNONYMS: dict[str, SplitType] = {
    "50-50": SplitType.EVEN_SPLIT,
    "50/50": SplitType.EVEN_SPLIT,
    "100-other": SplitType.PAYER_COVERS_OTHER,
    "100% other": SplitType.PAYER_COVERS_OTHER,
    "100_other": SplitType.PAYER_COVERS_OTHER,
}


class SkipReason(str, Enum):
    """Why the settlement engine left a record out of the totals."""
    INVALID_PAYER = "invalid_payer"
    INVALID_AMOUNT = "invalid_amount"


# =============================================================================
# PARTICIPANTS AND CATEGORIES
# =============================================================================

class User(BaseModel):
    """A ledger participant. Only the first two (by id) share the balance."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    email: Optional[str] = Field(
        default=None,
        max_length=200,
    )


class Category(BaseModel):
    """Expense category. Used for filtering and display only."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )


# =============================================================================
# EXPENSES
# =============================================================================

class Expense(BaseModel):
    """
    A shared purchase as stored in the ledger.

    The store uses its own column names (user_id, created_at, paid,
    added_at) and embeds related rows as "users" / "categories".
    Both the store's names and ours are accepted.

    split_type is kept as the raw token; use `split` for the
    interpreted SplitType.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
    )

    id: int
    payer_id: int = Field(
        ...,
        validation_alias=AliasChoices("payer_id", "user_id", "payerId"),
        description="User who paid"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount paid, in currency units"
    )
    category_id: int = Field(
        ...,
        validation_alias=AliasChoices("category_id", "categoryId"),
    )
    incurred_date: date = Field(
        ...,
        validation_alias=AliasChoices("incurred_date", "created_at", "incurredDate"),
        description="Date of the purchase"
    )
    split_type: str = Field(
        ...,
        validation_alias=AliasChoices("split_type", "splitType"),
        description="Raw split token as stored"
    )
    description: str = Field(
        default="",
        max_length=500,
    )
    is_settled: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_settled", "paid", "isSettled"),
        description="Already reconciled outside the ledger"
    )
    recorded_at: datetime = Field(
        default_factory=utc_now,
        validation_alias=AliasChoices("recorded_at", "added_at", "recordedAt"),
        description="When the expense was entered"
    )

    # Embedded relations (optional)
    payer: Optional[User] = Field(
        default=None,
        validation_alias=AliasChoices("payer", "user", "users"),
    )
    category: Optional[Category] = Field(
        default=None,
        validation_alias=AliasChoices("category", "categories"),
    )

    @model_validator(mode='before')
    @classmethod
    def fill_payer_from_relation(cls, data: Any) -> Any:
        """Take the payer id from the embedded payer row when the column is empty."""
        if not isinstance(data, dict):
            return data
        if any(data.get(key) is not None for key in ("payer_id", "user_id", "payerId")):
            return data
        for key in ("payer", "user", "users"):
            related = data.get(key)
            if isinstance(related, dict) and related.get("id") is not None:
                return {**data, "payer_id": related["id"]}
            if isinstance(related, User):
                return {**data, "payer_id": related.id}
        return data

    @field_validator('description', mode='before')
    @classmethod
    def none_description_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator('recorded_at')
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are UTC; the store mixes both forms."""
        return v.replace(tzinfo=timezone.utc) if v.tzinfo is None else v

    @property
    def split(self) -> Optional[SplitType]:
        """Interpreted split policy, or None for an unrecognised token."""
        return SplitType.from_token(self.split_type)

    @property
    def category_name(self) -> Optional[str]:
        return self.category.name if self.category else None


class ExpenseCreate(BaseModel):
    """
    Payload for a new expense (or a full replacement of one).

    Everything is required except description (defaults to empty)
    and is_settled (new expenses start unsettled).
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    payer_id: int
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount paid"
    )
    category_id: int
    incurred_date: date
    split_type: SplitType = SplitType.EVEN_SPLIT
    description: str = Field(
        default="",
        max_length=500,
    )
    is_settled: bool = False

    @field_validator('split_type', mode='before')
    @classmethod
    def accept_split_synonyms(cls, v: Any) -> Any:
        """Accept any known spelling, but store the canonical token."""
        parsed = SplitType.from_token(v)
        return parsed if parsed is not None else v

    def to_row(self) -> dict[str, Any]:
        """Convert to the store's column names."""
        return {
            "user_id": self.payer_id,
            "amount": float(self.amount),
            "category_id": self.category_id,
            "created_at": self.incurred_date.isoformat(),
            "split_type": self.split_type.value,
            "description": self.description,
            "paid": self.is_settled,
        }


# =============================================================================
# SETTLEMENT RESULTS
# =============================================================================

class BalanceSummary(BaseModel):
    """
    Outstanding balance between the two participants.

    Derived, never persisted. net_balance is positive when user2 owes
    user1 on net, negative when user1 owes user2.
    """
    model_config = ConfigDict(frozen=True)

    user1_owes: float = 0.0
    user2_owes: float = 0.0

    # Unsettled spend fronted by each participant
    user1_paid: float = 0.0
    user2_paid: float = 0.0

    @computed_field
    @property
    def net_balance(self) -> float:
        return self.user2_owes - self.user1_owes

    @classmethod
    def zero(cls) -> 'BalanceSummary':
        """The empty-state summary."""
        return cls()

    @property
    def is_zero(self) -> bool:
        return self.user1_owes == 0 and self.user2_owes == 0


class SkippedExpense(BaseModel):
    """A record the settlement engine could not use."""
    model_config = ConfigDict(frozen=True)

    expense_id: Optional[str] = Field(
        default=None,
        description="Record id as text, if the record had one"
    )
    reason: SkipReason
    raw_value: Optional[str] = Field(
        default=None,
        description="repr() of the value that failed to parse"
    )


class BalanceReport(BaseModel):
    """Balance plus an account of what was left out and why."""
    model_config = ConfigDict(frozen=True)

    summary: BalanceSummary = Field(default_factory=BalanceSummary.zero)
    skipped: list[SkippedExpense] = Field(default_factory=list)
    considered_count: int = Field(
        default=0,
        ge=0,
        description="Unsettled records examined"
    )

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'unknown_reference', 'future_date', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of validating an expense draft against the ledger."""

    validated_at: datetime = Field(
        default_factory=utc_now
    )
    is_valid: bool = Field(
        ...,
        description="No error-level issues"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    # Warnings don't block but should be shown
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
