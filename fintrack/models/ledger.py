"""
Core Data Models for FinTrack

These models define the schemas for every record the ledger persists.
They are designed to:
1. Load anything an older version (or an import) may have written
2. Serialize to the camelCase JSON layout used on disk and in exports
3. Keep amounts exact (Decimal in Python, plain JSON numbers on disk)

DESIGN DECISION: The stored Transaction model is lenient about shape.
A tag on an income, or a transfer into its own source account, can only
come from external data. We keep such records loadable and let the
validator reject them for NEW drafts instead.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional, Union
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS & CONSTANTS
# =============================================================================

class TransactionType(str, Enum):
    """The four kinds of movement the ledger understands."""
    INCOME = "income"
    EXPENSE = "expense"
    PARKED = "parked"      # Earmarked for a goal, still sitting in an account
    TRANSFER = "transfer"  # Between two owned accounts


class ExpenseTag(str, Enum):
    """
    Budget classification for expenses (the 50/30/20 rule plus adjustments).

    Stored on transactions as plain strings so that unknown tags from
    imported data survive a round trip.
    """
    NEED = "Need"
    WANT = "Want"
    INVEST = "Invest"
    ADJUSTMENT = "Adjustments"


class DashboardScope(str, Enum):
    """Whether dashboard totals cover every account or only the primary one."""
    ALL = "ALL"
    PRIMARY = "PRIMARY"


def _amount_to_number(value: Decimal) -> Union[int, float]:
    """Whole amounts as JSON integers, the rest as floats."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# Decimal in Python; a JSON number in stored records and exports
Amount = Annotated[Decimal, PlainSerializer(_amount_to_number, when_used="json")]


class CategoryKind(str, Enum):
    """Which category list a user-defined category belongs to."""
    EXPENSE = "expense"
    INCOME = "income"


DEFAULT_NOTE = "No description"
GOAL_CONTRIBUTION_CATEGORY = "Goal Contribution"
TRANSFER_CATEGORY = "Inter Account Transfer"
DEFAULT_INCOME_CATEGORY = "Salary"
UNKNOWN_ACCOUNT = "Unknown"

# Accounts the UI never lets the user delete (renaming is still allowed)
PROTECTED_ACCOUNTS = ("Cash", "Main Bank")

DEFAULT_BANK_ACCOUNTS = ["Cash", "Main Bank"]
DEFAULT_PARK_ACCOUNTS = ["Cash", "Main Bank", "Vault"]
DEFAULT_PRIMARY_ACCOUNT = "Main Bank"
DEFAULT_EXPENSE_CATEGORIES = [
    "Food & Dining",
    "Transportation",
    "Shopping",
    "Bills & Utilities",
    "Entertainment",
    "Health",
    "Other",
]
DEFAULT_INCOME_CATEGORIES = ["Salary", "Freelance", "Other"]
DEFAULT_TAG_LIMITS = {
    ExpenseTag.NEED.value: 50,
    ExpenseTag.WANT.value: 30,
    ExpenseTag.INVEST.value: 20,
    ExpenseTag.ADJUSTMENT.value: 0,
}

# Bumped whenever a settings field is added that needs a migration step
SETTINGS_SCHEMA_VERSION = 2


def new_record_id() -> str:
    """Opaque, never-reused identifier for transactions, goals and cards."""
    return str(uuid4())


def _dedupe(values: list[str]) -> list[str]:
    """Strip blanks and duplicates while keeping the user's order."""
    seen: list[str] = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.append(value)
    return seen


def _coerce_datetime(value):
    """Accept date-only values/strings wherever a datetime is stored."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, str) and len(value.strip()) == 10:
        return datetime.combine(date.fromisoformat(value.strip()), time())
    return value


class _CamelModel(BaseModel):
    """Base for persisted records: snake_case in Python, camelCase on disk."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_record(self) -> dict:
        """JSON-ready dict in the persisted layout."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(_CamelModel):
    """
    One entry of the ledger.

    Immutable by id: the only way to change a transaction is to replace
    the whole record through TransactionStore.update().

    Field usage by type:
    - tag:          Expense only
    - bank_account: source for Expense/Transfer, deposit target for Income,
                    the account the money is parked in for Parked
    - to_account:   Transfer only (destination)
    - goal_id:      Parked only
    """

    id: str = Field(default_factory=new_record_id)
    amount: Amount = Field(..., gt=0, description="Always positive; direction comes from type")
    type: TransactionType
    category: str = ""
    date: datetime = Field(..., description="Only the date part is used for filtering")
    note: str = DEFAULT_NOTE

    tag: Optional[str] = None
    bank_account: Optional[str] = None
    to_account: Optional[str] = None
    goal_id: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def accept_plain_dates(cls, v):
        return _coerce_datetime(v)

    @field_validator("note")
    @classmethod
    def default_note(cls, v: str) -> str:
        return v or DEFAULT_NOTE

    @property
    def day(self):
        """Calendar date of the transaction."""
        return self.date.date()

    @property
    def sort_key(self) -> datetime:
        """Naive UTC timestamp so aware and naive dates sort together."""
        if self.date.tzinfo is not None:
            return self.date.astimezone(timezone.utc).replace(tzinfo=None)
        return self.date

    def references_account(self, account: str) -> bool:
        return self.bank_account == account or self.to_account == account


class TransactionDraft(BaseModel):
    """
    What the add/edit form submits.

    Every field is optional because the form may be incomplete;
    TransactionValidator decides whether it can become a Transaction.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Optional[Decimal] = None
    type: TransactionType = TransactionType.EXPENSE
    category: Optional[str] = None
    date: Optional[datetime] = None
    note: Optional[str] = None
    tag: Optional[str] = None
    bank_account: Optional[str] = None
    to_account: Optional[str] = None
    goal_id: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def accept_plain_dates(cls, v):
        return _coerce_datetime(v)

    def to_transaction(self, transaction_id: Optional[str] = None) -> Transaction:
        """
        Build the stored record, keeping only the fields that belong to the type.

        Call only after the draft passed validation.
        """
        fields = {
            "amount": self.amount,
            "type": self.type,
            "date": self.date or datetime.now(),
            "note": self.note or DEFAULT_NOTE,
            "bank_account": self.bank_account,
        }
        if transaction_id:
            fields["id"] = transaction_id

        if self.type == TransactionType.EXPENSE:
            fields["category"] = self.category or DEFAULT_EXPENSE_CATEGORIES[-1]
            fields["tag"] = self.tag or ExpenseTag.NEED.value
        elif self.type == TransactionType.INCOME:
            fields["category"] = self.category or DEFAULT_INCOME_CATEGORY
        elif self.type == TransactionType.PARKED:
            fields["category"] = GOAL_CONTRIBUTION_CATEGORY
            fields["goal_id"] = self.goal_id
        else:
            fields["category"] = TRANSFER_CATEGORY
            fields["to_account"] = self.to_account

        return Transaction(**fields)


# =============================================================================
# GOALS, USER, SETTINGS
# =============================================================================

class Goal(_CamelModel):
    """A savings target. Goals are added and deleted, never edited."""

    id: str = Field(default_factory=new_record_id)
    name: str = Field(..., min_length=1, max_length=100)
    target_amount: Amount = Field(..., ge=0)
    deadline: Optional[date] = Field(
        default=None,
        description="Advisory only; nothing enforces it"
    )


class User(_CamelModel):
    """The signed-in user of a profile."""

    id: str
    name: str
    email: str
    photo_url: Optional[str] = None


class UserSettings(_CamelModel):
    """
    The single configuration record of a profile.

    Fields missing from older data fall back to these defaults; structural
    changes go through fintrack.stores.migrations first.
    """

    schema_version: int = SETTINGS_SCHEMA_VERSION

    currency_code: str = "USD"
    currency_symbol: str = "$"

    bank_accounts: list[str] = Field(default_factory=lambda: list(DEFAULT_BANK_ACCOUNTS))
    park_accounts: list[str] = Field(default_factory=lambda: list(DEFAULT_PARK_ACCOUNTS))

    expense_categories: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXPENSE_CATEGORIES)
    )
    income_categories: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INCOME_CATEGORIES)
    )

    tag_limits: dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_TAG_LIMITS))

    privacy_mode_enabled: bool = False
    enable_ai: bool = Field(default=True, alias="enableAI")

    primary_account: str = DEFAULT_PRIMARY_ACCOUNT
    dashboard_scope: DashboardScope = DashboardScope.ALL

    @field_validator(
        "bank_accounts", "park_accounts", "expense_categories", "income_categories"
    )
    @classmethod
    def unique_names(cls, v: list[str]) -> list[str]:
        return _dedupe(v)

    @field_validator("tag_limits")
    @classmethod
    def limits_are_percentages(cls, v: dict[str, int]) -> dict[str, int]:
        merged = dict(DEFAULT_TAG_LIMITS)
        for tag, limit in v.items():
            merged[tag] = min(max(int(limit), 0), 100)
        return merged

    @model_validator(mode="after")
    def primary_is_declared(self) -> "UserSettings":
        """primary_account must name a declared bank account."""
        if self.bank_accounts and self.primary_account not in self.bank_accounts:
            self.primary_account = self.bank_accounts[0]
        return self

    def tag_limit(self, tag: str) -> int:
        return self.tag_limits.get(tag, 0)

    def categories_for(self, kind: CategoryKind) -> list[str]:
        if kind == CategoryKind.INCOME:
            return self.income_categories
        return self.expense_categories


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in a draft."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'same_account')"
    )
    message: str = Field(
        ...,
        description="Human-readable description shown inline in the form"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning)$",
        description="Errors block the write, warnings don't"
    )


class ValidationResult(BaseModel):
    """Outcome of validating a draft before any store mutation."""

    validated_at: datetime = Field(
        default_factory=datetime.now
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    @property
    def first_error(self) -> Optional[str]:
        for issue in self.issues:
            if issue.severity == "error":
                return issue.message
        return None
