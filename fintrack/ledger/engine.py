"""
Ledger Engine

DESIGN DECISION: Nothing derived is stored. Totals, balances and
breakdowns are recomputed from the full transaction log on every read.
A personal ledger holds a few thousand entries at most, and a view that
is always recomputed can never drift out of sync with the log.

All functions here are pure: no I/O, no clock (callers pass "today"),
Decimal arithmetic throughout. Percentages are floats and are 0.0, never
NaN, when the denominator is zero.
"""

from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel, Field

from fintrack.ledger.windows import TimeWindow
from fintrack.models.ledger import (
    DashboardScope,
    ExpenseTag,
    Transaction,
    TransactionType,
    UserSettings,
)

ZERO = Decimal("0")


# =============================================================================
# RESULT MODELS
# =============================================================================

class DashboardTotals(BaseModel):
    """Headline numbers of the dashboard for the configured scope."""

    total_income: Decimal = ZERO
    total_expense: Decimal = ZERO
    total_parked: Decimal = ZERO
    transfer_net: Decimal = Field(
        default=ZERO,
        description="Transfers into the primary account minus transfers out; 0 in ALL scope"
    )
    balance: Decimal = ZERO
    scope: DashboardScope = DashboardScope.ALL
    primary_account: str


class AccountBalance(BaseModel):
    """Global (scope-independent) figures for one declared bank account."""

    account: str
    income: Decimal = ZERO
    expense: Decimal = ZERO
    parked: Decimal = ZERO
    balance: Decimal = ZERO


class CategoryTotal(BaseModel):
    category: str
    amount: Decimal
    percentage: float = 0.0


class TagUsage(BaseModel):
    """How much of the window's spending went to one budget tag."""

    tag: str
    amount: Decimal = ZERO
    percentage: float = 0.0
    limit: int = Field(default=0, description="Configured share in percent, 0 when unset")
    over_limit: bool = False
    known: bool = Field(default=True, description="False for tags outside ExpenseTag")


# =============================================================================
# HELPERS
# =============================================================================

def _sum(transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in transactions), ZERO)


def percentage_of(part: Decimal, whole: Decimal) -> float:
    """part/whole in percent; 0.0 when whole is zero."""
    if whole <= ZERO:
        return 0.0
    return float(part / whole * 100)


def in_window(
    transactions: Iterable[Transaction],
    window: TimeWindow,
    today: date,
) -> list[Transaction]:
    return [t for t in transactions if window.contains(t.day, today)]


# =============================================================================
# DASHBOARD
# =============================================================================

def filter_by_scope(
    transactions: Sequence[Transaction],
    settings: UserSettings,
) -> list[Transaction]:
    """ALL passes everything; PRIMARY keeps entries touching the primary account."""
    if settings.dashboard_scope == DashboardScope.ALL:
        return list(transactions)
    primary = settings.primary_account
    return [t for t in transactions if t.references_account(primary)]


def dashboard_totals(
    transactions: Sequence[Transaction],
    settings: UserSettings,
) -> DashboardTotals:
    """
    Income, expense and parked sums plus the resulting balance.

    In PRIMARY scope the three sums only count entries booked on the
    primary account, and transfers contribute (in - out) of that account.
    In ALL scope transfers move money between owned accounts and net to 0.
    """
    scoped = filter_by_scope(transactions, settings)
    primary = settings.primary_account
    is_primary = settings.dashboard_scope == DashboardScope.PRIMARY

    def of_type(kind: TransactionType) -> Decimal:
        return _sum(
            t for t in scoped
            if t.type == kind and (not is_primary or t.bank_account == primary)
        )

    transfer_net = ZERO
    if is_primary:
        transfers = [t for t in scoped if t.type == TransactionType.TRANSFER]
        transfer_net = (
            _sum(t for t in transfers if t.to_account == primary)
            - _sum(t for t in transfers if t.bank_account == primary)
        )

    income = of_type(TransactionType.INCOME)
    expense = of_type(TransactionType.EXPENSE)
    parked = of_type(TransactionType.PARKED)

    return DashboardTotals(
        total_income=income,
        total_expense=expense,
        total_parked=parked,
        transfer_net=transfer_net,
        balance=income - expense - parked + transfer_net,
        scope=settings.dashboard_scope,
        primary_account=primary,
    )


def filter_by_type(
    transactions: Sequence[Transaction],
    transaction_type: Optional[TransactionType] = None,
) -> list[Transaction]:
    """None means no filter."""
    if transaction_type is None:
        return list(transactions)
    return [t for t in transactions if t.type == transaction_type]


def sort_by_date(transactions: Sequence[Transaction]) -> list[Transaction]:
    """Newest date first; ties keep log order (most recently added first)."""
    return sorted(transactions, key=lambda t: t.sort_key, reverse=True)


def most_recent(transactions: Sequence[Transaction], limit: int) -> list[Transaction]:
    """The first `limit` entries of the log, i.e. the most recently added."""
    return list(transactions[:max(limit, 0)])


# =============================================================================
# ANALYTICS
# =============================================================================

def account_balances(
    transactions: Sequence[Transaction],
    settings: UserSettings,
) -> list[AccountBalance]:
    """
    income - expense - parked per declared bank account.

    Always computed over the whole log, whatever the dashboard scope.
    """
    balances = []
    for account in settings.bank_accounts:
        booked = [t for t in transactions if t.bank_account == account]
        income = _sum(t for t in booked if t.type == TransactionType.INCOME)
        expense = _sum(t for t in booked if t.type == TransactionType.EXPENSE)
        parked = _sum(t for t in booked if t.type == TransactionType.PARKED)
        balances.append(
            AccountBalance(
                account=account,
                income=income,
                expense=expense,
                parked=parked,
                balance=income - expense - parked,
            )
        )
    return balances


def category_breakdown(
    transactions: Sequence[Transaction],
    window: TimeWindow,
    today: date,
) -> list[CategoryTotal]:
    """Expense totals per category in the window, largest first."""
    expenses = [
        t for t in in_window(transactions, window, today)
        if t.type == TransactionType.EXPENSE
    ]
    total = _sum(expenses)

    buckets: "OrderedDict[str, Decimal]" = OrderedDict()
    for t in expenses:
        buckets[t.category] = buckets.get(t.category, ZERO) + t.amount

    rows = [
        CategoryTotal(
            category=category,
            amount=amount,
            percentage=percentage_of(amount, total),
        )
        for category, amount in buckets.items()
    ]
    return sorted(rows, key=lambda row: row.amount, reverse=True)


def tag_breakdown(
    transactions: Sequence[Transaction],
    settings: UserSettings,
    window: TimeWindow,
    today: date,
) -> list[TagUsage]:
    """
    Spending per budget tag in the window.

    Every ExpenseTag gets a row (in enum order) even at zero; each unknown
    tag found in the data gets its own row after them. Untagged expenses
    count toward the total only, so the percentages sum to at most 100.
    """
    expenses = [
        t for t in in_window(transactions, window, today)
        if t.type == TransactionType.EXPENSE
    ]
    total = _sum(expenses)

    buckets: "OrderedDict[str, Decimal]" = OrderedDict(
        (tag.value, ZERO) for tag in ExpenseTag
    )
    for t in expenses:
        if t.tag:
            buckets[t.tag] = buckets.get(t.tag, ZERO) + t.amount

    known = {tag.value for tag in ExpenseTag}
    usage = []
    for tag, amount in buckets.items():
        pct = percentage_of(amount, total)
        limit = settings.tag_limit(tag)
        usage.append(
            TagUsage(
                tag=tag,
                amount=amount,
                percentage=pct,
                limit=limit,
                over_limit=amount > ZERO and pct > limit,
                known=tag in known,
            )
        )
    return usage
