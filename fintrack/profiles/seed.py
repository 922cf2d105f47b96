"""
Demo data for the foreign profile.

The foreign profile is what gets shown when someone else is looking at
the screen, so it must look like a plausible, self-consistent ledger:
every account it uses is declared in its settings and every parked entry
points at one of its goals.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from fintrack.models.ledger import (
    GOAL_CONTRIBUTION_CATEGORY,
    ExpenseTag,
    Goal,
    Transaction,
    TransactionType,
    User,
    UserSettings,
)

DEMO_USER_ID = "123456789"
DEMO_USER_NAME = "Demo User"
DEMO_USER_EMAIL = "user@example.com"


@dataclass
class DemoDataset:
    user: User
    settings: UserSettings
    goals: list[Goal]
    transactions: list[Transaction]


def _on(day: date, days_ago: int) -> datetime:
    return datetime.combine(day - timedelta(days=days_ago), time(hour=12))


def build_demo_dataset(today: date) -> DemoDataset:
    """Six transactions (2 income, 2 expense, 2 parked) dated back from today."""
    emergency = Goal(name="Emergency Fund", target_amount=Decimal("5000"))
    laptop = Goal(name="New Laptop", target_amount=Decimal("1500"))

    transactions = [
        Transaction(
            amount=Decimal("4200"),
            type=TransactionType.INCOME,
            category="Salary",
            date=_on(today, 20),
            note="Monthly salary",
            bank_account="Main Bank",
        ),
        Transaction(
            amount=Decimal("1200"),
            type=TransactionType.EXPENSE,
            category="Bills & Utilities",
            date=_on(today, 18),
            note="Rent share",
            tag=ExpenseTag.NEED.value,
            bank_account="Main Bank",
        ),
        Transaction(
            amount=Decimal("500"),
            type=TransactionType.PARKED,
            category=GOAL_CONTRIBUTION_CATEGORY,
            date=_on(today, 15),
            note="Emergency savings",
            bank_account="Vault",
            goal_id=emergency.id,
        ),
        Transaction(
            amount=Decimal("650"),
            type=TransactionType.INCOME,
            category="Freelance",
            date=_on(today, 9),
            note="Website project",
            bank_account="Main Bank",
        ),
        Transaction(
            amount=Decimal("300"),
            type=TransactionType.PARKED,
            category=GOAL_CONTRIBUTION_CATEGORY,
            date=_on(today, 5),
            note="Laptop fund",
            bank_account="Main Bank",
            goal_id=laptop.id,
        ),
        Transaction(
            amount=Decimal("86.40"),
            type=TransactionType.EXPENSE,
            category="Food & Dining",
            date=_on(today, 3),
            note="Groceries",
            tag=ExpenseTag.WANT.value,
            bank_account="Cash",
        ),
    ]
    # The log is kept most recently added first
    transactions.reverse()

    return DemoDataset(
        user=User(id=DEMO_USER_ID, name=DEMO_USER_NAME, email=DEMO_USER_EMAIL),
        settings=UserSettings(privacy_mode_enabled=True),
        goals=[emergency, laptop],
        transactions=transactions,
    )
