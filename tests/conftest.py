"""Shared fixtures: in-memory backend, both profiles, quiet audit logger."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from fintrack.audit import AuditLogger
from fintrack.models.ledger import Transaction, TransactionType
from fintrack.models.profile import ProfileContext
from fintrack.services.storage import InMemoryKeyValueStore


@pytest.fixture
def backend():
    return InMemoryKeyValueStore()


@pytest.fixture
def real():
    return ProfileContext.real()


@pytest.fixture
def foreign():
    return ProfileContext.foreign()


@pytest.fixture
def audit():
    return AuditLogger()


@pytest.fixture
def make_tx():
    """Factory for transactions with sensible defaults."""

    def _make(
        amount="100",
        type=TransactionType.EXPENSE,
        bank_account="Main Bank",
        day=date(2024, 5, 10),
        **fields,
    ) -> Transaction:
        if type == TransactionType.EXPENSE:
            fields.setdefault("tag", "Need")
            fields.setdefault("category", "Food & Dining")
        return Transaction(
            amount=Decimal(amount),
            type=type,
            bank_account=bank_account,
            date=datetime.combine(day, datetime.min.time()),
            **fields,
        )

    return _make
