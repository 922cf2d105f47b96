"""Tests for two-stage draft validation."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from fintrack.models.ledger import Goal, TransactionDraft, TransactionType, UserSettings
from fintrack.validation import TransactionValidator

TODAY = date(2024, 5, 20)
GOAL = Goal(id="goal-1", name="Bike", target_amount=Decimal("800"))


@pytest.fixture
def validator():
    return TransactionValidator()


def _validate(validator, **fields):
    fields.setdefault("date", datetime(2024, 5, 10))
    return validator.validate(TransactionDraft(**fields), UserSettings(), [GOAL], TODAY)


def _issue_types(result, severity):
    return {(i.field, i.issue_type) for i in result.issues if i.severity == severity}


class TestShapeErrors:
    """Stage 1: errors that block the write."""

    def test_valid_expense(self, validator):
        result = _validate(
            validator, amount=Decimal("12"), bank_account="Cash",
            category="Food & Dining", tag="Need",
        )
        assert result.is_valid
        assert result.warnings == []

    def test_missing_amount(self, validator):
        result = _validate(validator, bank_account="Cash")
        assert ("amount", "missing") in _issue_types(result, "error")

    @pytest.mark.parametrize("amount", ["0", "-5", "-0.01"])
    def test_non_positive_amount(self, validator, amount):
        result = _validate(validator, amount=Decimal(amount), bank_account="Cash")
        assert ("amount", "invalid_value") in _issue_types(result, "error")

    def test_missing_account(self, validator):
        result = _validate(validator, amount=Decimal("5"), type=TransactionType.INCOME)
        assert ("bank_account", "missing") in _issue_types(result, "error")
        assert "went into" in result.first_error

    def test_transfer_needs_destination(self, validator):
        result = _validate(
            validator, amount=Decimal("5"), type=TransactionType.TRANSFER, bank_account="Cash",
        )
        assert ("to_account", "missing") in _issue_types(result, "error")

    def test_transfer_to_same_account(self, validator):
        result = _validate(
            validator, amount=Decimal("5"), type=TransactionType.TRANSFER,
            bank_account="Cash", to_account="Cash",
        )
        assert ("to_account", "same_account") in _issue_types(result, "error")

    def test_parked_needs_known_goal(self, validator):
        missing = _validate(
            validator, amount=Decimal("5"), type=TransactionType.PARKED, bank_account="Vault",
        )
        assert ("goal_id", "missing") in _issue_types(missing, "error")

        unknown = _validate(
            validator, amount=Decimal("5"), type=TransactionType.PARKED,
            bank_account="Vault", goal_id="gone",
        )
        assert ("goal_id", "unknown_goal") in _issue_types(unknown, "error")

    def test_parked_from_same_account(self, validator):
        result = _validate(
            validator, amount=Decimal("5"), type=TransactionType.PARKED,
            bank_account="Vault", to_account="Vault", goal_id=GOAL.id,
        )
        assert ("bank_account", "same_account") in _issue_types(result, "error")

    def test_unknown_tag(self, validator):
        result = _validate(validator, amount=Decimal("5"), bank_account="Cash", tag="Luxury")
        assert ("tag", "invalid_value") in _issue_types(result, "error")

    def test_errors_skip_consistency_checks(self, validator):
        """Test that stage 2 doesn't run once stage 1 failed."""
        result = _validate(validator, bank_account="Nowhere", category="Pets")
        assert result.warnings == []


class TestSettingsWarnings:
    """Stage 2: warnings the user may accept."""

    def test_undeclared_account_and_category(self, validator):
        result = _validate(
            validator, amount=Decimal("5"), bank_account="Nowhere", category="Pets",
        )
        assert result.is_valid
        assert _issue_types(result, "warning") == {
            ("bank_account", "undeclared_account"),
            ("category", "undeclared_category"),
        }

    def test_parked_checks_park_accounts(self, validator):
        result = _validate(
            validator, amount=Decimal("5"), type=TransactionType.PARKED,
            bank_account="Vault", goal_id=GOAL.id,
        )
        assert result.warnings == []

    def test_transfer_destination_declared(self, validator):
        result = _validate(
            validator, amount=Decimal("5"), type=TransactionType.TRANSFER,
            bank_account="Cash", to_account="Offshore",
        )
        assert ("to_account", "undeclared_account") in _issue_types(result, "warning")

    def test_future_date(self, validator):
        result = _validate(
            validator, amount=Decimal("5"), bank_account="Cash", date=datetime(2024, 6, 1),
        )
        assert ("date", "future_date") in _issue_types(result, "warning")


class TestGoalValidation:
    def test_valid_goal(self, validator):
        assert validator.validate_goal("Bike", Decimal("800")).is_valid

    @pytest.mark.parametrize(
        "name,target",
        [("", Decimal("10")), ("x" * 101, Decimal("10")), ("Bike", None), ("Bike", Decimal("0"))],
    )
    def test_invalid_goal(self, validator, name, target):
        assert not validator.validate_goal(name, target).is_valid


class TestSummaryText:
    def test_summary_lists_errors_and_warnings(self, validator):
        errors = _validate(validator, bank_account="Cash")
        assert "Please enter an amount" in validator.get_user_friendly_summary(errors)

        warnings = _validate(validator, amount=Decimal("5"), bank_account="Nowhere")
        assert "Please verify" in validator.get_user_friendly_summary(warnings)
