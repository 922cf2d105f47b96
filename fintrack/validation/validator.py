"""
Two-Stage Draft Validation

DESIGN DECISION: Validation happens in two distinct stages, before any
store is touched:

STAGE 1 - SHAPE VALIDATION:
- Amount present and positive
- The fields the transaction type needs (account, goal, destination)
- Known budget tag
These are errors; a draft with any of them is never written.

STAGE 2 - CONSISTENCY WITH SETTINGS:
- Account and category declared in the profile's settings
- Date not in the future
These are warnings. Imported data and renamed categories make such
drafts legitimate, so the user decides.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them; TransactionDraft.to_transaction() only drops fields
that don't belong to the chosen type.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from fintrack.models.ledger import (
    CategoryKind,
    ExpenseTag,
    Goal,
    TransactionDraft,
    TransactionType,
    UserSettings,
    ValidationIssue,
    ValidationResult,
)

KNOWN_TAGS = {tag.value for tag in ExpenseTag}


def _error(field: str, issue_type: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field, issue_type=issue_type, message=message, severity="error")


def _warning(field: str, issue_type: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field, issue_type=issue_type, message=message, severity="warning")


class TransactionValidator:
    """
    Checks transaction drafts and goal definitions from the forms.

    Stage 2 only runs when stage 1 found no errors.
    """

    def _validate_shape(
        self,
        draft: TransactionDraft,
        goals: Sequence[Goal],
    ) -> list[ValidationIssue]:
        issues = []

        if draft.amount is None:
            issues.append(_error("amount", "missing", "Please enter an amount"))
        elif not draft.amount.is_finite() or draft.amount <= 0:
            issues.append(_error("amount", "invalid_value", "Amount must be greater than zero"))

        if not draft.bank_account:
            message = {
                TransactionType.INCOME: "Please choose the account the money went into",
                TransactionType.PARKED: "Please choose where the money is parked",
            }.get(draft.type, "Please choose the account the money came from")
            issues.append(_error("bank_account", "missing", message))

        if draft.type == TransactionType.TRANSFER:
            if not draft.to_account:
                issues.append(_error("to_account", "missing", "Please choose a destination account"))
            elif draft.to_account == draft.bank_account:
                issues.append(_error(
                    "to_account", "same_account", "Source and destination accounts must differ"
                ))

        elif draft.type == TransactionType.PARKED:
            if not draft.goal_id:
                issues.append(_error("goal_id", "missing", "Please select a goal"))
            elif not any(goal.id == draft.goal_id for goal in goals):
                issues.append(_error("goal_id", "unknown_goal", "The selected goal no longer exists"))
            # to_account optionally names where the money was taken from
            if draft.to_account and draft.to_account == draft.bank_account:
                issues.append(_error(
                    "bank_account",
                    "same_account",
                    "Money can't be parked in the account it came from",
                ))

        elif draft.type == TransactionType.EXPENSE:
            if draft.tag and draft.tag not in KNOWN_TAGS:
                issues.append(_error(
                    "tag", "invalid_value", f"Unknown budget tag: {draft.tag}"
                ))

        return issues

    def _validate_against_settings(
        self,
        draft: TransactionDraft,
        settings: UserSettings,
        today: date,
    ) -> list[ValidationIssue]:
        issues = []

        if draft.type == TransactionType.PARKED:
            if draft.bank_account not in settings.park_accounts:
                issues.append(_warning(
                    "bank_account",
                    "undeclared_account",
                    f"{draft.bank_account} is not one of your park accounts",
                ))
        elif draft.bank_account not in settings.bank_accounts:
            issues.append(_warning(
                "bank_account",
                "undeclared_account",
                f"{draft.bank_account} is not one of your bank accounts",
            ))

        if draft.type == TransactionType.TRANSFER and draft.to_account not in settings.bank_accounts:
            issues.append(_warning(
                "to_account",
                "undeclared_account",
                f"{draft.to_account} is not one of your bank accounts",
            ))

        kind = {
            TransactionType.EXPENSE: CategoryKind.EXPENSE,
            TransactionType.INCOME: CategoryKind.INCOME,
        }.get(draft.type)
        if kind and draft.category and draft.category not in settings.categories_for(kind):
            issues.append(_warning(
                "category",
                "undeclared_category",
                f"{draft.category} is not one of your {kind.value} categories",
            ))

        if draft.date and draft.date.date() > today:
            issues.append(_warning(
                "date", "future_date", f"Date ({draft.date.date()}) is in the future"
            ))

        return issues

    def validate(
        self,
        draft: TransactionDraft,
        settings: UserSettings,
        goals: Sequence[Goal] = (),
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run both stages.

        Args:
            draft: What the form submitted
            settings: Settings of the profile the draft will be written to
            goals: Goals of that profile (Parked drafts must reference one)
            today: Reference date for the future-date check

        Returns:
            ValidationResult; is_valid is False if any error was found
        """
        issues = self._validate_shape(draft, goals)
        if not any(issue.severity == "error" for issue in issues):
            issues.extend(
                self._validate_against_settings(draft, settings, today or date.today())
            )
        return ValidationResult(issues=issues)

    def validate_goal(self, name: Optional[str], target_amount: Optional[Decimal]) -> ValidationResult:
        issues = []
        if not name or not name.strip():
            issues.append(_error("name", "missing", "Please name the goal"))
        elif len(name.strip()) > 100:
            issues.append(_error("name", "invalid_value", "Goal names are at most 100 characters"))

        if target_amount is None:
            issues.append(_error("target_amount", "missing", "Please enter a target amount"))
        elif not target_amount.is_finite() or target_amount <= 0:
            issues.append(_error(
                "target_amount", "invalid_value", "Target amount must be greater than zero"
            ))
        return ValidationResult(issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Inline message for the form."""
        if result.is_valid and not result.warnings:
            return "✅ Looks good."

        lines = []
        errors = [issue.message for issue in result.issues if issue.severity == "error"]
        if errors:
            lines.append("❌ Please fix the following:")
            lines.extend(f"   • {message}" for message in errors)

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify:")
            lines.extend(f"   • {warning}" for warning in result.warnings)

        return "\n".join(lines)
