"""Goal Tracker: how much has been parked toward each goal, and where."""

from decimal import Decimal
from typing import Sequence

from pydantic import BaseModel, Field

from fintrack.models.ledger import UNKNOWN_ACCOUNT, Goal, Transaction, TransactionType

ZERO = Decimal("0")


class GoalProgress(BaseModel):
    goal_id: str
    name: str
    target: Decimal
    saved: Decimal = ZERO
    per_account: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Parked amount per account; entries without one go to 'Unknown'"
    )
    percent: float = Field(default=0.0, ge=0, le=100)
    remaining: Decimal = ZERO

    @property
    def reached(self) -> bool:
        return self.saved >= self.target and self.saved > ZERO


def progress_percent(saved: Decimal, target: Decimal) -> float:
    """saved/target in percent, clamped to [0, 100]. A zero target is met by any saving."""
    if target <= ZERO:
        return 100.0 if saved > ZERO else 0.0
    return min(max(float(saved / target * 100), 0.0), 100.0)


def goal_progress(goal: Goal, transactions: Sequence[Transaction]) -> GoalProgress:
    parked = [
        t for t in transactions
        if t.type == TransactionType.PARKED and t.goal_id == goal.id
    ]

    per_account: dict[str, Decimal] = {}
    for t in parked:
        account = t.bank_account or UNKNOWN_ACCOUNT
        per_account[account] = per_account.get(account, ZERO) + t.amount

    saved = sum((t.amount for t in parked), ZERO)
    return GoalProgress(
        goal_id=goal.id,
        name=goal.name,
        target=goal.target_amount,
        saved=saved,
        per_account=per_account,
        percent=progress_percent(saved, goal.target_amount),
        remaining=max(goal.target_amount - saved, ZERO),
    )


def all_goal_progress(
    goals: Sequence[Goal],
    transactions: Sequence[Transaction],
) -> list[GoalProgress]:
    return [goal_progress(goal, transactions) for goal in goals]
