"""Tests for goal progress."""

from decimal import Decimal

from fintrack.ledger import all_goal_progress, goal_progress
from fintrack.ledger.goals import progress_percent
from fintrack.models.ledger import Goal, TransactionType


def _park(make_tx, amount, goal, account="Vault"):
    return make_tx(amount, type=TransactionType.PARKED, bank_account=account, goal_id=goal.id)


class TestGoalProgress:
    """Tests for the goal tracker."""

    def test_overfunded_goal_caps_percent(self, make_tx):
        """Test target 500 with 300 + 400 parked: 100%, 700 saved."""
        goal = Goal(name="Bike", target_amount=Decimal("500"))
        log = [_park(make_tx, "300", goal), _park(make_tx, "400", goal, account="Cash")]

        progress = goal_progress(goal, log)
        assert progress.saved == Decimal("700")
        assert progress.percent == 100.0
        assert progress.remaining == Decimal("0")
        assert progress.reached
        assert progress.per_account == {"Vault": Decimal("300"), "Cash": Decimal("400")}

    def test_partial_progress(self, make_tx):
        goal = Goal(name="Trip", target_amount=Decimal("2000"))
        progress = goal_progress(goal, [_park(make_tx, "500", goal)])
        assert progress.percent == 25.0
        assert progress.remaining == Decimal("1500")
        assert not progress.reached

    def test_missing_account_goes_to_unknown(self, make_tx):
        """Test the bucket for parked entries without an account."""
        goal = Goal(name="Trip", target_amount=Decimal("100"))
        progress = goal_progress(goal, [_park(make_tx, "40", goal, account=None)])
        assert progress.per_account == {"Unknown": Decimal("40")}

    def test_other_goals_and_types_are_ignored(self, make_tx):
        goal = Goal(name="Trip", target_amount=Decimal("100"))
        other = Goal(name="Bike", target_amount=Decimal("100"))
        log = [
            _park(make_tx, "40", other),
            make_tx("60", type=TransactionType.INCOME, goal_id=goal.id),
        ]
        assert goal_progress(goal, log).saved == Decimal("0")

    def test_zero_target(self):
        """Test that a zero target doesn't divide by zero."""
        assert progress_percent(Decimal("0"), Decimal("0")) == 0.0
        assert progress_percent(Decimal("1"), Decimal("0")) == 100.0

    def test_all_goal_progress_keeps_goal_order(self, make_tx):
        goals = [
            Goal(name="A", target_amount=Decimal("10")),
            Goal(name="B", target_amount=Decimal("10")),
        ]
        assert [p.name for p in all_goal_progress(goals, [])] == ["A", "B"]
