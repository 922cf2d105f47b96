"""
Ledger Package

Pure computations over the transaction log: dashboard totals, account
balances, category and tag breakdowns, goal progress.
"""

from fintrack.ledger.engine import (
    AccountBalance,
    CategoryTotal,
    DashboardTotals,
    TagUsage,
    account_balances,
    category_breakdown,
    dashboard_totals,
    filter_by_scope,
    filter_by_type,
    most_recent,
    sort_by_date,
    tag_breakdown,
)
from fintrack.ledger.formatting import format_amount, option_index
from fintrack.ledger.goals import GoalProgress, all_goal_progress, goal_progress
from fintrack.ledger.windows import TimeWindow, WindowKind

__all__ = [
    # Engine
    "AccountBalance",
    "CategoryTotal",
    "DashboardTotals",
    "TagUsage",
    "account_balances",
    "category_breakdown",
    "dashboard_totals",
    "filter_by_scope",
    "filter_by_type",
    "most_recent",
    "sort_by_date",
    "tag_breakdown",
    # Goals
    "GoalProgress",
    "all_goal_progress",
    "goal_progress",
    # Windows
    "TimeWindow",
    "WindowKind",
    # Display
    "format_amount",
    "option_index",
]
