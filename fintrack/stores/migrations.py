"""
Settings Schema Migrations

DESIGN DECISION: Settings written by older versions are upgraded on read
by an explicit chain of versioned steps instead of "fill missing keys with
defaults" scattered around the code. Each step:
1. Takes the raw camelCase dict of version N and returns version N+1
2. Only fills what is missing, so a partially upgraded record is safe
3. Is tested on its own

Nothing here writes; the upgraded dict is persisted only when the user
next saves settings.
"""

from typing import Callable

import structlog

from fintrack.models.ledger import (
    DEFAULT_BANK_ACCOUNTS,
    DEFAULT_EXPENSE_CATEGORIES,
    DEFAULT_INCOME_CATEGORIES,
    DEFAULT_PRIMARY_ACCOUNT,
    GOAL_CONTRIBUTION_CATEGORY,
    SETTINGS_SCHEMA_VERSION,
    TRANSFER_CATEGORY,
    DashboardScope,
)

logger = structlog.get_logger("fintrack.migrations")

# Categories that only ever meant money coming in
INCOME_ONLY_CATEGORIES = {"Salary", "Freelance"}

# Written by the app itself, never user-selectable
SYSTEM_CATEGORIES = {GOAL_CONTRIBUTION_CATEGORY, TRANSFER_CATEGORY}


def split_legacy_categories(data: dict) -> dict:
    """
    v0 -> v1: one shared 'categories' list becomes expense and income lists.

    Known income categories go to income ("Other" to both), the rest to
    expense. A side left empty falls back to the defaults. AI advice is
    enabled unless the record says otherwise.
    """
    data = dict(data)
    legacy = data.pop("categories", None)
    if not isinstance(legacy, list):
        legacy = []
    legacy = [c for c in legacy if isinstance(c, str) and c not in SYSTEM_CATEGORIES]

    if "expenseCategories" not in data:
        expense = [c for c in legacy if c not in INCOME_ONLY_CATEGORIES]
        data["expenseCategories"] = expense or list(DEFAULT_EXPENSE_CATEGORIES)

    if "incomeCategories" not in data:
        income = [c for c in legacy if c in DEFAULT_INCOME_CATEGORIES]
        data["incomeCategories"] = income or list(DEFAULT_INCOME_CATEGORIES)

    data.setdefault("enableAI", True)
    return data


def add_primary_account_and_scope(data: dict) -> dict:
    """
    v1 -> v2: introduce the primary account and the dashboard scope.

    The primary account is "Main Bank" when declared, otherwise the first
    bank account, otherwise "Cash".
    """
    data = dict(data)
    if "primaryAccount" not in data:
        banks = data.get("bankAccounts")
        if not isinstance(banks, list):
            banks = list(DEFAULT_BANK_ACCOUNTS)
        if DEFAULT_PRIMARY_ACCOUNT in banks:
            data["primaryAccount"] = DEFAULT_PRIMARY_ACCOUNT
        elif banks:
            data["primaryAccount"] = banks[0]
        else:
            data["primaryAccount"] = "Cash"

    data.setdefault("dashboardScope", DashboardScope.ALL.value)
    return data


# version N -> step that produces version N+1
SETTINGS_MIGRATIONS: dict[int, Callable[[dict], dict]] = {
    0: split_legacy_categories,
    1: add_primary_account_and_scope,
}


def detect_version(data: dict) -> int:
    """Records written before versioning carry no schemaVersion: treat as v0."""
    version = data.get("schemaVersion", 0)
    if isinstance(version, bool) or not isinstance(version, int) or version < 0:
        return 0
    return version


def migrate_settings(data: dict) -> dict:
    """Run a raw settings dict through every step it has not seen yet."""
    version = detect_version(data)
    if version >= SETTINGS_SCHEMA_VERSION:
        return dict(data)

    migrated = dict(data)
    start = version
    while version < SETTINGS_SCHEMA_VERSION:
        migrated = SETTINGS_MIGRATIONS[version](migrated)
        version += 1
    migrated["schemaVersion"] = version

    logger.info("settings_migrated", from_version=start, to_version=version)
    return migrated
