"""Validation package."""

from fintrack.validation.validator import TransactionValidator

__all__ = ["TransactionValidator"]
