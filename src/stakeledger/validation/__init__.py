"""Validation and sanity checks for the staking ledger."""

from .sanity_checks import LedgerChecker, ValidationWarning, format_warnings

__all__ = [
    "LedgerChecker",
    "ValidationWarning",
    "format_warnings"
]
