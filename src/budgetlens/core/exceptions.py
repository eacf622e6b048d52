"""Custom exception classes for categorization and rule learning.

This module defines the hierarchy of exceptions raised by the engine.
Each exception carries an error code defined in errors.py.
"""

from typing import Any


class CategorizationError(Exception):
    """Base exception for all categorization engine errors.

    Attributes:
        error_code: Code from the error catalog (e.g., "RULE_001")
        details: Additional context about the error (for logging)
    """

    def __init__(self, error_code: str, details: dict[str, Any] | None = None):
        """Initialize the exception.

        Args:
            error_code: Error code from errors.py
            details: Additional error context (not shown to users)
        """
        self.error_code = error_code
        self.details = details or {}
        super().__init__(error_code)


class InvalidRuleError(CategorizationError):
    """Raised when an explicitly created rule has a malformed pattern.

    Rules already in the store with a malformed pattern are not rejected;
    the categorizer skips them. Maps to RULE_001.
    """

    pass


class UnknownCategoryError(CategorizationError):
    """Raised when a rule targets a category that does not exist.

    Always raised before anything is persisted. Maps to RULE_002.
    """

    pass


class RuleNotFoundError(CategorizationError):
    """Raised when a rule id does not exist in the store (RULE_003)."""

    pass


class TransactionNotFoundError(CategorizationError):
    """Raised when a transaction id does not exist in the store (TXN_001)."""

    pass


class RuleStoreError(CategorizationError):
    """Raised when the store fails during learn, rule management or reapply.

    The session is rolled back before this is raised, so nothing is
    reported as written and the categorizer cache is left untouched.
    Maps to STORE_001.
    """

    pass


class PatternTableError(CategorizationError):
    """Raised when a pattern table file cannot be read or is malformed.

    Individual patterns that fail to compile are skipped instead. Maps to
    CONFIG_001.
    """

    pass
