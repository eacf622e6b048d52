"""Error codes and user-friendly messages.

This module defines the error catalog for the categorization engine.
Each error has:
- code: Unique identifier
- message: Technical description (for logs)
- user_message: User-friendly explanation
- suggestion: Actionable guidance for the user
- retry_allowed: Whether the operation can simply be re-run
"""


ERROR_CATALOG: dict[str, dict] = {
    "RULE_001": {
        "code": "RULE_001",
        "message": "Rule pattern is not a valid regular expression",
        "user_message": "This rule pattern could not be understood.",
        "suggestion": "Check the pattern for unbalanced brackets or parentheses.",
        "retry_allowed": False,
    },
    "RULE_002": {
        "code": "RULE_002",
        "message": "Rule targets an unknown category",
        "user_message": "The selected category does not exist.",
        "suggestion": "Pick one of the existing categories and try again.",
        "retry_allowed": False,
    },
    "RULE_003": {
        "code": "RULE_003",
        "message": "Rule not found",
        "user_message": "This rule no longer exists.",
        "suggestion": "Refresh the rule list; it may have been deleted.",
        "retry_allowed": False,
    },
    "TXN_001": {
        "code": "TXN_001",
        "message": "Transaction not found",
        "user_message": "This transaction no longer exists.",
        "suggestion": "Refresh the transaction list and try again.",
        "retry_allowed": False,
    },
    "CONFIG_001": {
        "code": "CONFIG_001",
        "message": "Pattern table file is missing, unreadable or malformed",
        "user_message": "The custom category patterns file could not be loaded.",
        "suggestion": "Check BUDGETLENS_PATTERNS_FILE: each entry needs an 'id' and a list of 'patterns'.",
        "retry_allowed": False,
    },
    "STORE_001": {
        "code": "STORE_001",
        "message": "Local store failed while reading or writing rules/transactions",
        "user_message": "We couldn't save your changes to the local database.",
        "suggestion": "Nothing was saved. It is safe to run the same action again.",
        "retry_allowed": True,
    },
}


def get_error(error_code: str) -> dict:
    """Get error definition by code.

    Args:
        error_code: Error code from the catalog

    Returns:
        Dict with error details; a generic definition for unknown codes
    """
    if error_code not in ERROR_CATALOG:
        return {
            "code": "UNKNOWN",
            "message": f"Unknown error code: {error_code}",
            "user_message": "An unexpected error occurred.",
            "suggestion": "Please try again.",
            "retry_allowed": True,
        }
    return ERROR_CATALOG[error_code]


def get_user_message(error_code: str) -> str:
    """Get user-friendly message for an error code."""
    return get_error(error_code)["user_message"]


def get_suggestion(error_code: str) -> str:
    """Get actionable suggestion for an error code."""
    return get_error(error_code)["suggestion"]


def is_retryable(error_code: str) -> bool:
    """Check if an error is retryable.

    Args:
        error_code: Error code from the catalog

    Returns:
        True if the operation can be retried, False otherwise
    """
    return get_error(error_code)["retry_allowed"]
