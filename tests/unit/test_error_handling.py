"""Unit tests for the error catalog and exception hierarchy."""

import pytest

from budgetlens.core.errors import (
    ERROR_CATALOG,
    get_error,
    get_suggestion,
    get_user_message,
    is_retryable,
)
from budgetlens.core.exceptions import (
    CategorizationError,
    InvalidRuleError,
    PatternTableError,
    RuleNotFoundError,
    RuleStoreError,
    TransactionNotFoundError,
    UnknownCategoryError,
)


class TestErrorCatalog:
    """Test catalog lookups."""

    def test_every_entry_has_required_fields(self):
        for code, entry in ERROR_CATALOG.items():
            assert entry["code"] == code
            for key in ("message", "user_message", "suggestion", "retry_allowed"):
                assert key in entry

    def test_unknown_code_returns_generic_definition(self):
        error = get_error("NOPE_999")
        assert error["code"] == "UNKNOWN"
        assert "NOPE_999" in error["message"]

    def test_user_message_and_suggestion(self):
        assert get_user_message("RULE_002") == ERROR_CATALOG["RULE_002"]["user_message"]
        assert get_suggestion("TXN_001") == ERROR_CATALOG["TXN_001"]["suggestion"]

    def test_only_store_failures_are_retryable(self):
        assert is_retryable("STORE_001")
        assert not is_retryable("RULE_001")
        assert not is_retryable("RULE_002")
        assert not is_retryable("RULE_003")
        assert not is_retryable("TXN_001")
        assert not is_retryable("CONFIG_001")


class TestExceptions:
    """Test exception attributes."""

    @pytest.mark.parametrize(
        "exc_class, code",
        [
            (InvalidRuleError, "RULE_001"),
            (UnknownCategoryError, "RULE_002"),
            (RuleNotFoundError, "RULE_003"),
            (TransactionNotFoundError, "TXN_001"),
            (RuleStoreError, "STORE_001"),
            (PatternTableError, "CONFIG_001"),
        ],
    )
    def test_subclasses_carry_code(self, exc_class, code):
        exc = exc_class(code, {"key": "value"})
        assert isinstance(exc, CategorizationError)
        assert exc.error_code == code
        assert exc.details == {"key": "value"}
        assert code in ERROR_CATALOG

    def test_details_default_to_empty(self):
        exc = CategorizationError("RULE_001")
        assert exc.details == {}
        assert str(exc) == "RULE_001"
