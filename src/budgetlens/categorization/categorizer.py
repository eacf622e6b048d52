"""Deterministic transaction categorizer.

Resolution order:
1. Active user rules, highest priority first (ties keep insertion order).
   User rules ignore the income/expense partition: the user chose the target.
2. The built-in pattern table, in table order, restricted to categories whose
   income/expense class agrees with the transaction when that is known.
3. The fallback category.

`TransactionCategorizer.classify` is pure; it never awaits and never touches
the store. `CategorizerCache` owns the current instance and is the only place
it gets replaced.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from budgetlens.categorization.patterns import (
    DEFAULT_PATTERNS,
    FALLBACK_CATEGORY,
    INCOME_CATEGORIES,
    PatternTable,
    detect_type,
)
from budgetlens.core.logger import shorten
from budgetlens.repositories.category import CategoryRepository
from budgetlens.repositories.rule import RuleRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledRule:
    """A user rule with its pattern compiled once."""

    category_id: str
    field: str
    priority: int
    matcher: re.Pattern[str]

    @property
    def pattern(self) -> str:
        return self.matcher.pattern

    def matches(self, description: str, transaction_type: str) -> bool:
        value = transaction_type if self.field == "type" else description
        return self.matcher.search(value) is not None


def _normalize(text: str | None) -> str:
    return (text or "").lower().strip()


def compile_rule(rule: Any) -> CompiledRule | None:
    """Compile a single rule; None if it is inactive or its pattern is invalid.

    Accepts anything exposing `pattern`, `field`, `priority`, `is_active` and
    `category_id` (ORM rows, `RuleRead`, ...).
    """
    if not rule.is_active:
        return None
    try:
        matcher = re.compile(rule.pattern, re.IGNORECASE)
    except re.error as e:
        logger.warning(
            "Skipping rule with invalid pattern",
            extra={"rule_id": str(getattr(rule, "id", "")), "pattern": rule.pattern, "error": str(e)},
        )
        return None
    return CompiledRule(
        category_id=rule.category_id,
        field=rule.field or "description",
        priority=rule.priority,
        matcher=matcher,
    )


def _by_priority(rules: Iterable[CompiledRule]) -> list[CompiledRule]:
    # sorted() is stable: equal priorities keep the order they came in
    return sorted(rules, key=lambda r: r.priority, reverse=True)


def compile_rules(rules: Iterable[Any]) -> list[CompiledRule]:
    """Compile active rules and sort them by descending priority."""
    compiled = (compile_rule(rule) for rule in rules)
    return _by_priority(r for r in compiled if r is not None)


class TransactionCategorizer:
    """Classify transaction descriptions using user rules and default patterns."""

    def __init__(
        self,
        rules: Iterable[Any] = (),
        income_categories: Iterable[str] = INCOME_CATEGORIES,
        patterns: PatternTable | None = None,
        fallback_category: str | None = FALLBACK_CATEGORY,
    ):
        """
        Args:
            rules: User rules (any objects with the rule attributes).
            income_categories: Category ids treated as income-only.
            patterns: Pattern table; defaults to the built-in one.
            fallback_category: Returned when nothing matches; None disables it.
        """
        self.income_categories = frozenset(income_categories)
        self.patterns = DEFAULT_PATTERNS if patterns is None else patterns
        self.fallback_category = fallback_category
        self._rules: list[CompiledRule] = compile_rules(rules)

    @property
    def rules(self) -> list[CompiledRule]:
        return list(self._rules)

    def set_rules(self, rules: Iterable[Any]) -> None:
        """Replace the user rule list wholesale."""
        self._rules = compile_rules(rules)

    def add_rule(self, rule: Any) -> None:
        """Add one rule, keeping priority order."""
        compiled = compile_rule(rule)
        if compiled is not None:
            self._rules = _by_priority([*self._rules, compiled])

    def match_user_rule(self, description: str | None, transaction_type: str | None = None) -> str | None:
        """Return the category of the first matching user rule, if any."""
        desc = _normalize(description)
        txn_type = _normalize(transaction_type)
        for rule in self._rules:
            if rule.matches(desc, txn_type):
                logger.debug("User rule matched: %r -> %s", rule.pattern, rule.category_id)
                return rule.category_id
        return None

    def _is_eligible(self, category_id: str, is_expense: bool | None) -> bool:
        if is_expense is None or category_id == self.fallback_category:
            return True
        is_income_category = category_id in self.income_categories
        return is_income_category != is_expense

    def match_default(
        self, description: str | None, transaction_type: str | None = None, is_expense: bool | None = None
    ) -> str | None:
        """Return the first eligible pattern-table category matching either field."""
        desc = _normalize(description)
        txn_type = _normalize(transaction_type)
        for category_id, patterns in self.patterns:
            if not self._is_eligible(category_id, is_expense):
                continue
            for pattern in patterns:
                if pattern.search(desc) or pattern.search(txn_type):
                    return category_id
        return None

    def classify(
        self, description: str | None, transaction_type: str | None = None, is_expense: bool | None = None
    ) -> str | None:
        """Categorize a transaction.

        Args:
            description: Transaction description.
            transaction_type: Bank transaction type (optional).
            is_expense: True for debits, False for credits, None if unknown.

        Returns:
            Category id; the fallback category when nothing matched, or None
            only if no fallback is configured.
        """
        category = self.match_user_rule(description, transaction_type)
        if category is not None:
            return category

        category = self.match_default(description, transaction_type, is_expense)
        if category is not None:
            return category

        logger.debug("No match, falling back: %s", shorten(description))
        return self.fallback_category

    def detect_type(self, description: str | None) -> str:
        return detect_type(description)


class CategorizerCache:
    """Owned handle on the current categorizer.

    The instance is built lazily from the store and replaced wholesale; it is
    never mutated in place. Every rule mutation calls `invalidate()` after its
    write succeeds so the next `get()` sees the new rule set.
    """

    def __init__(
        self,
        patterns: PatternTable | None = None,
        fallback_category: str | None = FALLBACK_CATEGORY,
    ):
        self.patterns = patterns
        self.fallback_category = fallback_category
        self._instance: TransactionCategorizer | None = None
        self.generation = 0

    @property
    def is_loaded(self) -> bool:
        return self._instance is not None

    def invalidate(self) -> None:
        """Discard the cached categorizer."""
        self._instance = None
        self.generation += 1
        logger.debug("Categorizer cache invalidated", extra={"generation": self.generation})

    def _build(self, rules: Iterable[Any], income_categories: Iterable[str]) -> TransactionCategorizer:
        return TransactionCategorizer(
            rules,
            income_categories=income_categories,
            patterns=self.patterns,
            fallback_category=self.fallback_category,
        )

    def rebuild(self, rules: Iterable[Any], income_categories: Iterable[str]) -> TransactionCategorizer:
        """Build a fresh categorizer from the given rules and install it."""
        self._instance = self._build(rules, income_categories)
        return self._instance

    async def get(self, db: AsyncSession) -> TransactionCategorizer:
        """Return the current categorizer, loading rules from the store if needed."""
        if self._instance is not None:
            return self._instance

        generation = self.generation
        rules = await RuleRepository(db).list_active()
        income_ids = await CategoryRepository(db).income_category_ids()
        categorizer = self._build(rules, income_ids or INCOME_CATEGORIES)

        # An invalidation while the store was being read means these rules are stale
        if generation == self.generation:
            self._instance = categorizer
        logger.info("Loaded user rules", extra={"rules_count": len(rules)})
        return categorizer
