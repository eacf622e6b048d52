"""Learning categorization rules from manual corrections.

When the user moves a transaction to another category, the description is
reduced to a short keyword pattern and stored as a high-priority rule, so
the same merchant is categorized correctly next time.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from budgetlens.categorization.categorizer import CategorizerCache
from budgetlens.categorization.keywords import create_pattern, extract_keywords
from budgetlens.config import settings
from budgetlens.core.exceptions import RuleStoreError, UnknownCategoryError
from budgetlens.core.logger import shorten
from budgetlens.models.rule import CategorizationRule
from budgetlens.repositories.category import CategoryRepository
from budgetlens.repositories.rule import RuleRepository

logger = logging.getLogger(__name__)


def find_similar_rule(
    rules: list[CategorizationRule], pattern: str, first_keyword: str
) -> CategorizationRule | None:
    """Find an existing rule that already covers this merchant.

    A rule is similar when its pattern equals `pattern` ignoring case, or when
    it contains `first_keyword` ignoring case. The containment test is an
    approximation: two merchants sharing a leading word get merged, and the
    same merchant extracted with a different first keyword does not. The raw
    keyword is compared against the escaped stored pattern, so a keyword
    holding regex metacharacters ("NETFLIX.COM" vs "NETFLIX\\.COM") only
    matches through the exact-pattern test.

    Args:
        rules: Existing rules in evaluation order.
        pattern: Candidate pattern built from the new keywords.
        first_keyword: First extracted keyword.

    Returns:
        The first similar rule, or None.
    """
    candidate = pattern.lower()
    keyword = first_keyword.lower()
    for rule in rules:
        existing = rule.pattern.lower()
        if existing == candidate or keyword in existing:
            return rule
    return None


class RuleLearner:
    """Turns manual category corrections into persisted rules."""

    def __init__(
        self,
        db: AsyncSession,
        cache: CategorizerCache,
        priority: int | None = None,
        max_keywords: int | None = None,
    ):
        """
        Args:
            db: Database session
            cache: Categorizer cache to invalidate after a rule change
            priority: Priority for newly learned rules
            max_keywords: Keywords kept per learned pattern
        """
        self.db = db
        self.cache = cache
        self.priority = settings.learned_rule_priority if priority is None else priority
        self.max_keywords = settings.max_keywords if max_keywords is None else max_keywords
        self.rule_repo = RuleRepository(db)
        self.category_repo = CategoryRepository(db)

    async def learn(self, transaction: Any, new_category_id: str) -> CategorizationRule | None:
        """Learn from a manual correction.

        Args:
            transaction: Anything with a `description` attribute.
            new_category_id: Category the user picked.

        Returns:
            The created, updated or already-matching rule; None when the
            description has no usable keywords.

        Raises:
            UnknownCategoryError: If the category does not exist (nothing is written).
            RuleStoreError: If the store fails; the cache is left untouched.
        """
        try:
            if not await self.category_repo.exists(new_category_id):
                raise UnknownCategoryError(
                    "RULE_002", {"category_id": new_category_id}
                )

            keywords = extract_keywords(transaction.description, self.max_keywords)
            if not keywords:
                logger.info("No keywords extracted, cannot create rule: %s", shorten(transaction.description))
                return None

            pattern = create_pattern(keywords)
            existing_rules = await self.rule_repo.list_all()
            similar = find_similar_rule(existing_rules, pattern, keywords[0])

            if similar is not None:
                if similar.category_id == new_category_id:
                    return similar
                updated = await self.rule_repo.update(similar.id, {"category_id": new_category_id})
                self.cache.invalidate()
                logger.info("Updated rule: %r -> %s", similar.pattern, new_category_id)
                return updated

            rule = CategorizationRule(
                category_id=new_category_id,
                pattern=pattern,
                field="description",
                priority=self.priority,
                is_active=True,
            )
            created = await self.rule_repo.create(rule)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Rule learning failed", extra={"error_type": type(e).__name__})
            raise RuleStoreError("STORE_001", {"operation": "learn"}) from e

        self.cache.invalidate()
        logger.info("Created rule: %r -> %s", pattern, new_category_id)
        return created
