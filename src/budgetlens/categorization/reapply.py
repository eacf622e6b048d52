"""Propagating rules to transactions that are already stored.

Both passes skip transactions the user pinned (`is_manually_edited`), write
only when the category actually changes, and commit once at the end. Running
either pass twice without a rule change in between updates nothing the
second time.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from budgetlens.categorization.categorizer import CategorizerCache, TransactionCategorizer
from budgetlens.core.exceptions import RuleStoreError
from budgetlens.core.logger import shorten
from budgetlens.repositories.rule import RuleRepository
from budgetlens.repositories.transaction import TransactionRepository
from budgetlens.schemas.transaction import RecategorizeResult

logger = logging.getLogger(__name__)


class BulkReapplier:
    """Re-runs classification over the stored transaction history."""

    def __init__(self, db: AsyncSession, cache: CategorizerCache):
        self.db = db
        self.cache = cache
        self.rule_repo = RuleRepository(db)
        self.transaction_repo = TransactionRepository(db)

    async def reapply_all(self) -> int:
        """Apply user rules (first match wins) to every unpinned transaction.

        Only user rules are considered; a transaction no rule matches keeps
        its category.

        Returns:
            Number of transactions whose category changed
        """
        try:
            rules = await self.rule_repo.list_active()
            if not rules:
                return 0

            # Compiled once for the whole pass; no pattern table involved
            matcher = TransactionCategorizer(rules, patterns=[], fallback_category=None)
            transactions = await self.transaction_repo.list_all()

            updated = 0
            for txn in transactions:
                if txn.is_manually_edited:
                    continue
                target = matcher.match_user_rule(txn.description, txn.transaction_type)
                if target is not None and target != txn.category:
                    await self.transaction_repo.set_category(txn.id, target)
                    updated += 1

            if updated:
                await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Reapplying rules failed", extra={"error_type": type(e).__name__})
            raise RuleStoreError("STORE_001", {"operation": "reapply_all"}) from e

        logger.info("Reapplied learned rules", extra={"updated": updated, "rules_count": len(rules)})
        return updated

    async def recategorize_all(self) -> RecategorizeResult:
        """Recompute every unpinned transaction with user rules and default patterns.

        Returns:
            RecategorizeResult with the number changed and the number examined
        """
        try:
            self.cache.invalidate()
            categorizer = await self.cache.get(self.db)
            transactions = await self.transaction_repo.list_all()

            updated = 0
            for txn in transactions:
                if txn.is_manually_edited:
                    continue
                target = categorizer.classify(
                    txn.description, txn.transaction_type, is_expense=txn.is_expense
                )
                if target and target != txn.category:
                    logger.debug("Recategorized: %s -> %s", shorten(txn.description), target)
                    await self.transaction_repo.set_category(txn.id, target)
                    updated += 1

            if updated:
                await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Recategorization failed", extra={"error_type": type(e).__name__})
            raise RuleStoreError("STORE_001", {"operation": "recategorize_all"}) from e

        logger.info("Recategorized %d/%d transactions", updated, len(transactions))
        return RecategorizeResult(updated=updated, total=len(transactions))
