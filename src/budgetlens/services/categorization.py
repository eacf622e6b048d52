"""Categorization workflows over the local store.

This module wires the categorizer, rule learner and bulk reapplier to the
repositories for the operations the dashboard exposes:
1. Add a transaction (type detection + classification)
2. Edit a transaction's category (learn a rule, pin the transaction)
3. Manage rules explicitly (add, update, delete, clear)
4. Propagate rules to the stored history
"""

import logging
import re
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from budgetlens.categorization.categorizer import CategorizerCache
from budgetlens.categorization.learning import RuleLearner
from budgetlens.categorization.patterns import detect_type
from budgetlens.categorization.reapply import BulkReapplier
from budgetlens.config import settings
from budgetlens.core.exceptions import (
    InvalidRuleError,
    RuleNotFoundError,
    RuleStoreError,
    TransactionNotFoundError,
    UnknownCategoryError,
)
from budgetlens.core.logger import shorten
from budgetlens.models.rule import CategorizationRule
from budgetlens.models.transaction import Transaction
from budgetlens.repositories.category import CategoryRepository
from budgetlens.repositories.rule import RuleRepository
from budgetlens.repositories.transaction import TransactionRepository
from budgetlens.schemas.rule import RuleCreate, RuleUpdate
from budgetlens.schemas.transaction import LearnResult, RecategorizeResult, TransactionCreate

logger = logging.getLogger(__name__)


class CategorizationService:
    """Service layer for categorization and rule management."""

    def __init__(self, db: AsyncSession, cache: CategorizerCache):
        """Initialize the service.

        Args:
            db: Database session
            cache: Shared categorizer cache; invalidated on every rule change
        """
        self.db = db
        self.cache = cache
        self.rule_repo = RuleRepository(db)
        self.transaction_repo = TransactionRepository(db)
        self.category_repo = CategoryRepository(db)
        self.learner = RuleLearner(db, cache)
        self.reapplier = BulkReapplier(db, cache)

    async def classify(
        self, description: str, transaction_type: str | None = None, is_expense: bool | None = None
    ) -> str | None:
        """Classify a description with the current rules, without storing anything."""
        categorizer = await self.cache.get(self.db)
        return categorizer.classify(description, transaction_type, is_expense)

    async def add_transaction(self, data: TransactionCreate) -> Transaction:
        """Store a transaction, inferring its type and category when missing.

        Args:
            data: Transaction to store

        Returns:
            The persisted transaction
        """
        transaction_type = data.transaction_type or detect_type(data.description)
        category = data.category
        if not category:
            categorizer = await self.cache.get(self.db)
            category = (
                categorizer.classify(data.description, transaction_type, is_expense=data.amount < 0)
                or settings.fallback_category
            )

        txn = Transaction(
            txn_date=data.txn_date,
            description=data.description,
            transaction_type=transaction_type,
            amount=data.amount,
            category=category,
            source=data.source,
            is_manually_edited=False,
        )
        try:
            created = await self.transaction_repo.create(txn)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Saving transaction failed", extra={"error_type": type(e).__name__})
            raise RuleStoreError("STORE_001", {"operation": "add_transaction"}) from e

        logger.debug("Added transaction: %s -> %s", shorten(created.description), category)
        return created

    async def _get_transaction(self, transaction_id: UUID) -> Transaction:
        txn = await self.transaction_repo.get_by_id(transaction_id)
        if txn is None:
            raise TransactionNotFoundError("TXN_001", {"transaction_id": str(transaction_id)})
        return txn

    async def update_transaction_category(self, transaction_id: UUID, category_id: str) -> Transaction:
        """Apply a manual category change.

        Learns a rule from the correction first, so an unknown category or a
        failed rule write leaves the transaction untouched. The transaction
        is then pinned against automatic reclassification.

        The learned rule is committed on its own, before the category write.
        If that second write fails the rule stays stored while the
        transaction keeps its old category; calling this again is safe, as
        learning the same correction reuses the stored rule.

        Raises:
            TransactionNotFoundError: If the transaction does not exist
            UnknownCategoryError: If the category does not exist
            RuleStoreError: If the store fails
        """
        txn = await self._get_transaction(transaction_id)
        if txn.category != category_id:
            await self.learner.learn(txn, category_id)
            logger.info("Learned: %s -> %s", shorten(txn.description, 30), category_id)
        elif not await self.category_repo.exists(category_id):
            raise UnknownCategoryError("RULE_002", {"category_id": category_id})

        try:
            updated = await self.transaction_repo.update(
                txn.id, {"category": category_id, "is_manually_edited": True}
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise RuleStoreError("STORE_001", {"operation": "update_transaction_category"}) from e
        return updated

    async def bulk_update_category(self, transaction_ids: list[UUID], category_id: str) -> int:
        """Apply one manual category to several transactions.

        Returns:
            Number of transactions whose category actually changed
        """
        updated = 0
        for transaction_id in transaction_ids:
            txn = await self.transaction_repo.get_by_id(transaction_id)
            if txn is None or txn.category == category_id:
                continue
            await self.update_transaction_category(transaction_id, category_id)
            updated += 1
        logger.info("Bulk update: %d transactions -> %s", updated, category_id)
        return updated

    async def _validate_rule(self, category_id: str | None, pattern: str | None) -> None:
        if category_id is not None and not await self.category_repo.exists(category_id):
            raise UnknownCategoryError("RULE_002", {"category_id": category_id})
        if pattern is not None:
            # An empty pattern matches every transaction
            if not pattern.strip():
                raise InvalidRuleError("RULE_001", {"pattern": pattern, "error": "empty pattern"})
            try:
                re.compile(pattern)
            except re.error as e:
                raise InvalidRuleError("RULE_001", {"pattern": pattern, "error": str(e)}) from e

    async def list_rules(self) -> list[CategorizationRule]:
        """Get every rule in evaluation order."""
        return await self.rule_repo.list_all()

    async def add_rule(self, data: RuleCreate) -> CategorizationRule:
        """Create an explicit user rule.

        Raises:
            UnknownCategoryError: If the target category does not exist
            InvalidRuleError: If the pattern is not a valid regular expression
            RuleStoreError: If the store fails
        """
        await self._validate_rule(data.category_id, data.pattern)
        try:
            rule = await self.rule_repo.create(CategorizationRule(**data.model_dump()))
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise RuleStoreError("STORE_001", {"operation": "add_rule"}) from e

        self.cache.invalidate()
        logger.info("Added rule: %r -> %s", rule.pattern, rule.category_id)
        return rule

    async def update_rule(self, rule_id: UUID, data: RuleUpdate) -> CategorizationRule:
        """Update an existing rule in place.

        Raises:
            RuleNotFoundError: If the rule does not exist
            UnknownCategoryError: If a new target category does not exist
            InvalidRuleError: If a new pattern is invalid
            RuleStoreError: If the store fails
        """
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        await self._validate_rule(changes.get("category_id"), changes.get("pattern"))
        try:
            rule = await self.rule_repo.update(rule_id, changes)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise RuleStoreError("STORE_001", {"operation": "update_rule"}) from e
        if rule is None:
            raise RuleNotFoundError("RULE_003", {"rule_id": str(rule_id)})

        self.cache.invalidate()
        return rule

    async def delete_rule(self, rule_id: UUID) -> None:
        """Delete a rule.

        Raises:
            RuleNotFoundError: If the rule does not exist
            RuleStoreError: If the store fails
        """
        try:
            deleted = await self.rule_repo.delete(rule_id)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise RuleStoreError("STORE_001", {"operation": "delete_rule"}) from e
        if not deleted:
            raise RuleNotFoundError("RULE_003", {"rule_id": str(rule_id)})

        self.cache.invalidate()
        logger.info("Deleted rule", extra={"rule_id": str(rule_id)})

    async def clear_rules(self) -> int:
        """Delete every rule. Returns how many were removed."""
        try:
            removed = await self.rule_repo.delete_all()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise RuleStoreError("STORE_001", {"operation": "clear_rules"}) from e

        self.cache.invalidate()
        logger.info("Cleared %d rules", removed)
        return removed

    async def reapply_learned_rules(self) -> int:
        """Propagate user rules to unpinned transactions."""
        return await self.reapplier.reapply_all()

    async def recategorize_all(self) -> RecategorizeResult:
        """Recompute categories of unpinned transactions from scratch."""
        return await self.reapplier.recategorize_all()

    async def learn_from_all_corrections(self) -> LearnResult:
        """Learn a rule from every pinned transaction, then reapply rules.

        Returns:
            LearnResult with rules learned and transactions updated
        """
        pinned = await self.transaction_repo.list_manually_edited()
        logger.info("Found %d manually edited transactions", len(pinned))

        rules_created = 0
        for txn in pinned:
            try:
                rule = await self.learner.learn(txn, txn.category)
            except UnknownCategoryError:
                logger.warning(
                    "Skipping correction to unknown category %s: %s",
                    txn.category,
                    shorten(txn.description, 30),
                )
                continue
            if rule is not None:
                rules_created += 1

        transactions_updated = await self.reapplier.reapply_all()
        return LearnResult(rules_created=rules_created, transactions_updated=transactions_updated)
