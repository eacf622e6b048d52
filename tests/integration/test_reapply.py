"""Integration tests for propagating rules to stored transactions."""
from datetime import date

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from budgetlens.categorization.categorizer import CategorizerCache
from budgetlens.categorization.reapply import BulkReapplier
from budgetlens.core.exceptions import RuleStoreError
from budgetlens.models.rule import CategorizationRule
from budgetlens.repositories.rule import RuleRepository


@pytest.fixture
def reapplier(db_session: AsyncSession, cache: CategorizerCache) -> BulkReapplier:
    return BulkReapplier(db_session, cache)


async def add_rule(db_session: AsyncSession, pattern: str, category_id: str, **kwargs) -> CategorizationRule:
    return await RuleRepository(db_session).create(
        CategorizationRule(category_id=category_id, pattern=pattern, **kwargs)
    )


class TestReapplyAll:
    """Test BulkReapplier.reapply_all."""

    async def test_no_rules_is_noop(self, reapplier: BulkReapplier, make_transaction):
        """Test nothing changes without user rules."""
        await make_transaction("CB CARREFOUR")
        assert await reapplier.reapply_all() == 0

    async def test_reclassifies_matching_transactions(
        self, reapplier: BulkReapplier, db_session: AsyncSession, make_transaction
    ):
        """Test an unedited transaction is moved by a learned rule."""
        txn = await make_transaction("NETFLIX.COM 866-579-7172")
        await add_rule(db_session, r"NETFLIX\.COM.*866\-579\-7172", "abonnements")

        assert await reapplier.reapply_all() == 1

        await db_session.refresh(txn)
        assert txn.category == "abonnements"
        assert txn.is_manually_edited is False

    async def test_pinned_transactions_untouched(
        self, reapplier: BulkReapplier, db_session: AsyncSession, make_transaction
    ):
        """Test manual edits always win over rules."""
        pinned = await make_transaction("NETFLIX", category="entertainment", is_manually_edited=True)
        await add_rule(db_session, "NETFLIX", "abonnements")

        assert await reapplier.reapply_all() == 0

        await db_session.refresh(pinned)
        assert pinned.category == "entertainment"

    async def test_second_run_updates_nothing(
        self, reapplier: BulkReapplier, db_session: AsyncSession, make_transaction
    ):
        """Test reapplying without rule changes is idempotent."""
        await make_transaction("NETFLIX")
        await make_transaction("SPOTIFY")
        await add_rule(db_session, "NETFLIX|SPOTIFY", "abonnements")

        assert await reapplier.reapply_all() == 2
        assert await reapplier.reapply_all() == 0

    async def test_unmatched_transactions_keep_category(
        self, reapplier: BulkReapplier, db_session: AsyncSession, make_transaction
    ):
        """Test only user rules are applied, never the pattern table."""
        txn = await make_transaction("CB CARREFOUR", category="other")
        await add_rule(db_session, "NETFLIX", "abonnements")

        assert await reapplier.reapply_all() == 0

        await db_session.refresh(txn)
        assert txn.category == "other"

    async def test_first_matching_rule_wins(
        self, reapplier: BulkReapplier, db_session: AsyncSession, make_transaction
    ):
        """Test rule priority holds during reapply."""
        txn = await make_transaction("AMAZON PRIME")
        await add_rule(db_session, "AMAZON", "shopping", priority=50)
        await add_rule(db_session, "PRIME", "abonnements", priority=150)

        await reapplier.reapply_all()

        await db_session.refresh(txn)
        assert txn.category == "abonnements"

    async def test_type_rule(self, reapplier: BulkReapplier, db_session: AsyncSession, make_transaction):
        """Test rules on the transaction type field."""
        txn = await make_transaction("EDF CLIENTS", transaction_type="PRELEVEMENT")
        await add_rule(db_session, "^prelevement$", "internal", field="type")

        assert await reapplier.reapply_all() == 1

        await db_session.refresh(txn)
        assert txn.category == "internal"

    async def test_store_failure_rolls_back(
        self,
        reapplier: BulkReapplier,
        db_session: AsyncSession,
        make_transaction,
        monkeypatch: pytest.MonkeyPatch,
    ):
        """Test a failure part way through leaves earlier writes uncommitted."""
        first = await make_transaction("NETFLIX STANDARD", txn_date=date(2024, 3, 1))
        second = await make_transaction("NETFLIX PREMIUM", txn_date=date(2024, 4, 1))
        await add_rule(db_session, "NETFLIX", "abonnements")

        set_category = reapplier.transaction_repo.set_category
        writes = []

        async def failing_on_second_write(transaction_id, category_id):
            writes.append(transaction_id)
            if len(writes) == 2:
                raise SQLAlchemyError("database is locked")
            await set_category(transaction_id, category_id)

        monkeypatch.setattr(reapplier.transaction_repo, "set_category", failing_on_second_write)

        with pytest.raises(RuleStoreError):
            await reapplier.reapply_all()

        assert writes == [first.id, second.id]
        for txn in (first, second):
            await db_session.refresh(txn)
            assert txn.category == "other"

        monkeypatch.undo()
        assert await reapplier.reapply_all() == 2


class TestRecategorizeAll:
    """Test BulkReapplier.recategorize_all."""

    async def test_uses_pattern_table_and_partition(
        self, reapplier: BulkReapplier, db_session: AsyncSession, make_transaction
    ):
        """Test every unpinned transaction is classified from scratch."""
        grocery = await make_transaction("X6374 MP*CARREFOUR REIMS 10/11", amount=-4210)
        transfer = await make_transaction("VIR INST DE MATHILDE LE CERF", amount=2500)
        pinned = await make_transaction("CB CARREFOUR", category="shopping", is_manually_edited=True)

        result = await reapplier.recategorize_all()

        assert result.updated == 2
        assert result.total == 3
        for txn in (grocery, transfer, pinned):
            await db_session.refresh(txn)
        assert grocery.category == "food-grocery"
        assert transfer.category == "transfer-in"
        assert pinned.category == "shopping"

    async def test_user_rules_take_precedence(
        self, reapplier: BulkReapplier, db_session: AsyncSession, cache: CategorizerCache, make_transaction
    ):
        """Test rules added after the cache was loaded are picked up."""
        txn = await make_transaction("CB CARREFOUR REIMS")
        await cache.get(db_session)
        await add_rule(db_session, "CARREFOUR", "shopping")

        await reapplier.recategorize_all()

        await db_session.refresh(txn)
        assert txn.category == "shopping"

    async def test_second_run_updates_nothing(self, reapplier: BulkReapplier, make_transaction):
        """Test recategorizing twice is idempotent."""
        await make_transaction("CB CARREFOUR", amount=-1000)

        assert (await reapplier.recategorize_all()).updated == 1
        assert (await reapplier.recategorize_all()).updated == 0
