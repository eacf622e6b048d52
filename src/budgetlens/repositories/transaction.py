"""Transaction repository."""
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from budgetlens.models.transaction import Transaction
from budgetlens.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Repository for Transaction model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Transaction)

    async def list_all(self) -> list[Transaction]:
        """Get every stored transaction, oldest first."""
        result = await self.db.execute(
            select(Transaction).order_by(Transaction.txn_date.asc(), Transaction.created_at.asc())
        )
        return list(result.scalars().all())

    async def list_manually_edited(self) -> list[Transaction]:
        """Get transactions whose category was pinned by the user."""
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.is_manually_edited == True)
            .order_by(Transaction.txn_date.asc(), Transaction.created_at.asc())
        )
        return list(result.scalars().all())

    async def get_by_category(self, category: str) -> list[Transaction]:
        """Get all transactions in a specific category."""
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.category == category)
            .order_by(Transaction.txn_date.desc())
        )
        return list(result.scalars().all())

    async def set_category(self, transaction_id: UUID, category_id: str) -> None:
        """Stage a category write; the caller commits.

        Bulk passes stage every change and commit once, so a failure part way
        leaves nothing written.
        """
        await self.db.execute(
            update(Transaction)
            .where(Transaction.id == transaction_id)
            .values(category=category_id)
        )

    async def update_category(self, transaction_id: UUID, category_id: str) -> None:
        """Write a transaction's category."""
        await self.set_category(transaction_id, category_id)
        await self.db.commit()
