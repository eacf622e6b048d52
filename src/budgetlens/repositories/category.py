"""Category registry backed by the categories table."""
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from budgetlens.models.category import Category
from budgetlens.repositories.base import BaseRepository


class CategoryRepository(BaseRepository[Category]):
    """Repository for Category model; answers income/expense questions."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Category)

    async def list_ordered(self) -> list[Category]:
        result = await self.db.execute(select(Category).order_by(Category.order.asc()))
        return list(result.scalars().all())

    async def exists(self, category_id: str) -> bool:
        return await self.get_by_id(category_id) is not None

    async def is_income_category(self, category_id: str) -> bool:
        category = await self.get_by_id(category_id)
        return bool(category and category.is_income)

    async def income_category_ids(self) -> set[str]:
        result = await self.db.execute(
            select(Category.id).where(Category.is_income == True)
        )
        return set(result.scalars().all())

    async def ensure_defaults(self, defaults: Iterable[tuple[str, str, bool]]) -> int:
        """Insert each (id, name, is_income) that is missing.

        Returns:
            How many categories were added
        """
        result = await self.db.execute(select(Category.id))
        existing = set(result.scalars().all())

        missing = [
            Category(id=cid, name=name, is_income=is_income, order=position, is_default=True)
            for position, (cid, name, is_income) in enumerate(defaults)
            if cid not in existing
        ]
        if missing:
            self.db.add_all(missing)
            await self.db.commit()
        return len(missing)
