"""Rule repository: the persistent store behind user categorization rules."""
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from budgetlens.models.rule import CategorizationRule
from budgetlens.repositories.base import BaseRepository


class RuleRepository(BaseRepository[CategorizationRule]):
    """Repository for CategorizationRule, always returned in evaluation order."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, CategorizationRule)

    def _ordered(self):
        # Evaluation order: priority descending, oldest first within a priority
        return select(CategorizationRule).order_by(
            CategorizationRule.priority.desc(), CategorizationRule.created_at.asc()
        )

    async def list_all(self) -> list[CategorizationRule]:
        """Get every rule, inactive ones included."""
        result = await self.db.execute(self._ordered())
        return list(result.scalars().all())

    async def list_active(self) -> list[CategorizationRule]:
        """Get active rules only."""
        result = await self.db.execute(
            self._ordered().where(CategorizationRule.is_active == True)
        )
        return list(result.scalars().all())

    async def delete_all(self) -> int:
        """Delete every rule. Returns the number removed."""
        result = await self.db.execute(delete(CategorizationRule))
        await self.db.commit()
        return int(result.rowcount or 0)
