from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

import budgetlens.models  # noqa: F401  (registers every table on the metadata)
from budgetlens.categorization.patterns import DEFAULT_CATEGORIES
from budgetlens.config import settings
from budgetlens.models.base import Base
from budgetlens.repositories.category import CategoryRepository


def make_engine(database_url: str | None = None) -> AsyncEngine:
    """Create an async engine for the local store.

    SQL echo is opt-in only; statements carry transaction descriptions.
    """
    return create_async_engine(
        database_url or settings.database_url,
        echo=settings.db_echo,
        future=True,
    )


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine, session_factory: async_sessionmaker[AsyncSession]) -> int:
    """Create tables and seed the default categories.

    Returns:
        Number of default categories that were missing and got added
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        return await CategoryRepository(session).ensure_defaults(DEFAULT_CATEGORIES)
