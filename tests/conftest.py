import sys
from datetime import date
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

sys.path.append(str(Path(__file__).parents[1] / "src"))

from budgetlens.categorization.categorizer import CategorizerCache
from budgetlens.db.session import init_db, make_engine, make_sessionmaker
from budgetlens.models.transaction import Transaction


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """SQLite file private to the test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture(scope="function")
async def setup_database(database_url: str):
    """Create tables and seed default categories in a throwaway store."""
    engine = make_engine(database_url)
    session_factory = make_sessionmaker(engine)
    await init_db(engine, session_factory)

    yield session_factory

    await engine.dispose()


@pytest.fixture
async def db_session(setup_database):
    """Provide a session on the seeded test store."""
    async with setup_database() as session:
        yield session
        await session.rollback()


@pytest.fixture
def cache() -> CategorizerCache:
    """Fresh categorizer cache using the built-in pattern table."""
    return CategorizerCache()


@pytest.fixture
def make_transaction(db_session: AsyncSession):
    """Factory inserting a transaction row as the importer would."""

    async def _make(
        description: str,
        amount: int = -1000,
        category: str = "other",
        is_manually_edited: bool = False,
        transaction_type: str | None = None,
        txn_date: date = date(2024, 3, 12),
    ) -> Transaction:
        txn = Transaction(
            txn_date=txn_date,
            description=description,
            amount=amount,
            category=category,
            transaction_type=transaction_type,
            is_manually_edited=is_manually_edited,
        )
        db_session.add(txn)
        await db_session.commit()
        await db_session.refresh(txn)
        return txn

    return _make
